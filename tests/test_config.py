"""Tests for config.yaml, state.json and workspace discovery."""

import os

import pytest
import yaml

from core2.config import (
    CORE2_DIR, DEFAULT_DB_NAME, Core2Config, LocalState, find_core2_dir, get_db_path,
)
from core2.pomodoro import LONG_BREAK, SHORT_BREAK, WORK


@pytest.fixture
def core2_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("CORE2_DB", raising=False)
    monkeypatch.delenv("CORE2_JSON", raising=False)
    path = tmp_path / CORE2_DIR
    path.mkdir()
    return str(path)


def test_defaults_without_file(core2_dir: str):
    cfg = Core2Config.load(core2_dir)
    assert cfg.db == ""
    assert cfg.json_output is False
    assert cfg.page_size == 0
    assert cfg.pomodoro_seconds() == {WORK: 1500, SHORT_BREAK: 300, LONG_BREAK: 900}


def test_save_and_load(core2_dir: str):
    Core2Config(db="other.db", json_output=True, page_size=20,
                pomodoro_work_minutes=50).save(core2_dir)
    with open(os.path.join(core2_dir, "config.yaml")) as f:
        data = yaml.safe_load(f)
    assert data["page-size"] == 20
    assert data["pomodoro-work-minutes"] == 50

    cfg = Core2Config.load(core2_dir)
    assert cfg.db == "other.db"
    assert cfg.json_output is True
    assert cfg.page_size == 20
    assert cfg.pomodoro_seconds()[WORK] == 3000


def test_env_overrides(core2_dir: str, monkeypatch):
    Core2Config(db="other.db").save(core2_dir)
    monkeypatch.setenv("CORE2_DB", "/tmp/elsewhere.db")
    monkeypatch.setenv("CORE2_JSON", "yes")
    cfg = Core2Config.load(core2_dir)
    assert cfg.db == "/tmp/elsewhere.db"
    assert cfg.json_output is True
    assert get_db_path(core2_dir, cfg) == "/tmp/elsewhere.db"


def test_db_path_resolution(core2_dir: str):
    assert get_db_path(core2_dir) == os.path.join(core2_dir, DEFAULT_DB_NAME)
    assert get_db_path(core2_dir, Core2Config(db="x.db")) == os.path.join(core2_dir, "x.db")
    assert get_db_path(core2_dir, Core2Config(db="/abs/x.db")) == "/abs/x.db"


def test_local_state_round_trip(core2_dir: str):
    assert LocalState.load(core2_dir).last_project_id is None
    LocalState(last_project_id="p1").save(core2_dir)
    assert LocalState.load(core2_dir).last_project_id == "p1"
    LocalState().save(core2_dir)
    assert LocalState.load(core2_dir).last_project_id is None


def test_unreadable_state_is_ignored(core2_dir: str):
    with open(os.path.join(core2_dir, "state.json"), "w") as f:
        f.write("{not json")
    assert LocalState.load(core2_dir).last_project_id is None


def test_find_core2_dir_walks_up(tmp_path):
    (tmp_path / CORE2_DIR).mkdir()
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_core2_dir(str(nested)) == str(tmp_path / CORE2_DIR)


def test_find_core2_dir_missing(tmp_path):
    assert find_core2_dir(str(tmp_path)) is None
