"""Configuration management for core2.

Handles:
- .core2/config.yaml parsing (user-facing config)
- .core2/state.json (client-local state such as the last opened project)
- Environment variable overrides
- .core2/ directory discovery
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

from core2.pomodoro import DEFAULT_MINUTES, LONG_BREAK, SHORT_BREAK, WORK

logger = logging.getLogger(__name__)

CONFIG_YAML = "config.yaml"
STATE_JSON = "state.json"
CORE2_DIR = ".core2"
DEFAULT_DB_NAME = "core2.db"

_TRUE_VALUES = ("1", "true", "yes")


@dataclass
class Core2Config:
    """User-facing config from config.yaml."""
    db: str = ""
    json_output: bool = False
    page_size: int = 0
    pomodoro_work_minutes: int = DEFAULT_MINUTES[WORK]
    pomodoro_short_minutes: int = DEFAULT_MINUTES[SHORT_BREAK]
    pomodoro_long_minutes: int = DEFAULT_MINUTES[LONG_BREAK]

    @classmethod
    def load(cls, core2_dir: str) -> Core2Config:
        """Load config.yaml from the core2 directory."""
        config_path = os.path.join(core2_dir, CONFIG_YAML)
        cfg = cls()
        if os.path.exists(config_path):
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            cfg.db = data.get("db", "")
            cfg.json_output = bool(data.get("json", False))
            cfg.page_size = int(data.get("page-size", 0) or 0)
            cfg.pomodoro_work_minutes = int(
                data.get("pomodoro-work-minutes", cfg.pomodoro_work_minutes))
            cfg.pomodoro_short_minutes = int(
                data.get("pomodoro-short-minutes", cfg.pomodoro_short_minutes))
            cfg.pomodoro_long_minutes = int(
                data.get("pomodoro-long-minutes", cfg.pomodoro_long_minutes))

        # Environment variable overrides
        if os.environ.get("CORE2_DB"):
            cfg.db = os.environ["CORE2_DB"]
        if os.environ.get("CORE2_JSON"):
            cfg.json_output = os.environ["CORE2_JSON"].lower() in _TRUE_VALUES

        return cfg

    def save(self, core2_dir: str) -> None:
        """Save config to config.yaml."""
        config_path = os.path.join(core2_dir, CONFIG_YAML)
        data: dict[str, Any] = {}
        if self.db:
            data["db"] = self.db
        if self.json_output:
            data["json"] = self.json_output
        if self.page_size:
            data["page-size"] = self.page_size
        data["pomodoro-work-minutes"] = self.pomodoro_work_minutes
        data["pomodoro-short-minutes"] = self.pomodoro_short_minutes
        data["pomodoro-long-minutes"] = self.pomodoro_long_minutes

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)

    def pomodoro_seconds(self) -> dict[str, int]:
        return {
            WORK: self.pomodoro_work_minutes * 60,
            SHORT_BREAK: self.pomodoro_short_minutes * 60,
            LONG_BREAK: self.pomodoro_long_minutes * 60,
        }


@dataclass
class LocalState:
    """Client-local state kept outside the store."""
    last_project_id: str | None = None

    @classmethod
    def load(cls, core2_dir: str) -> LocalState:
        state_path = os.path.join(core2_dir, STATE_JSON)
        state = cls()
        if os.path.exists(state_path):
            try:
                with open(state_path) as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("ignoring unreadable %s: %s", state_path, e)
                return state
            state.last_project_id = data.get("last_project_id") or None
        return state

    def save(self, core2_dir: str) -> None:
        state_path = os.path.join(core2_dir, STATE_JSON)
        with open(state_path, "w") as f:
            json.dump({"last_project_id": self.last_project_id}, f, indent=2)
            f.write("\n")


def find_core2_dir(start: str | None = None) -> str | None:
    """Walk up from start directory to find .core2/ directory.

    Returns absolute path to .core2/ directory, or None if not found.
    """
    if start is None:
        start = os.getcwd()
    current = os.path.abspath(start)
    while True:
        candidate = os.path.join(current, CORE2_DIR)
        if os.path.isdir(candidate):
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def get_db_path(core2_dir: str, config: Core2Config | None = None) -> str:
    """Get the full path to the SQLite database."""
    env_db = os.environ.get("CORE2_DB")
    if env_db:
        return env_db
    if config and config.db:
        if os.path.isabs(config.db):
            return config.db
        return os.path.join(core2_dir, config.db)
    return os.path.join(core2_dir, DEFAULT_DB_NAME)
