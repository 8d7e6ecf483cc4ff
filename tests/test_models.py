"""Tests for data models."""

from datetime import datetime, timedelta, timezone

from core2.models import (
    UNSET, DailyTaskInsert, DomainInsert, EpicInsert, Project, ProjectInsert,
    ProjectUpdate, StoryInsert, StoryUpdate, Task, TaskInsert, TaskUpdate,
    format_timestamp, parse_timestamp,
)


def _story(**kwargs) -> StoryInsert:
    defaults = dict(project_id="p1", title="Login", user_story="As a [user]")
    defaults.update(kwargs)
    return StoryInsert(**defaults)


def test_story_priority_bounds():
    assert "between 1 and 5" in _story(priority=0).validate()
    assert "between 1 and 5" in _story(priority=6).validate()
    assert _story(priority=1).validate() is None
    assert _story(priority=5).validate() is None


def test_story_priority_must_be_integer():
    assert _story(priority="3").validate() is not None
    assert _story(priority=True).validate() is not None
    assert _story(priority=2.5).validate() is not None


def test_story_requires_title_and_narrative():
    assert _story(title="  ").validate() == "title and user story are required"
    assert _story(user_story="").validate() == "title and user story are required"


def test_story_update_checks_only_set_fields():
    assert StoryUpdate().validate() is None
    assert StoryUpdate(priority=9).validate() is not None
    assert StoryUpdate(status="nope").validate() is not None


def test_task_requires_end():
    task = TaskInsert(story_id="s1", title="Write tests", end_at=None)
    assert task.validate() == "end date is required"
    task.end_at = datetime(2026, 4, 1, tzinfo=timezone.utc)
    assert task.validate() is None


def test_task_update_rejects_cleared_end():
    assert TaskUpdate(end_at=None).validate() == "end date is required"
    assert TaskUpdate(title="x").validate() is None


def test_daily_task_end_after_start():
    start = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)
    entry = DailyTaskInsert(owner_user_id="u1", title="Standup", start_at=start, end_at=start)
    assert entry.validate() == "end must be after start"
    entry.end_at = start - timedelta(minutes=5)
    assert entry.validate() == "end must be after start"
    entry.end_at = start + timedelta(minutes=15)
    assert entry.validate() is None


def test_domain_epic_project_required_names():
    assert DomainInsert(owner_user_id="u1", name=" ").validate() == "domain name is required"
    assert EpicInsert(project_id="p1", title="").validate() == "epic title is required"
    proj = ProjectInsert(owner_user_id="u1", name="CRM", project_type="")
    assert proj.validate() == "project type is required"
    proj.project_type = "legacy"
    assert "invalid project type" in proj.validate()
    proj.project_type = "existing"
    assert proj.validate() is None


def test_update_rejects_cleared_required_text():
    assert ProjectUpdate(name=None).validate() == "project name is required"
    assert StoryUpdate(title=None).validate() == "story title is required"
    assert StoryUpdate(user_story=None).validate() == "user story is required"
    assert TaskUpdate(title=None).validate() == "task title is required"


def test_update_patch_only_has_set_fields():
    patch = ProjectUpdate(name="Renamed", domain_id=None)
    assert patch.to_patch() == {"name": "Renamed", "domain_id": None}
    assert ProjectUpdate().to_patch() == {}
    assert not UNSET


def test_payload_serializes_datetimes():
    end = datetime(2026, 4, 1, 17, 30, tzinfo=timezone.utc)
    payload = TaskInsert(story_id="s1", title="Ship", end_at=end).to_payload()
    assert payload["end_at"] == "2026-04-01T17:30:00.000000Z"
    assert payload["order_no"] is None


def test_format_timestamp_normalizes_to_utc():
    local = datetime(2026, 4, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(local) == "2026-04-01T10:00:00.000000Z"
    assert format_timestamp(None) is None


def test_parse_timestamp():
    dt = parse_timestamp("2026-01-15T10:00:00Z")
    assert dt is not None
    assert dt.year == 2026
    assert dt.tzinfo is not None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None


def test_from_row_and_to_dict():
    row = {
        "id": "p-1", "owner_user_id": "u1", "name": "CRM", "project_type": "new",
        "status": "intel", "active": True, "domain_id": None,
        "created_at": "2026-01-15T10:00:00.000000Z",
        "updated_at": "2026-01-15T10:00:00.000000Z",
    }
    proj = Project.from_row(row)
    assert proj.active is True
    d = proj.to_dict()
    assert d["created_at"] == "2026-01-15T10:00:00.000000Z"
    assert d["domain_id"] is None


def test_task_from_row_optional_start():
    task = Task.from_row({
        "id": "t1", "story_id": "s1", "title": "x", "status": "done",
        "end_at": "2026-04-01T00:00:00Z", "order_no": 2,
    })
    assert task.start_at is None
    assert task.end_at == datetime(2026, 4, 1, tzinfo=timezone.utc)
    assert task.order_no == 2
