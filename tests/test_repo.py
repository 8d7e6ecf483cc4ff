"""Tests for the per-table repositories."""

from datetime import datetime, timedelta, timezone

import pytest

from core2.errors import NotFoundError
from core2.models import (
    AnalysisDocumentInsert, DailyTaskInsert, DomainInsert, DomainUpdate, EpicInsert,
    Pagination, ProjectInsert, StoryInsert, TaskInsert, TestLogInsert,
)
from core2.repo import Repositories

END = datetime(2026, 4, 30, 18, 0, tzinfo=timezone.utc)


def _project(repos: Repositories, name: str = "CRM", owner: str = "u1"):
    return repos.projects.create(ProjectInsert(owner_user_id=owner, name=name,
                                               project_type="new"))


class TestDomainRepository:
    def test_create_get_update_remove(self, repos: Repositories):
        dom = repos.domains.create(DomainInsert(owner_user_id="u1", name="Sales", code="SL"))
        assert repos.domains.get_by_id(dom.id).code == "SL"
        updated = repos.domains.update(dom.id, DomainUpdate(code=None))
        assert updated.code is None
        assert updated.name == "Sales"
        removed = repos.domains.remove(dom.id)
        assert removed.id == dom.id
        assert repos.domains.list_by_owner("u1") == []

    def test_missing_rows_raise_not_found(self, repos: Repositories):
        with pytest.raises(NotFoundError, match="core_domain not found"):
            repos.domains.get_by_id("missing")
        with pytest.raises(NotFoundError):
            repos.domains.update("missing", DomainUpdate(name="x"))
        with pytest.raises(NotFoundError):
            repos.domains.remove("missing")

    def test_list_newest_first_scoped_to_owner(self, repos: Repositories):
        for name in ("A", "B", "C"):
            repos.domains.create(DomainInsert(owner_user_id="u1", name=name))
        repos.domains.create(DomainInsert(owner_user_id="u2", name="other"))
        assert [d.name for d in repos.domains.list_by_owner("u1")] == ["C", "B", "A"]
        page = repos.domains.list_by_owner("u1", Pagination(offset=1, limit=1))
        assert [d.name for d in page] == ["B"]

    def test_empty_list(self, repos: Repositories):
        assert repos.domains.list_by_owner("nobody") == []


class TestProjectTree:
    def test_epics_in_order(self, repos: Repositories):
        proj = _project(repos)
        for title in ("first", "second", "third"):
            repos.epics.create(EpicInsert(project_id=proj.id, title=title))
        epics = repos.epics.list_by_project(proj.id)
        assert [e.title for e in epics] == ["first", "second", "third"]
        assert [e.order_no for e in epics] == [1, 2, 3]

    def test_stories_by_priority_then_newest(self, repos: Repositories):
        proj = _project(repos)
        for title, priority in (("low", 1), ("high-old", 5), ("mid", 3), ("high-new", 5)):
            repos.stories.create(StoryInsert(project_id=proj.id, title=title,
                                             user_story="u", priority=priority))
        titles = [s.title for s in repos.stories.list_by_project(proj.id)]
        assert titles == ["high-new", "high-old", "mid", "low"]

    def test_stories_by_epic(self, repos: Repositories):
        proj = _project(repos)
        epic = repos.epics.create(EpicInsert(project_id=proj.id, title="E"))
        repos.stories.create(StoryInsert(project_id=proj.id, title="in", user_story="u",
                                         epic_id=epic.id))
        repos.stories.create(StoryInsert(project_id=proj.id, title="out", user_story="u"))
        assert [s.title for s in repos.stories.list_by_epic(epic.id)] == ["in"]

    def test_tasks_appended_with_order_no(self, repos: Repositories):
        proj = _project(repos)
        story = repos.stories.create(StoryInsert(project_id=proj.id, title="S", user_story="u"))
        t1 = repos.tasks.create(TaskInsert(story_id=story.id, title="one", end_at=END))
        t2 = repos.tasks.create(TaskInsert(story_id=story.id, title="two", end_at=END))
        assert (t1.order_no, t2.order_no) == (1, 2)
        assert [t.id for t in repos.tasks.list_by_story(story.id)] == [t1.id, t2.id]
        assert t1.end_at == END

    def test_analysis_and_test_logs(self, repos: Repositories):
        proj = _project(repos)
        doc = repos.analyses.create(AnalysisDocumentInsert(project_id=proj.id, pain="slow"))
        assert repos.analyses.list_by_project(proj.id)[0].id == doc.id
        assert doc.is_done is False
        story = repos.stories.create(StoryInsert(project_id=proj.id, title="S", user_story="u"))
        repos.test_logs.create(TestLogInsert(story_id=story.id, notes="first"))
        repos.test_logs.create(TestLogInsert(story_id=story.id, notes="second"))
        assert [log.notes for log in repos.test_logs.list_by_story(story.id)] == [
            "second", "first"]


class TestDailyTaskRepository:
    def test_range_and_order(self, repos: Repositories):
        base = datetime(2026, 4, 10, 9, 0, tzinfo=timezone.utc)
        for title, offset in (("late", 8), ("early", 0), ("next day", 24)):
            start = base + timedelta(hours=offset)
            repos.daily_tasks.create(DailyTaskInsert(
                owner_user_id="u1", title=title, start_at=start,
                end_at=start + timedelta(hours=1)))
        day_start = datetime(2026, 4, 10, tzinfo=timezone.utc)
        day_end = day_start + timedelta(days=1) - timedelta(microseconds=1)
        entries = repos.daily_tasks.list_by_owner_and_range("u1", day_start, day_end)
        assert [e.title for e in entries] == ["early", "late"]
        assert len(repos.daily_tasks.list_by_owner("u1")) == 3
        assert repos.daily_tasks.list_by_owner_and_range("u2", day_start, day_end) == []

    def test_resolve_partial_id(self, repos: Repositories):
        start = datetime(2026, 4, 10, 9, 0, tzinfo=timezone.utc)
        entry = repos.daily_tasks.create(DailyTaskInsert(
            owner_user_id="u1", title="x", start_at=start, end_at=start + timedelta(hours=1)))
        assert repos.daily_tasks.resolve_id(entry.id[:6]) == entry.id
