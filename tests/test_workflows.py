"""Tests for validated workflows, the epic cascade and concurrent loads."""

from datetime import datetime, timedelta, timezone

import pytest

from core2.errors import CascadeDeleteError, NotFoundError, StoreError, ValidationError
from core2.models import DailyTaskUpdate, DomainUpdate, EpicUpdate, TaskStatus, TaskUpdate
from core2.repo import Repositories
from core2.templates import DEFAULT_USER_STORY
from core2.workflows import (
    coerce_instant, create_daily_task, create_domain, create_epic, create_project,
    create_story, create_task, delete_epic_cascade, ensure_analysis_document,
    load_project_details, load_workspace, move_task, open_project, save_analysis,
    update_daily_task, update_domain, update_epic, update_task,
)

END = datetime(2026, 4, 30, 18, 0, tzinfo=timezone.utc)


class RecordingStore:
    """Wraps a real store, records calls and fails on demand."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []
        self.fail_delete = set()
        self.fail_update = set()
        self.fail_select = set()

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def select(self, table, **kwargs):
        self.calls.append(("select", table))
        if table in self.fail_select:
            raise StoreError(f"permission denied for table {table}")
        return self.inner.select(table, **kwargs)

    def insert(self, table, values):
        self.calls.append(("insert", table))
        return self.inner.insert(table, values)

    def update(self, table, row_id, patch):
        self.calls.append(("update", table, row_id))
        if row_id in self.fail_update:
            raise StoreError("connection reset")
        return self.inner.update(table, row_id, patch)

    def delete(self, table, row_id):
        self.calls.append(("delete", table, row_id))
        if row_id in self.fail_delete:
            raise StoreError(f"permission denied for table {table}")
        return self.inner.delete(table, row_id)


@pytest.fixture
def store(repos: Repositories):
    return RecordingStore(repos.domains.store)


@pytest.fixture
def wrapped(store: RecordingStore):
    return Repositories.for_store(store)


def _project(repos: Repositories):
    proj, _ = create_project(repos, "u1", "CRM", "new")
    return proj


def _story(repos: Repositories, project_id: str, title: str = "Story", **kwargs):
    return create_story(repos, project_id, title, **kwargs)


class TestValidation:
    def test_story_priority_range(self, repos: Repositories):
        proj = _project(repos)
        for bad in (0, 6, "0", "6"):
            with pytest.raises(ValidationError, match="between 1 and 5"):
                _story(repos, proj.id, priority=bad)
        assert _story(repos, proj.id, priority=1).priority == 1
        assert _story(repos, proj.id, priority="5").priority == 5

    def test_story_defaults(self, repos: Repositories):
        proj = _project(repos)
        story = _story(repos, proj.id)
        assert story.status == "start"
        assert story.priority == 3
        assert story.user_story == DEFAULT_USER_STORY

    def test_story_narrative_must_keep_placeholders(self, wrapped: Repositories,
                                                    store: RecordingStore):
        store.calls.clear()
        with pytest.raises(ValidationError, match="placeholders"):
            create_story(wrapped, "p1", "Login", user_story="As a user I want to log in")
        assert store.calls == []

    def test_story_narrative_scaffold_restored(self, repos: Repositories):
        proj = _project(repos)
        story = _story(repos, proj.id, user_story="[admin] [reports] [planning]")
        assert story.user_story == "As a [admin],\nI want [reports],\nso that [planning]."

    def test_task_without_end_rejected_before_store(self, wrapped: Repositories,
                                                    store: RecordingStore):
        store.calls.clear()
        with pytest.raises(ValidationError, match="end date is required"):
            create_task(wrapped, "s1", "Write docs", end_at=None)
        with pytest.raises(ValidationError, match="end date is required"):
            create_task(wrapped, "s1", "Write docs", end_at="  ")
        with pytest.raises(ValidationError, match="end date is required"):
            update_task(wrapped, "t1", TaskUpdate(end_at=None))
        assert store.calls == []

    def test_task_unparseable_end(self, repos: Repositories):
        with pytest.raises(ValidationError, match="not a valid date"):
            create_task(repos, "s1", "Write docs", end_at="next tuesday")

    def test_daily_task_end_must_follow_start(self, wrapped: Repositories,
                                              store: RecordingStore):
        store.calls.clear()
        start = datetime(2026, 4, 10, 9, 0, tzinfo=timezone.utc)
        with pytest.raises(ValidationError, match="end must be after start"):
            create_daily_task(wrapped, "u1", "Standup", start, start)
        with pytest.raises(ValidationError, match="end must be after start"):
            create_daily_task(wrapped, "u1", "Standup", start, start - timedelta(hours=1))
        assert store.calls == []
        entry = create_daily_task(wrapped, "u1", "Standup", start, start + timedelta(hours=1))
        assert entry.kind == "meeting"

    def test_epic_title_required(self, repos: Repositories):
        with pytest.raises(ValidationError, match="epic title is required"):
            create_epic(repos, "p1", "   ")

    def test_coerce_instant(self):
        assert coerce_instant(None) is None
        assert coerce_instant("") is None
        dt = coerce_instant("2026-04-10T09:00:00Z")
        assert dt == datetime(2026, 4, 10, 9, 0, tzinfo=timezone.utc)
        assert coerce_instant("2026-04-10").tzinfo is not None


class TestUpdates:
    def test_domain_name_cleared_is_rejected(self, repos: Repositories):
        dom = create_domain(repos, "u1", "Sales")
        for name in (None, "  "):
            with pytest.raises(ValidationError, match="domain name is required"):
                update_domain(repos, dom.id, DomainUpdate(name=name))
        assert update_domain(repos, dom.id, DomainUpdate(name="Retail")).name == "Retail"

    def test_epic_update(self, repos: Repositories):
        epic = create_epic(repos, _project(repos).id, "Billing", "old")
        with pytest.raises(ValidationError, match="epic title is required"):
            update_epic(repos, epic.id, EpicUpdate(title=""))
        updated = update_epic(repos, epic.id, EpicUpdate(title="Invoicing", description=" "))
        assert updated.title == "Invoicing"
        assert updated.description is None
        assert updated.order_no == epic.order_no

    def test_daily_task_update_keeps_span_valid(self, repos: Repositories,
                                                wrapped: Repositories,
                                                store: RecordingStore):
        start = datetime(2026, 4, 10, 9, 0, tzinfo=timezone.utc)
        entry = create_daily_task(repos, "u1", "Standup", start, start + timedelta(hours=1))
        store.calls.clear()
        with pytest.raises(ValidationError, match="end must be after start"):
            update_daily_task(wrapped, entry,
                              DailyTaskUpdate(start_at=start + timedelta(hours=2)))
        with pytest.raises(ValidationError, match="start and end are required"):
            update_daily_task(wrapped, entry, DailyTaskUpdate(end_at=None))
        assert store.calls == []
        moved = update_daily_task(repos, entry, DailyTaskUpdate(
            start_at=start + timedelta(hours=2), end_at=start + timedelta(hours=3)))
        assert moved.start_at == start + timedelta(hours=2)
        assert moved.title == "Standup"


class TestProjects:
    def test_create_project_creates_analysis_document(self, repos: Repositories):
        proj, doc = create_project(repos, "u1", "CRM", "existing")
        assert proj.status == "intel"
        assert proj.active is True
        assert repos.analyses.list_by_project(proj.id)[0].id == doc.id

    def test_project_type_required(self, repos: Repositories):
        with pytest.raises(ValidationError, match="project type is required"):
            create_project(repos, "u1", "CRM", "")

    def test_analysis_created_lazily(self, repos: Repositories):
        proj = _project(repos)
        repos.analyses.remove(repos.analyses.list_by_project(proj.id)[0].id)
        doc = ensure_analysis_document(repos, proj.id)
        assert doc.project_id == proj.id
        assert ensure_analysis_document(repos, proj.id).id == doc.id

    def test_save_analysis_blank_is_null(self, repos: Repositories):
        proj, doc = create_project(repos, "u1", "CRM", "new")
        doc = save_analysis(repos, doc.id, {"pain": "slow invoicing", "context": "  "},
                            is_done=True)
        assert doc.pain == "slow invoicing"
        assert doc.context is None
        assert doc.is_done is True
        with pytest.raises(ValidationError):
            save_analysis(repos, doc.id, {"budget": "x"})

    def test_open_project_remembers_and_heals(self, repos: Repositories):
        proj = _project(repos)
        repos.analyses.remove(repos.analyses.list_by_project(proj.id)[0].id)
        remembered = []
        opened, details = open_project(repos, proj.id, remember=remembered.append)
        assert opened.id == proj.id
        assert details.analysis.project_id == proj.id
        assert remembered == [proj.id]

    def test_open_missing_project_is_blocking(self, repos: Repositories):
        remembered = []
        with pytest.raises(NotFoundError):
            open_project(repos, "missing", remember=remembered.append)
        assert remembered == []


class TestMoveTask:
    def _tasks(self, repos: Repositories):
        proj = _project(repos)
        story = _story(repos, proj.id)
        create_task(repos, story.id, "one", END)
        create_task(repos, story.id, "two", END)
        return repos.tasks.list_by_story(story.id)

    def test_same_status_makes_no_call(self, repos: Repositories,
                                       wrapped: Repositories, store: RecordingStore):
        tasks = self._tasks(repos)
        store.calls.clear()
        result = move_task(wrapped, tasks, tasks[0].id, TaskStatus.ICEBOX)
        assert store.calls == []
        assert result == tasks

    def test_move_updates_one_row(self, repos: Repositories,
                                  wrapped: Repositories, store: RecordingStore):
        tasks = self._tasks(repos)
        store.calls.clear()
        result = move_task(wrapped, tasks, tasks[1].id, TaskStatus.DONE)
        assert store.calls == [("update", "task", tasks[1].id)]
        assert result[1].status == "done"
        assert result[0] is tasks[0]
        assert tasks[1].status == "icebox"

    def test_failed_move_leaves_list_untouched(self, repos: Repositories,
                                               wrapped: Repositories, store: RecordingStore):
        tasks = self._tasks(repos)
        store.fail_update.add(tasks[0].id)
        before = list(tasks)
        with pytest.raises(StoreError, match="connection reset"):
            move_task(wrapped, tasks, tasks[0].id, TaskStatus.IN_PROGRESS)
        assert tasks == before
        assert repos.tasks.get_by_id(tasks[0].id).status == "icebox"


class TestEpicCascade:
    def _tree(self, repos: Repositories):
        proj = _project(repos)
        epic = create_epic(repos, proj.id, "Billing")
        first = _story(repos, proj.id, "first", priority=5, epic_id=epic.id)
        second = _story(repos, proj.id, "second", priority=3, epic_id=epic.id)
        other = _story(repos, proj.id, "unrelated")
        tasks = {
            first.id: [create_task(repos, first.id, f"f{i}", END) for i in range(2)],
            second.id: [create_task(repos, second.id, f"s{i}", END) for i in range(2)],
        }
        return proj, epic, first, second, other, tasks

    def test_deletes_in_order(self, repos: Repositories,
                              wrapped: Repositories, store: RecordingStore):
        proj, epic, first, second, other, tasks = self._tree(repos)
        store.calls.clear()
        result = delete_epic_cascade(wrapped, epic.id)

        deletes = [c for c in store.calls if c[0] == "delete"]
        assert deletes == [
            ("delete", "task", tasks[first.id][0].id),
            ("delete", "task", tasks[first.id][1].id),
            ("delete", "story", first.id),
            ("delete", "task", tasks[second.id][0].id),
            ("delete", "task", tasks[second.id][1].id),
            ("delete", "story", second.id),
            ("delete", "epic", epic.id),
        ]
        assert result.story_ids == [first.id, second.id]
        assert len(result.task_ids) == 4
        assert repos.epics.list_by_project(proj.id) == []
        assert [s.id for s in repos.stories.list_by_project(proj.id)] == [other.id]

    def test_failure_halts_and_keeps_partial_state(self, repos: Repositories,
                                                   wrapped: Repositories,
                                                   store: RecordingStore):
        proj, epic, first, second, other, tasks = self._tree(repos)
        store.fail_delete.add(tasks[second.id][0].id)

        with pytest.raises(CascadeDeleteError) as excinfo:
            delete_epic_cascade(wrapped, epic.id)
        assert excinfo.value.message == "permission denied for table task"

        # Completed deletions stay in effect
        assert repos.tasks.list_by_story(first.id) == []
        with pytest.raises(NotFoundError):
            repos.stories.get_by_id(first.id)
        # Nothing after the failure ran
        assert len(repos.tasks.list_by_story(second.id)) == 2
        assert repos.stories.get_by_id(second.id).id == second.id
        assert repos.epics.get_by_id(epic.id).id == epic.id
        deletes = [c for c in store.calls if c[0] == "delete"]
        assert deletes[-1] == ("delete", "task", tasks[second.id][0].id)

    def test_apply_drops_local_rows(self, repos: Repositories):
        proj, epic, first, second, other, tasks = self._tree(repos)
        epics = repos.epics.list_by_project(proj.id)
        stories = repos.stories.list_by_project(proj.id)
        result = delete_epic_cascade(repos, epic.id)
        epics, stories = result.apply(epics, stories)
        assert epics == []
        assert [s.id for s in stories] == [other.id]

    def test_epic_without_stories(self, repos: Repositories):
        proj = _project(repos)
        epic = create_epic(repos, proj.id, "Empty")
        result = delete_epic_cascade(repos, epic.id)
        assert result.story_ids == []
        assert repos.epics.list_by_project(proj.id) == []


class TestConcurrentLoads:
    def test_workspace_collects_partial_failure(self, repos: Repositories,
                                                wrapped: Repositories,
                                                store: RecordingStore):
        _project(repos)
        store.fail_select.add("core_domain")
        ws = load_workspace(wrapped, "u1")
        assert [p.name for p in ws.projects] == ["CRM"]
        assert ws.domains == []
        assert ws.errors == {"domains": "permission denied for table core_domain"}

    def test_project_details_partial_failure(self, repos: Repositories,
                                             wrapped: Repositories, store: RecordingStore):
        proj = _project(repos)
        _story(repos, proj.id)
        store.fail_select.add("epic")
        details = load_project_details(wrapped, proj.id)
        assert details.epics == []
        assert len(details.stories) == 1
        assert set(details.errors) == {"epics"}

    def test_analysis_failure_is_blocking(self, repos: Repositories,
                                          wrapped: Repositories, store: RecordingStore):
        proj = _project(repos)
        store.fail_select.add("analysis_document")
        with pytest.raises(StoreError):
            load_project_details(wrapped, proj.id)
