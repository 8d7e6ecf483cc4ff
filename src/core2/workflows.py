"""Validated operations that sit between commands and the repositories.

Every create/update here validates its input first and raises
ValidationError without touching the store when the input is rejected.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Callable, Sequence

from core2.errors import CascadeDeleteError, NotFoundError, StoreError, ValidationError
from core2.models import (
    ANALYSIS_FIELDS, UNSET, AnalysisDocument, AnalysisDocumentInsert,
    AnalysisDocumentUpdate, DailyTask, DailyTaskInsert, DailyTaskKind, DailyTaskUpdate,
    Domain, DomainInsert, DomainUpdate, Epic, EpicInsert, EpicUpdate, Project,
    ProjectInsert, ProjectUpdate, Story, StoryInsert, StoryUpdate, Task, TaskInsert,
    TaskStatus, TaskUpdate, TestLog, TestLogInsert, parse_timestamp,
)
from core2.repo import Repositories
from core2.templates import (
    DEFAULT_ACCEPTANCE_CRITERIA, DEFAULT_USER_STORY, apply_bracket_values, bracket_values,
)
from core2.views import replace_by_id

logger = logging.getLogger(__name__)

DEFAULT_DAILY_START = "09:00"
DEFAULT_DAILY_END = "10:00"


def _check(err: str | None) -> None:
    if err:
        raise ValidationError(err)


# --- Input coercion ---

def coerce_instant(value: Any, field_name: str = "date") -> datetime | None:
    """Turn user input into an aware datetime.

    Blank input gives None. Naive values are taken as local time.
    """
    if value is None or value is UNSET:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            dt = parse_timestamp(text)
        except ValueError:
            raise ValidationError(f"{field_name} is not a valid date/time: {text}") from None
        if dt is None:
            return None
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt


def coerce_priority(value: Any) -> Any:
    """Accept priority as int or numeric text. Range is checked by validate()."""
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise ValidationError(f"priority must be an integer, got {value!r}") from None
    return value


def local_instant(day: date, clock: str) -> datetime:
    """Combine a calendar day and an HH:MM clock time in local time."""
    try:
        parsed = datetime.strptime(clock.strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"time must be HH:MM, got {clock!r}") from None
    return datetime.combine(day, parsed).astimezone()


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


def _keep_template(template: str, text: str, field_name: str) -> str:
    expected = len(bracket_values(template))
    values = bracket_values(text)
    if len(values) != expected:
        raise ValidationError(
            f"{field_name} must keep the template's {expected} [placeholders] (got {len(values)})"
        )
    return apply_bracket_values(template, values)


# --- Domains and projects ---

def create_domain(repos: Repositories, owner_id: str, name: str,
                  code: str | None = None, color: str | None = None) -> Domain:
    payload = DomainInsert(owner_user_id=owner_id, name=name,
                           code=_blank_to_none(code), color=_blank_to_none(color))
    _check(payload.validate())
    return repos.domains.create(payload)


def update_domain(repos: Repositories, domain_id: str, patch: DomainUpdate) -> Domain:
    if patch.name is not UNSET and not (patch.name or "").strip():
        raise ValidationError("domain name is required")
    return repos.domains.update(domain_id, patch)


def create_project(repos: Repositories, owner_id: str, name: str, project_type: str,
                   domain_id: str | None = None, **extra: Any) -> tuple[Project, AnalysisDocument]:
    """Create a project together with its empty analysis document."""
    payload = ProjectInsert(owner_user_id=owner_id, name=name, project_type=project_type,
                            domain_id=domain_id, **extra)
    _check(payload.validate())
    project = repos.projects.create(payload)
    doc = repos.analyses.create(AnalysisDocumentInsert(project_id=project.id))
    logger.info("created project %s", project.id)
    return project, doc


def update_project(repos: Repositories, project_id: str, patch: ProjectUpdate) -> Project:
    _check(patch.validate())
    return repos.projects.update(project_id, patch)


# --- Analysis document ---

def ensure_analysis_document(repos: Repositories, project_id: str,
                             docs: Sequence[AnalysisDocument] | None = None) -> AnalysisDocument:
    """Return the project's analysis document, creating it if missing."""
    if docs is None:
        docs = repos.analyses.list_by_project(project_id)
    if docs:
        return docs[0]
    logger.info("creating missing analysis document for project %s", project_id)
    return repos.analyses.create(AnalysisDocumentInsert(project_id=project_id))


def save_analysis(repos: Repositories, doc_id: str, values: dict[str, str | None],
                  is_done: bool | None = None) -> AnalysisDocument:
    """Save the six analysis fields. Blank text is stored as null."""
    patch = AnalysisDocumentUpdate()
    for name, value in values.items():
        if name not in ANALYSIS_FIELDS:
            raise ValidationError(f"unknown analysis field: {name}")
        setattr(patch, name, _blank_to_none(value))
    if is_done is not None:
        patch.is_done = is_done
    return repos.analyses.update(doc_id, patch)


# --- Epics ---

def create_epic(repos: Repositories, project_id: str, title: str,
                description: str | None = None) -> Epic:
    payload = EpicInsert(project_id=project_id, title=title,
                         description=_blank_to_none(description))
    _check(payload.validate())
    return repos.epics.create(payload)


def update_epic(repos: Repositories, epic_id: str, patch: EpicUpdate) -> Epic:
    if patch.description is not UNSET:
        patch.description = _blank_to_none(patch.description)
    _check(patch.validate())
    return repos.epics.update(epic_id, patch)


@dataclass
class CascadeResult:
    """What an epic cascade removed, in deletion order."""
    epic_id: str
    task_ids: list[str] = field(default_factory=list)
    story_ids: list[str] = field(default_factory=list)

    def apply(self, epics: Sequence[Epic],
              stories: Sequence[Story]) -> tuple[list[Epic], list[Story]]:
        """Drop the removed epic and stories from locally held lists."""
        removed = set(self.story_ids)
        return (
            [e for e in epics if e.id != self.epic_id],
            [s for s in stories if s.id not in removed and s.epic_id != self.epic_id],
        )


def delete_epic_cascade(repos: Repositories, epic_id: str) -> CascadeResult:
    """Delete an epic with its stories and their tasks.

    Stops at the first failure. Deletions already made stay in effect.
    """
    result = CascadeResult(epic_id=epic_id)
    try:
        for story in repos.stories.list_by_epic(epic_id):
            for task in repos.tasks.list_by_story(story.id):
                repos.tasks.remove(task.id)
                result.task_ids.append(task.id)
            repos.stories.remove(story.id)
            result.story_ids.append(story.id)
        repos.epics.remove(epic_id)
    except StoreError as e:
        logger.warning("epic cascade for %s stopped after %d task(s), %d story(ies): %s",
                       epic_id, len(result.task_ids), len(result.story_ids), e.message)
        raise CascadeDeleteError(e.message) from e
    logger.info("deleted epic %s with %d story(ies), %d task(s)",
                epic_id, len(result.story_ids), len(result.task_ids))
    return result


# --- Stories ---

def create_story(repos: Repositories, project_id: str, title: str,
                 user_story: str = DEFAULT_USER_STORY,
                 acceptance_criteria: str = DEFAULT_ACCEPTANCE_CRITERIA,
                 priority: Any = 3, epic_id: str | None = None) -> Story:
    payload = StoryInsert(
        project_id=project_id,
        title=title,
        user_story=user_story,
        acceptance_criteria=acceptance_criteria,
        priority=coerce_priority(priority),
        epic_id=epic_id or None,
    )
    _check(payload.validate())
    payload.user_story = _keep_template(DEFAULT_USER_STORY, user_story, "user story")
    payload.acceptance_criteria = _keep_template(
        DEFAULT_ACCEPTANCE_CRITERIA, acceptance_criteria, "acceptance criteria")
    return repos.stories.create(payload)


def update_story(repos: Repositories, story_id: str, patch: StoryUpdate) -> Story:
    if patch.priority is not UNSET:
        patch.priority = coerce_priority(patch.priority)
    _check(patch.validate())
    if patch.user_story is not UNSET:
        patch.user_story = _keep_template(DEFAULT_USER_STORY, patch.user_story, "user story")
    if patch.acceptance_criteria is not UNSET:
        patch.acceptance_criteria = _keep_template(
            DEFAULT_ACCEPTANCE_CRITERIA, patch.acceptance_criteria, "acceptance criteria")
    return repos.stories.update(story_id, patch)


# --- Tasks ---

def create_task(repos: Repositories, story_id: str, title: str, end_at: Any,
                acceptance_note: str | None = None, start_at: Any = None,
                status: str = TaskStatus.ICEBOX) -> Task:
    payload = TaskInsert(
        story_id=story_id,
        title=title,
        end_at=coerce_instant(end_at, "end date"),
        acceptance_note=_blank_to_none(acceptance_note),
        status=status,
        start_at=coerce_instant(start_at, "start date"),
    )
    _check(payload.validate())
    return repos.tasks.create(payload)


def update_task(repos: Repositories, task_id: str, patch: TaskUpdate) -> Task:
    if patch.end_at is not UNSET:
        patch.end_at = coerce_instant(patch.end_at, "end date")
    if patch.start_at is not UNSET:
        patch.start_at = coerce_instant(patch.start_at, "start date")
    _check(patch.validate())
    return repos.tasks.update(task_id, patch)


def move_task(repos: Repositories, tasks: Sequence[Task], task_id: str,
              target_status: str) -> list[Task]:
    """Drop a task on a board column.

    One update when the status changes, none otherwise. On failure the
    error propagates and the caller's list is left as it was.
    """
    if not TaskStatus.is_valid(target_status):
        raise ValidationError(f"invalid task status: {target_status}")
    current = next((t for t in tasks if t.id == task_id), None)
    if current is None:
        raise NotFoundError("task", task_id)
    if current.status == target_status:
        return list(tasks)
    updated = repos.tasks.update(task_id, TaskUpdate(status=target_status))
    logger.debug("moved task %s: %s -> %s", task_id, current.status, target_status)
    return replace_by_id(tasks, updated)


# --- Daily calendar ---

def create_daily_task(repos: Repositories, owner_id: str, title: str, start_at: Any,
                      end_at: Any, kind: str = DailyTaskKind.MEETING,
                      notes: str | None = None) -> DailyTask:
    payload = DailyTaskInsert(
        owner_user_id=owner_id,
        title=title,
        start_at=coerce_instant(start_at, "start"),
        end_at=coerce_instant(end_at, "end"),
        kind=kind,
        notes=_blank_to_none(notes),
    )
    _check(payload.validate())
    return repos.daily_tasks.create(payload)


def update_daily_task(repos: Repositories, entry: DailyTask,
                      patch: DailyTaskUpdate) -> DailyTask:
    """Update a calendar entry. The resulting span must still end after it starts."""
    if patch.start_at is not UNSET:
        patch.start_at = coerce_instant(patch.start_at, "start")
    if patch.end_at is not UNSET:
        patch.end_at = coerce_instant(patch.end_at, "end")
    if patch.notes is not UNSET:
        patch.notes = _blank_to_none(patch.notes)
    _check(patch.validate())
    start = entry.start_at if patch.start_at is UNSET else patch.start_at
    end = entry.end_at if patch.end_at is UNSET else patch.end_at
    if end <= start:
        raise ValidationError("end must be after start")
    return repos.daily_tasks.update(entry.id, patch)


# --- Test logs ---

def create_test_log(repos: Repositories, story_id: str, notes: str,
                    task_id: str | None = None) -> TestLog:
    if not notes.strip():
        raise ValidationError("notes are required")
    return repos.test_logs.create(TestLogInsert(story_id=story_id, notes=notes,
                                                task_id=task_id or None))


# --- Concurrent loads ---

def _gather(calls: dict[str, Callable[[], Any]]) -> tuple[dict[str, Any], dict[str, str]]:
    """Run independent list calls concurrently.

    Store failures are collected per call; the other results still arrive.
    """
    results: dict[str, Any] = {}
    errors: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures = {name: pool.submit(fn) for name, fn in calls.items()}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except StoreError as e:
                logger.warning("loading %s failed: %s", name, e.message)
                errors[name] = e.message
    return results, errors


@dataclass
class Workspace:
    domains: list[Domain] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def load_workspace(repos: Repositories, owner_id: str) -> Workspace:
    """Domains and projects for the owner, fetched side by side."""
    results, errors = _gather({
        "projects": lambda: repos.projects.list_by_owner(owner_id),
        "domains": lambda: repos.domains.list_by_owner(owner_id),
    })
    return Workspace(
        domains=results.get("domains", []),
        projects=results.get("projects", []),
        errors=errors,
    )


@dataclass
class ProjectDetails:
    analysis: AnalysisDocument
    epics: list[Epic] = field(default_factory=list)
    stories: list[Story] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def load_project_details(repos: Repositories, project_id: str) -> ProjectDetails:
    """Analysis document, epics and stories of a project, fetched side by side.

    A failed analysis load is blocking. Epic and story failures are reported
    in errors while the other list is still returned.
    """
    results, errors = _gather({
        "analysis": lambda: repos.analyses.list_by_project(project_id),
        "epics": lambda: repos.epics.list_by_project(project_id),
        "stories": lambda: repos.stories.list_by_project(project_id),
    })
    if "analysis" in errors:
        raise StoreError(errors["analysis"])
    doc = ensure_analysis_document(repos, project_id, results["analysis"])
    return ProjectDetails(
        analysis=doc,
        epics=results.get("epics", []),
        stories=results.get("stories", []),
        errors=errors,
    )


def open_project(repos: Repositories, project_id: str,
                 remember: Callable[[str], None] | None = None) -> tuple[Project, ProjectDetails]:
    """Load a project for viewing and record it as the last one opened.

    A missing project raises NotFoundError.
    """
    project = repos.projects.get_by_id(project_id)
    details = load_project_details(repos, project_id)
    if remember is not None:
        remember(project.id)
    return project, details


@dataclass
class StoryDetails:
    tasks: list[Task] = field(default_factory=list)
    test_logs: list[TestLog] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)


def load_story_details(repos: Repositories, story_id: str) -> StoryDetails:
    results, errors = _gather({
        "tasks": lambda: repos.tasks.list_by_story(story_id),
        "test_logs": lambda: repos.test_logs.list_by_story(story_id),
    })
    return StoryDetails(
        tasks=results.get("tasks", []),
        test_logs=results.get("test_logs", []),
        errors=errors,
    )
