"""Derived views over loaded rows: board columns, filters, calendar grid."""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Sequence, TypeVar

from core2.models import DailyTask, Domain, Epic, Project, Story, Task, TaskStatus

T = TypeVar("T")

# Project filter selection meaning "projects without a domain"
DOMAIN_NONE = "none"
# Story bucket for stories without a loaded epic
NO_EPIC = "none"


# --- Task board ---

def bucket_tasks_by_status(tasks: Iterable[Task]) -> dict[str, list[Task]]:
    """Split tasks into the board's columns, keeping relative order."""
    buckets: dict[str, list[Task]] = {status: [] for status in TaskStatus.ALL}
    for task in tasks:
        column = buckets.get(task.status)
        if column is not None:
            column.append(task)
    return buckets


def replace_by_id(items: Sequence[T], updated: T) -> list[T]:
    """Copy of items with the row sharing updated's id swapped in."""
    target = getattr(updated, "id")
    return [updated if getattr(item, "id") == target else item for item in items]


def remove_by_id(items: Sequence[T], row_id: str) -> list[T]:
    return [item for item in items if getattr(item, "id") != row_id]


# --- Project and story filters ---

def filter_projects_by_domain(projects: Iterable[Project], selection: str) -> list[Project]:
    """Projects for the domain picker.

    An empty selection shows nothing; DOMAIN_NONE shows projects that have no
    domain.
    """
    if not selection:
        return []
    if selection == DOMAIN_NONE:
        return [p for p in projects if not p.domain_id]
    return [p for p in projects if p.domain_id == selection]


def search_projects(projects: Iterable[Project], query: str,
                    domains: Iterable[Domain] = ()) -> list[Project]:
    """Case-insensitive match on project name or its domain's name."""
    q = query.strip().lower()
    projects = list(projects)
    if not q:
        return projects
    domain_names = {d.id: d.name.lower() for d in domains}
    return [
        p for p in projects
        if q in p.name.lower() or (p.domain_id and q in domain_names.get(p.domain_id, ""))
    ]


def search_stories(stories: Iterable[Story], query: str) -> list[Story]:
    """Case-insensitive match on title or narrative."""
    q = query.strip().lower()
    stories = list(stories)
    if not q:
        return stories
    return [s for s in stories if q in s.title.lower() or q in s.user_story.lower()]


def bucket_stories_by_epic(stories: Iterable[Story],
                           epics: Iterable[Epic]) -> dict[str, list[Story]]:
    """Group stories by epic id. Unknown or missing epics go under NO_EPIC."""
    epic_ids = {e.id for e in epics}
    buckets: dict[str, list[Story]] = {}
    for story in stories:
        key = story.epic_id if story.epic_id in epic_ids else NO_EPIC
        buckets.setdefault(key, []).append(story)
    return buckets


def pick_default_project(projects: Sequence[Project],
                         last_project_id: str | None) -> Project | None:
    """The last opened project if still present, else the first one."""
    if last_project_id:
        for project in projects:
            if project.id == last_project_id:
                return project
    return projects[0] if projects else None


def domain_selection_for(project: Project | None) -> str:
    if project is None:
        return ""
    return project.domain_id or DOMAIN_NONE


# --- Calendar ---

def leading_blank_days(year: int, month: int) -> int:
    """Blank cells before day 1 in a Monday-first week."""
    return date(year, month, 1).weekday()


def month_grid(year: int, month: int) -> list[list[date | None]]:
    """Weeks of the month, seven cells each. Cells outside the month are None."""
    leading = leading_blank_days(year, month)
    days_in_month = calendar.monthrange(year, month)[1]
    rows = math.ceil((leading + days_in_month) / 7)
    cells: list[date | None] = []
    for index in range(rows * 7):
        day = index - leading + 1
        cells.append(date(year, month, day) if 1 <= day <= days_in_month else None)
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def day_bounds(day: date, tz: timezone | None = None) -> tuple[datetime, datetime]:
    """First and last instant of a local calendar day, in UTC."""
    tzinfo = tz or datetime.now().astimezone().tzinfo
    start = datetime.combine(day, time.min, tzinfo=tzinfo)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def sort_daily_tasks(tasks: Iterable[DailyTask]) -> list[DailyTask]:
    return sorted(tasks, key=lambda t: t.start_at)
