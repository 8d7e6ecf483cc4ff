"""Utility functions for the core2 CLI."""

from __future__ import annotations

from datetime import datetime, timezone

from core2.models import DailyTask, Domain, Epic, Project, Story, Task, TaskStatus, TestLog


def format_time_ago(dt: datetime) -> str:
    """Format a datetime as a relative time string."""
    now = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = now - dt
    seconds = int(delta.total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 30:
        return f"{days}d ago"
    months = days // 30
    if months < 12:
        return f"{months}mo ago"
    years = days // 365
    return f"{years}y ago"


def format_local(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Render an instant in local time, or '-' when absent."""
    if dt is None:
        return "-"
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone().strftime(fmt)


def truncate(s: str, max_len: int = 60) -> str:
    """Truncate a string with ellipsis."""
    if len(s) <= max_len:
        return s
    return s[:max_len - 3] + "..."


def short_id(row_id: str) -> str:
    return row_id[:8]


def status_symbol(status: str) -> str:
    """Return a symbol for task status display."""
    symbols = {
        TaskStatus.ICEBOX: " ",
        TaskStatus.IN_PROGRESS: ">",
        TaskStatus.DISCUSSION: "?",
        TaskStatus.DONE: "x",
    }
    return symbols.get(status, "-")


def format_domain_row(domain: Domain) -> str:
    code = f"[{domain.code}] " if domain.code else ""
    return f"{short_id(domain.id)}  {code}{domain.name}"


def format_project_row(project: Project, domains: dict[str, str] | None = None) -> str:
    domain = "-"
    if project.domain_id:
        domain = (domains or {}).get(project.domain_id, short_id(project.domain_id))
    flag = "" if project.active else " (inactive)"
    return (f"{short_id(project.id)}  {project.status:<9} {project.project_type:<8} "
            f"{domain:<16} {truncate(project.name, 40)}{flag}")


def format_epic_row(epic: Epic) -> str:
    return f"{short_id(epic.id)}  #{epic.order_no:<3} {truncate(epic.title, 50)}"


def format_story_row(story: Story) -> str:
    age = format_time_ago(story.created_at)
    return (f"{short_id(story.id)}  P{story.priority} {story.status:<11} "
            f"{truncate(story.title, 50)}  ({age})")


def format_task_row(task: Task) -> str:
    sym = status_symbol(task.status)
    due = format_local(task.end_at, "%Y-%m-%d")
    return f"[{sym}] {short_id(task.id)}  due {due}  {truncate(task.title, 50)}"


def format_daily_task_row(entry: DailyTask) -> str:
    start = format_local(entry.start_at, "%H:%M")
    end = format_local(entry.end_at, "%H:%M")
    return f"{start}-{end}  {entry.kind:<8} {truncate(entry.title, 50)}  {short_id(entry.id)}"


def format_test_log_row(log: TestLog) -> str:
    task = f" task {short_id(log.task_id)}" if log.task_id else ""
    return f"{short_id(log.id)}  [{format_time_ago(log.created_at)}]{task} {truncate(log.notes, 60)}"
