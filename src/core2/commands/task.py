"""core2 task - manage a story's tasks and its board."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.story import owned_story
from core2.errors import NotFoundError
from core2.models import Task, TaskStatus, TaskUpdate
from core2.utils import format_local, format_task_row, truncate
from core2.views import bucket_tasks_by_status
from core2.workflows import create_task, move_task, update_task

COLUMN_TITLES = {
    TaskStatus.ICEBOX: "Icebox",
    TaskStatus.IN_PROGRESS: "In progress",
    TaskStatus.DISCUSSION: "Discussion",
    TaskStatus.DONE: "Done",
}


def owned_task(ctx: Core2Context, partial: str) -> Task:
    ctx.require_session()
    assert ctx.repos is not None
    t = ctx.repos.tasks.get_by_id(ctx.resolve("task", partial, "task"))
    try:
        owned_story(ctx, t.story_id)
    except NotFoundError:
        raise NotFoundError("task", partial) from None
    return t


@click.group("task")
def task() -> None:
    """Manage tasks."""


@task.command("create")
@click.option("--story", "-s", "story_id", required=True, help="Story ID")
@click.option("--title", "-t", required=True, help="Task title")
@click.option("--end", "end_at", default="", help="End date/time (required)")
@click.option("--start", "start_at", default="", help="Start date/time")
@click.option("--note", "-n", default=None, help="Acceptance note")
@click.option("--status", default=TaskStatus.ICEBOX, type=click.Choice(list(TaskStatus.ALL)),
              help="Initial column")
@pass_ctx
def task_create(ctx: Core2Context, story_id: str, title: str, end_at: str, start_at: str,
                note: str | None, status: str) -> None:
    """Create a task at the end of the story's list."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    t = create_task(ctx.repos, st.id, title, end_at, acceptance_note=note,
                    start_at=start_at, status=status)
    if ctx.json_output:
        ctx.output(t.to_dict())
    else:
        click.echo(f"Created task {t.id}: {t.title}")


@task.command("list")
@click.option("--story", "-s", "story_id", required=True, help="Story ID")
@click.option("--limit", default=0, type=int, help="Max tasks to show")
@pass_ctx
def task_list(ctx: Core2Context, story_id: str, limit: int) -> None:
    """List a story's tasks in order."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    tasks = ctx.repos.tasks.list_by_story(st.id, ctx.page(limit))

    if ctx.json_output:
        ctx.output([t.to_dict() for t in tasks])
        return
    if not tasks:
        click.echo("No tasks found.")
        return
    for t in tasks:
        click.echo(format_task_row(t))


@task.command("board")
@click.option("--story", "-s", "story_id", required=True, help="Story ID")
@pass_ctx
def task_board(ctx: Core2Context, story_id: str) -> None:
    """Show the story's tasks by column."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    columns = bucket_tasks_by_status(ctx.repos.tasks.list_by_story(st.id))

    if ctx.json_output:
        ctx.output({status: [t.to_dict() for t in tasks] for status, tasks in columns.items()})
        return

    click.echo(f"Board: {st.title}")
    for status, tasks in columns.items():
        click.echo(f"\n  {COLUMN_TITLES[status]} ({len(tasks)})")
        for t in tasks:
            due = format_local(t.end_at, "%Y-%m-%d")
            click.echo(f"    {t.id[:8]}  {truncate(t.title, 44)}  (due {due})")


@task.command("move")
@click.argument("task_id")
@click.argument("status", type=click.Choice(list(TaskStatus.ALL)))
@pass_ctx
def task_move(ctx: Core2Context, task_id: str, status: str) -> None:
    """Move a task to another board column."""
    t = owned_task(ctx, task_id)
    assert ctx.repos is not None
    tasks = ctx.repos.tasks.list_by_story(t.story_id)
    tasks = move_task(ctx.repos, tasks, t.id, status)
    moved = next(x for x in tasks if x.id == t.id)

    if ctx.json_output:
        ctx.output(moved.to_dict())
    elif status == t.status:
        click.echo(f"Task {t.id} already in {status}")
    else:
        click.echo(f"Moved task {t.id}: {t.status} -> {moved.status}")


@task.command("update")
@click.argument("task_id")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--end", "end_at", default=None, help="End date/time")
@click.option("--start", "start_at", default=None, help="Start date/time ('' clears)")
@click.option("--note", "-n", default=None, help="Acceptance note ('' clears)")
@click.option("--status", default=None, type=click.Choice(list(TaskStatus.ALL)),
              help="New column")
@pass_ctx
def task_update(ctx: Core2Context, task_id: str, title: str | None, end_at: str | None,
                start_at: str | None, note: str | None, status: str | None) -> None:
    """Update a task."""
    t = owned_task(ctx, task_id)
    assert ctx.repos is not None
    patch = TaskUpdate()
    if title is not None:
        patch.title = title
    if end_at is not None:
        patch.end_at = end_at
    if start_at is not None:
        patch.start_at = start_at
    if note is not None:
        patch.acceptance_note = note or None
    if status is not None:
        patch.status = status
    if not patch.to_patch():
        click.echo("Nothing to update.")
        return

    t = update_task(ctx.repos, t.id, patch)
    if ctx.json_output:
        ctx.output(t.to_dict())
    else:
        click.echo(f"Updated task {t.id}")


@task.command("delete")
@click.argument("task_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_ctx
def task_delete(ctx: Core2Context, task_id: str, yes: bool) -> None:
    """Delete a task."""
    t = owned_task(ctx, task_id)
    assert ctx.repos is not None
    if not yes:
        click.confirm(f"Delete task '{t.title}'?", abort=True)
    ctx.repos.tasks.remove(t.id)
    if ctx.json_output:
        ctx.output({"deleted": t.id})
    else:
        click.echo(f"Deleted task {t.id}")
