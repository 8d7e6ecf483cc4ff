"""core2 testlog - test notes recorded against a story."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.story import owned_story
from core2.errors import NotFoundError
from core2.utils import format_test_log_row
from core2.workflows import create_test_log


@click.group("testlog")
def testlog() -> None:
    """Manage test logs."""


@testlog.command("add")
@click.option("--story", "-s", "story_id", required=True, help="Story ID")
@click.option("--notes", "-n", required=True, help="What was tested and the outcome")
@click.option("--task", "task_id", default=None, help="Related task ID")
@pass_ctx
def testlog_add(ctx: Core2Context, story_id: str, notes: str, task_id: str | None) -> None:
    """Record a test log entry."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    if task_id:
        t = ctx.repos.tasks.get_by_id(ctx.resolve("task", task_id, "task"))
        if t.story_id != st.id:
            raise NotFoundError("task", task_id)
        task_id = t.id
    log = create_test_log(ctx.repos, st.id, notes, task_id)
    if ctx.json_output:
        ctx.output(log.to_dict())
    else:
        click.echo(f"Logged test {log.id} on story {st.id}")


@testlog.command("list")
@click.option("--story", "-s", "story_id", required=True, help="Story ID")
@click.option("--limit", default=0, type=int, help="Max entries to show")
@pass_ctx
def testlog_list(ctx: Core2Context, story_id: str, limit: int) -> None:
    """List a story's test logs, newest first."""
    st = owned_story(ctx, story_id)
    assert ctx.repos is not None
    logs = ctx.repos.test_logs.list_by_story(st.id, ctx.page(limit))

    if ctx.json_output:
        ctx.output([log.to_dict() for log in logs])
        return
    if not logs:
        click.echo("No test logs found.")
        return
    for log in logs:
        click.echo(format_test_log_row(log))


@testlog.command("delete")
@click.argument("log_id")
@pass_ctx
def testlog_delete(ctx: Core2Context, log_id: str) -> None:
    """Delete a test log entry."""
    ctx.require_session()
    assert ctx.repos is not None
    log = ctx.repos.test_logs.get_by_id(ctx.resolve("test_log", log_id, "test log"))
    try:
        owned_story(ctx, log.story_id)
    except NotFoundError:
        raise NotFoundError("test_log", log_id) from None
    ctx.repos.test_logs.remove(log.id)
    if ctx.json_output:
        ctx.output({"deleted": log.id})
    else:
        click.echo(f"Deleted test log {log.id}")
