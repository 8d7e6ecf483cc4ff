"""core2 epic - manage a project's epics."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.project import owned_project
from core2.errors import NotFoundError
from core2.models import Epic, EpicUpdate
from core2.utils import format_epic_row
from core2.workflows import create_epic, delete_epic_cascade, update_epic


def owned_epic(ctx: Core2Context, partial: str) -> Epic:
    ctx.require_session()
    assert ctx.repos is not None
    ep = ctx.repos.epics.get_by_id(ctx.resolve("epic", partial, "epic"))
    try:
        owned_project(ctx, ep.project_id)
    except NotFoundError:
        raise NotFoundError("epic", partial) from None
    return ep


@click.group("epic")
def epic() -> None:
    """Manage epics."""


@epic.command("create")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@click.option("--title", "-t", required=True, help="Epic title")
@click.option("--description", "-d", default=None, help="Description")
@pass_ctx
def epic_create(ctx: Core2Context, project_id: str | None, title: str,
                description: str | None) -> None:
    """Create an epic at the end of the project's list."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    ep = create_epic(ctx.repos, proj.id, title, description)
    if ctx.json_output:
        ctx.output(ep.to_dict())
    else:
        click.echo(f"Created epic #{ep.order_no} {ep.id}: {ep.title}")


@epic.command("list")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@click.option("--limit", default=0, type=int, help="Max epics to show")
@pass_ctx
def epic_list(ctx: Core2Context, project_id: str | None, limit: int) -> None:
    """List a project's epics in order."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    epics = ctx.repos.epics.list_by_project(proj.id, ctx.page(limit))

    if ctx.json_output:
        ctx.output([e.to_dict() for e in epics])
        return
    if not epics:
        click.echo("No epics found.")
        return
    for e in epics:
        click.echo(format_epic_row(e))


@epic.command("update")
@click.argument("epic_id")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--description", "-d", default=None, help="New description ('' clears)")
@pass_ctx
def epic_update(ctx: Core2Context, epic_id: str, title: str | None,
                description: str | None) -> None:
    """Rename an epic or change its description."""
    ep = owned_epic(ctx, epic_id)
    assert ctx.repos is not None
    patch = EpicUpdate()
    if title is not None:
        patch.title = title
    if description is not None:
        patch.description = description
    if not patch.to_patch():
        click.echo("Nothing to update.")
        return
    ep = update_epic(ctx.repos, ep.id, patch)
    if ctx.json_output:
        ctx.output(ep.to_dict())
    else:
        click.echo(f"Updated epic {ep.id}")


@epic.command("delete")
@click.argument("epic_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_ctx
def epic_delete(ctx: Core2Context, epic_id: str, yes: bool) -> None:
    """Delete an epic together with its stories and their tasks."""
    ep = owned_epic(ctx, epic_id)
    assert ctx.repos is not None
    if not yes:
        click.confirm(
            f"Delete epic '{ep.title}' and all of its stories and tasks?", abort=True)

    result = delete_epic_cascade(ctx.repos, ep.id)

    if ctx.json_output:
        ctx.output({
            "deleted": ep.id,
            "stories": result.story_ids,
            "tasks": result.task_ids,
        })
    else:
        click.echo(f"Deleted epic {ep.id} "
                   f"({len(result.story_ids)} story(ies), {len(result.task_ids)} task(s))")
