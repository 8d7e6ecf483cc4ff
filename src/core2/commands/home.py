"""core2 home - workspace summary."""

from __future__ import annotations

from datetime import date

import click

from core2.cli import Core2Context, pass_ctx
from core2.utils import format_daily_task_row, format_project_row
from core2.views import (
    DOMAIN_NONE, day_bounds, domain_selection_for, filter_projects_by_domain,
    pick_default_project, sort_daily_tasks,
)
from core2.workflows import load_workspace


@click.command("home")
@pass_ctx
def home(ctx: Core2Context) -> None:
    """Show the default project, its domain's projects and today's calendar."""
    session = ctx.require_session()
    assert ctx.repos is not None
    ws = load_workspace(ctx.repos, session.user_id)
    for name, message in ws.errors.items():
        click.echo(f"Warning: could not load {name}: {message}", err=True)

    current = pick_default_project(ws.projects, ctx.state.last_project_id)
    selection = domain_selection_for(current)
    siblings = filter_projects_by_domain(ws.projects, selection)
    start, end = day_bounds(date.today())
    today = sort_daily_tasks(
        ctx.repos.daily_tasks.list_by_owner_and_range(session.user_id, start, end))

    if ctx.json_output:
        ctx.output({
            "user": session.email,
            "project": current.to_dict() if current else None,
            "domain_selection": selection,
            "projects": [p.to_dict() for p in siblings],
            "today": [e.to_dict() for e in today],
            "errors": ws.errors,
        })
        return

    names = {d.id: d.name for d in ws.domains}
    click.echo(f"Signed in as {session.email}")
    if current is None:
        click.echo("\nNo projects yet. Create one with 'core2 project create'.")
    else:
        click.echo(f"\nCurrent project: {current.name} ({current.id[:8]})")
        label = "no domain" if selection == DOMAIN_NONE else names.get(selection, selection[:8])
        click.echo(f"\nProjects in {label}:")
        for p in siblings:
            marker = "*" if p.id == current.id else " "
            click.echo(f"{marker} {format_project_row(p, names)}")

    click.echo(f"\nToday ({date.today().isoformat()}):")
    if not today:
        click.echo("  Nothing scheduled.")
    for e in today:
        click.echo(f"  {format_daily_task_row(e)}")
