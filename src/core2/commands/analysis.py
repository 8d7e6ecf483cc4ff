"""core2 analysis - the project's research document."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.project import owned_project
from core2.models import ANALYSIS_FIELDS
from core2.workflows import ensure_analysis_document, save_analysis

FIELD_TITLES = {
    "pain": "Pain",
    "knowledge": "Knowledge",
    "context": "Context",
    "existing_system_notes": "Existing system",
    "scope_in": "In scope",
    "scope_out": "Out of scope",
}


@click.group("analysis")
def analysis() -> None:
    """Show or edit a project's analysis document."""


@analysis.command("show")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@pass_ctx
def analysis_show(ctx: Core2Context, project_id: str | None) -> None:
    """Show the analysis document."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    doc = ensure_analysis_document(ctx.repos, proj.id)

    if ctx.json_output:
        ctx.output(doc.to_dict())
        return

    click.echo(f"Analysis for {proj.name} ({'done' if doc.is_done else 'in progress'})")
    for name in ANALYSIS_FIELDS:
        value = getattr(doc, name)
        click.echo(f"\n  {FIELD_TITLES[name]}:")
        if not value:
            click.echo("    -")
            continue
        for line in value.split("\n"):
            click.echo(f"    {line}")


@analysis.command("set")
@click.option("--project", "-p", "project_id", default=None,
              help="Project ID (default: last opened)")
@click.option("--pain", default=None, help="What hurts now")
@click.option("--knowledge", default=None, help="What is known")
@click.option("--context", "context_", default=None, help="Context")
@click.option("--existing-system", default=None, help="Notes on the existing system")
@click.option("--scope-in", default=None, help="In scope")
@click.option("--scope-out", default=None, help="Out of scope")
@click.option("--done/--not-done", default=None, help="Mark the document finished")
@pass_ctx
def analysis_set(ctx: Core2Context, project_id: str | None, pain: str | None,
                 knowledge: str | None, context_: str | None,
                 existing_system: str | None, scope_in: str | None,
                 scope_out: str | None, done: bool | None) -> None:
    """Save analysis fields. An empty value clears the field."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    given = {
        "pain": pain,
        "knowledge": knowledge,
        "context": context_,
        "existing_system_notes": existing_system,
        "scope_in": scope_in,
        "scope_out": scope_out,
    }
    values = {k: v for k, v in given.items() if v is not None}
    if not values and done is None:
        click.echo("Nothing to update.")
        return

    doc = ensure_analysis_document(ctx.repos, proj.id)
    doc = save_analysis(ctx.repos, doc.id, values, is_done=done)
    if ctx.json_output:
        ctx.output(doc.to_dict())
    else:
        click.echo(f"Saved analysis for {proj.name}")
