"""core2 project - manage projects."""

from __future__ import annotations

import sys

import click

from core2.cli import Core2Context, pass_ctx
from core2.commands.domain import owned_domain
from core2.errors import NotFoundError
from core2.models import Project, ProjectStatus, ProjectType, ProjectUpdate
from core2.utils import format_epic_row, format_project_row, format_story_row, format_time_ago
from core2.views import DOMAIN_NONE, filter_projects_by_domain, search_projects
from core2.workflows import create_project, load_workspace, open_project, update_project

STATUS_CHOICES = [
    ProjectStatus.INTEL, ProjectStatus.DESIGN, ProjectStatus.EXECUTION,
    ProjectStatus.TEST, ProjectStatus.PAUSED, ProjectStatus.ARCHIVED,
]


def owned_project(ctx: Core2Context, partial: str | None) -> Project:
    """Resolve a project of the signed-in user.

    Without an ID, falls back to the last opened project.
    """
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    if not partial:
        partial = ctx.state.last_project_id
        if not partial:
            click.echo("Error: no project given and none opened yet", err=True)
            click.echo("Pass --project or run 'core2 project open <id>'", err=True)
            sys.exit(1)
    proj = ctx.repos.projects.get_by_id(ctx.resolve("core_project", partial, "project"))
    if proj.owner_user_id != owner_id:
        raise NotFoundError("core_project", partial)
    return proj


def _domain_id_option(ctx: Core2Context, value: str) -> str | None:
    if value in ("", DOMAIN_NONE):
        return None
    return owned_domain(ctx, value).id


@click.group("project")
def project() -> None:
    """Manage projects."""


@project.command("create")
@click.option("--name", "-n", required=True, help="Project name")
@click.option("--type", "project_type", required=True,
              type=click.Choice([ProjectType.NEW, ProjectType.EXISTING]),
              help="New build or existing system")
@click.option("--domain", "-d", "domain", default="", help="Domain ID")
@click.option("--drive-url", default=None, help="Drive folder URL")
@click.option("--doc-url", default=None, help="Primary document URL")
@pass_ctx
def project_create(ctx: Core2Context, name: str, project_type: str, domain: str,
                   drive_url: str | None, doc_url: str | None) -> None:
    """Create a project (starts in 'intel', active)."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    domain_id = _domain_id_option(ctx, domain)
    proj, doc = create_project(
        ctx.repos, owner_id, name, project_type, domain_id=domain_id,
        drive_folder_url=drive_url or None, primary_doc_url=doc_url or None,
    )
    if ctx.json_output:
        data = proj.to_dict()
        data["analysis_document_id"] = doc.id
        ctx.output(data)
    else:
        click.echo(f"Created project {proj.id}: {proj.name}")


@project.command("list")
@click.option("--domain", "-d", "domain", default=None,
              help=f"Only projects of this domain ID ('{DOMAIN_NONE}' for no domain)")
@click.option("--search", "-s", "query", default="", help="Match name or domain name")
@pass_ctx
def project_list(ctx: Core2Context, domain: str | None, query: str) -> None:
    """List your projects."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    ws = load_workspace(ctx.repos, owner_id)
    for name, message in ws.errors.items():
        click.echo(f"Warning: could not load {name}: {message}", err=True)

    projects = ws.projects
    if domain is not None:
        selection = domain
        if domain and domain != DOMAIN_NONE:
            selection = ctx.resolve("core_domain", domain, "domain")
        projects = filter_projects_by_domain(projects, selection)
    projects = search_projects(projects, query, ws.domains)

    if ctx.json_output:
        ctx.output([p.to_dict() for p in projects])
        return
    if not projects:
        click.echo("No projects found.")
        return
    names = {d.id: d.name for d in ws.domains}
    for p in projects:
        marker = "*" if p.id == ctx.state.last_project_id else " "
        click.echo(f"{marker} {format_project_row(p, names)}")
    if not ctx.quiet:
        click.echo(f"\n{len(projects)} project(s)")


@project.command("show")
@click.argument("project_id", required=False)
@pass_ctx
def project_show(ctx: Core2Context, project_id: str | None) -> None:
    """Show project fields."""
    proj = owned_project(ctx, project_id)
    if ctx.json_output:
        ctx.output(proj.to_dict())
        return
    _print_project(proj)


def _print_project(proj: Project) -> None:
    click.echo(f"{'─' * 60}")
    click.echo(f"  {proj.id}")
    click.echo(f"{'─' * 60}")
    click.echo(f"  Name:     {proj.name}")
    click.echo(f"  Type:     {proj.project_type}")
    click.echo(f"  Status:   {proj.status}{'' if proj.active else ' (inactive)'}")
    if proj.domain_id:
        click.echo(f"  Domain:   {proj.domain_id}")
    if proj.drive_folder_url:
        click.echo(f"  Drive:    {proj.drive_folder_url}")
    if proj.primary_doc_url:
        click.echo(f"  Doc:      {proj.primary_doc_url}")
    if proj.pause_condition:
        click.echo(f"  Resume when: {proj.pause_condition}")
    click.echo(f"  Created:  {format_time_ago(proj.created_at)}")
    click.echo(f"  Updated:  {format_time_ago(proj.updated_at)}")


@project.command("open")
@click.argument("project_id", required=False)
@pass_ctx
def project_open(ctx: Core2Context, project_id: str | None) -> None:
    """Open a project: analysis status, epics and stories."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    proj, details = open_project(ctx.repos, proj.id, remember=ctx.remember_project)

    if ctx.json_output:
        data = proj.to_dict()
        data["analysis"] = details.analysis.to_dict()
        data["epics"] = [e.to_dict() for e in details.epics]
        data["stories"] = [s.to_dict() for s in details.stories]
        data["errors"] = details.errors
        ctx.output(data)
        return

    _print_project(proj)
    doc = details.analysis
    click.echo(f"\n  Analysis: {'done' if doc.is_done else 'in progress'} ({doc.id[:8]})")
    for name, message in details.errors.items():
        click.echo(f"Warning: could not load {name}: {message}", err=True)
    if details.epics:
        click.echo(f"\n  Epics ({len(details.epics)}):")
        for e in details.epics:
            click.echo(f"    {format_epic_row(e)}")
    if details.stories:
        click.echo(f"\n  Stories ({len(details.stories)}):")
        for s in details.stories:
            click.echo(f"    {format_story_row(s)}")
    click.echo()


@project.command("update")
@click.argument("project_id", required=False)
@click.option("--name", "-n", default=None, help="New name")
@click.option("--status", "-s", default=None, type=click.Choice(STATUS_CHOICES),
              help="New status")
@click.option("--active/--inactive", default=None, help="Active flag")
@click.option("--domain", "-d", "domain", default=None,
              help=f"Domain ID ('' or '{DOMAIN_NONE}' clears)")
@click.option("--drive-url", default=None, help="Drive folder URL ('' clears)")
@click.option("--doc-url", default=None, help="Primary document URL ('' clears)")
@click.option("--pause-condition", default=None, help="Condition to resume ('' clears)")
@pass_ctx
def project_update(ctx: Core2Context, project_id: str | None, name: str | None,
                   status: str | None, active: bool | None, domain: str | None,
                   drive_url: str | None, doc_url: str | None,
                   pause_condition: str | None) -> None:
    """Update a project. The project type cannot change."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    patch = ProjectUpdate()
    if name is not None:
        patch.name = name
    if status is not None:
        patch.status = status
    if active is not None:
        patch.active = active
    if domain is not None:
        patch.domain_id = _domain_id_option(ctx, domain)
    if drive_url is not None:
        patch.drive_folder_url = drive_url or None
    if doc_url is not None:
        patch.primary_doc_url = doc_url or None
    if pause_condition is not None:
        patch.pause_condition = pause_condition or None
    if not patch.to_patch():
        click.echo("Nothing to update.")
        return

    proj = update_project(ctx.repos, proj.id, patch)
    if ctx.json_output:
        ctx.output(proj.to_dict())
    else:
        click.echo(f"Updated project {proj.id}")


@project.command("delete")
@click.argument("project_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_ctx
def project_delete(ctx: Core2Context, project_id: str, yes: bool) -> None:
    """Delete a project row. Its epics and stories are not removed."""
    proj = owned_project(ctx, project_id)
    assert ctx.repos is not None
    if not yes:
        click.confirm(f"Delete project '{proj.name}'?", abort=True)
    ctx.repos.projects.remove(proj.id)
    if ctx.state.last_project_id == proj.id:
        ctx.remember_project(None)
    if ctx.json_output:
        ctx.output({"deleted": proj.id})
    else:
        click.echo(f"Deleted project {proj.id}")
