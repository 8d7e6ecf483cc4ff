"""core2 domain - manage domains (master table)."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.errors import NotFoundError
from core2.models import Domain, DomainUpdate
from core2.utils import format_domain_row
from core2.workflows import create_domain, update_domain


def owned_domain(ctx: Core2Context, partial: str) -> Domain:
    """Resolve a domain ID belonging to the signed-in user."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    dom = ctx.repos.domains.get_by_id(ctx.resolve("core_domain", partial, "domain"))
    if dom.owner_user_id != owner_id:
        raise NotFoundError("core_domain", partial)
    return dom


@click.group("domain")
def domain() -> None:
    """Manage domains."""


@domain.command("create")
@click.option("--name", "-n", required=True, help="Domain name")
@click.option("--code", "-c", default=None, help="Short code")
@click.option("--color", default=None, help="Display color")
@pass_ctx
def domain_create(ctx: Core2Context, name: str, code: str | None, color: str | None) -> None:
    """Create a domain."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    dom = create_domain(ctx.repos, owner_id, name, code, color)
    if ctx.json_output:
        ctx.output(dom.to_dict())
    else:
        click.echo(f"Created domain {dom.id}: {dom.name}")


@domain.command("list")
@click.option("--limit", default=0, type=int, help="Max domains to show")
@pass_ctx
def domain_list(ctx: Core2Context, limit: int) -> None:
    """List your domains."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    domains = ctx.repos.domains.list_by_owner(owner_id, ctx.page(limit))

    if ctx.json_output:
        ctx.output([d.to_dict() for d in domains])
        return
    if not domains:
        click.echo("No domains found.")
        return
    for d in domains:
        click.echo(format_domain_row(d))


@domain.command("update")
@click.argument("domain_id")
@click.option("--name", "-n", default=None, help="New name")
@click.option("--code", "-c", default=None, help="New code ('' clears)")
@click.option("--color", default=None, help="New color ('' clears)")
@pass_ctx
def domain_update(ctx: Core2Context, domain_id: str, name: str | None,
                  code: str | None, color: str | None) -> None:
    """Update a domain."""
    dom = owned_domain(ctx, domain_id)
    assert ctx.repos is not None
    patch = DomainUpdate()
    if name is not None:
        patch.name = name
    if code is not None:
        patch.code = code or None
    if color is not None:
        patch.color = color or None
    if not patch.to_patch():
        click.echo("Nothing to update.")
        return
    dom = update_domain(ctx.repos, dom.id, patch)
    if ctx.json_output:
        ctx.output(dom.to_dict())
    else:
        click.echo(f"Updated domain {dom.id}")


@domain.command("delete")
@click.argument("domain_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@pass_ctx
def domain_delete(ctx: Core2Context, domain_id: str, yes: bool) -> None:
    """Delete a domain. Its projects keep a dangling domain reference."""
    dom = owned_domain(ctx, domain_id)
    assert ctx.repos is not None
    if not yes:
        click.confirm(f"Delete domain '{dom.name}'?", abort=True)
    ctx.repos.domains.remove(dom.id)
    if ctx.json_output:
        ctx.output({"deleted": dom.id})
    else:
        click.echo(f"Deleted domain {dom.id}")
