"""core2 signup/login/logout/reset-password/whoami - session commands."""

from __future__ import annotations

import click

from core2.cli import Core2Context, pass_ctx
from core2.models import format_timestamp


def _report(ctx: Core2Context, verb: str, session) -> None:
    if ctx.json_output:
        ctx.output({"user_id": session.user_id, "email": session.email})
    else:
        click.echo(f"{verb} as {session.email}")


@click.command("signup")
@click.option("--email", "-e", required=True, help="Account email")
@click.password_option("--password", "-p", help="Account password")
@pass_ctx
def signup(ctx: Core2Context, email: str, password: str) -> None:
    """Create an account and sign in."""
    ctx.ensure_initialized()
    assert ctx.store is not None
    session = ctx.store.sign_up(email, password)
    _report(ctx, "Signed up", session)


@click.command("login")
@click.option("--email", "-e", required=True, help="Account email")
@click.option("--password", "-p", prompt=True, hide_input=True, help="Account password")
@pass_ctx
def login(ctx: Core2Context, email: str, password: str) -> None:
    """Sign in with email and password."""
    ctx.ensure_initialized()
    assert ctx.store is not None
    session = ctx.store.sign_in_with_password(email, password)
    _report(ctx, "Signed in", session)


@click.command("logout")
@pass_ctx
def logout(ctx: Core2Context) -> None:
    """End the current session."""
    ctx.ensure_initialized()
    assert ctx.store is not None
    ctx.store.sign_out()
    if not ctx.quiet:
        click.echo("Signed out")


@click.command("reset-password")
@click.option("--email", "-e", required=True, help="Account email")
@pass_ctx
def reset_password(ctx: Core2Context, email: str) -> None:
    """Request a password-reset message."""
    ctx.ensure_initialized()
    assert ctx.store is not None
    ctx.store.reset_password_for_email(email)
    click.echo(f"If {email} has an account, a reset message is on its way.")


@click.command("whoami")
@pass_ctx
def whoami(ctx: Core2Context) -> None:
    """Show the signed-in user."""
    session = ctx.require_session()
    if ctx.json_output:
        ctx.output({
            "user_id": session.user_id,
            "email": session.email,
            "signed_in_at": format_timestamp(session.created_at),
        })
        return
    click.echo(f"{session.email} ({session.user_id})")
