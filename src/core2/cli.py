"""Click CLI root and global flags for core2."""

from __future__ import annotations

import json
import logging
import os
import sys

import click

from core2 import __version__
from core2.config import Core2Config, LocalState, find_core2_dir, get_db_path
from core2.errors import Core2Error
from core2.models import Pagination, Session
from core2.repo import Repositories
from core2.storage.sqlite_store import SQLiteEntityStore


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route the core2 loggers to stderr."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logger = logging.getLogger("core2")
    logger.setLevel(level)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(handler)
    logger.propagate = False


class Core2Context:
    """Shared context for all commands."""

    def __init__(self) -> None:
        self.core2_dir: str | None = None
        self.store: SQLiteEntityStore | None = None
        self.repos: Repositories | None = None
        self.config: Core2Config | None = None
        self.state: LocalState = LocalState()
        self.json_output: bool = False
        self.verbose: bool = False
        self.quiet: bool = False
        self._session: Session | None = None

    def ensure_initialized(self) -> None:
        """Ensure the core2 directory and store are available."""
        if self.store is not None:
            return
        self.core2_dir = find_core2_dir()
        if self.core2_dir is None:
            click.echo("Error: not in a core2 workspace (no .core2/ directory found)", err=True)
            click.echo("Run 'core2 init' to create one", err=True)
            sys.exit(1)
        self.config = Core2Config.load(self.core2_dir)
        if not self.json_output:
            self.json_output = self.config.json_output
        self.state = LocalState.load(self.core2_dir)
        self.store = SQLiteEntityStore(get_db_path(self.core2_dir, self.config))
        self.repos = Repositories.for_store(self.store)

    def require_session(self) -> Session:
        """Return the current session or exit when nobody is signed in."""
        self.ensure_initialized()
        assert self.store is not None
        if self._session is None:
            self._session = self.store.get_session()
        if self._session is None:
            click.echo("Error: not signed in", err=True)
            click.echo("Run 'core2 login' or 'core2 signup' first", err=True)
            sys.exit(1)
        return self._session

    @property
    def owner_id(self) -> str:
        return self.require_session().user_id

    def page(self, limit: int = 0) -> Pagination | None:
        """Pagination from --limit, falling back to the configured page size."""
        size = limit or (self.config.page_size if self.config else 0)
        return Pagination(limit=size) if size else None

    def resolve(self, table: str, partial: str, label: str | None = None) -> str:
        """Resolve a partial row ID or exit with error."""
        assert self.store is not None
        full_id = self.store.resolve_id(table, partial)
        if full_id is None:
            click.echo(f"Error: {label or table} not found or ambiguous: {partial}", err=True)
            sys.exit(1)
        return full_id

    def remember_project(self, project_id: str | None) -> None:
        self.state.last_project_id = project_id
        if self.core2_dir:
            self.state.save(self.core2_dir)

    def output(self, data: dict | list) -> None:
        """Output data as JSON."""
        click.echo(json.dumps(data, indent=2, default=str))


pass_ctx = click.make_pass_decorator(Core2Context, ensure=True)


class Core2Group(click.Group):
    """Group that reports core2 errors as 'Error: ...' and exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except Core2Error as e:
            click.echo(f"Error: {e.message}", err=True)
            sys.exit(1)


@click.group(cls=Core2Group, invoke_without_command=True)
@click.option("--db", envvar="CORE2_DB", help="Path to database file")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.version_option(__version__, prog_name="core2")
@click.pass_context
def cli(ctx: click.Context, db: str | None, json_output: bool,
        verbose: bool, quiet: bool) -> None:
    """core2 - projects, stories, tasks and a daily calendar"""
    cctx = ctx.ensure_object(Core2Context)
    cctx.verbose = verbose
    cctx.quiet = quiet
    if json_output:
        cctx.json_output = True
    if db:
        os.environ["CORE2_DB"] = db
    setup_logging(verbose, quiet)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.result_callback()
@pass_ctx
def _close_store(ctx: Core2Context, *args, **kwargs) -> None:
    if ctx.store is not None:
        ctx.store.close()


# --- Register all command groups ---

from core2.commands.init_cmd import init_cmd
from core2.commands.auth import signup, login, logout, reset_password, whoami
from core2.commands.domain import domain
from core2.commands.project import project
from core2.commands.analysis import analysis
from core2.commands.epic import epic
from core2.commands.story import story
from core2.commands.task import task
from core2.commands.daily import daily
from core2.commands.testlog import testlog
from core2.commands.pomodoro_cmd import pomodoro
from core2.commands.home import home

cli.add_command(init_cmd, "init")
cli.add_command(signup, "signup")
cli.add_command(login, "login")
cli.add_command(logout, "logout")
cli.add_command(reset_password, "reset-password")
cli.add_command(whoami, "whoami")
cli.add_command(domain, "domain")
cli.add_command(project, "project")
cli.add_command(analysis, "analysis")
cli.add_command(epic, "epic")
cli.add_command(story, "story")
cli.add_command(task, "task")
cli.add_command(daily, "daily")
cli.add_command(testlog, "testlog")
cli.add_command(pomodoro, "pomodoro")
cli.add_command(home, "home")


def main() -> None:
    cli(auto_envvar_prefix="CORE2")
