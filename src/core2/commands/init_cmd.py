"""core2 init - initialize a new .core2/ directory."""

from __future__ import annotations

import os

import click

from core2.cli import Core2Context, pass_ctx
from core2.config import CORE2_DIR, DEFAULT_DB_NAME, Core2Config, LocalState
from core2.storage.sqlite_store import SQLiteEntityStore


@click.command("init")
@click.option("--page-size", default=0, type=click.IntRange(min=0),
              help="Default number of rows per list (0 = all)")
@pass_ctx
def init_cmd(ctx: Core2Context, page_size: int) -> None:
    """Initialize a new core2 workspace in the current directory."""
    core2_dir = os.path.join(os.getcwd(), CORE2_DIR)

    if os.path.exists(core2_dir):
        click.echo(f"core2 already initialized at {core2_dir}")
        return

    os.makedirs(core2_dir, exist_ok=True)

    config = Core2Config(page_size=page_size)
    config.save(core2_dir)
    LocalState().save(core2_dir)

    gitignore_path = os.path.join(core2_dir, ".gitignore")
    with open(gitignore_path, "w") as f:
        f.write("# core2 local files\n")
        f.write("*.db\n")
        f.write("*.db-wal\n")
        f.write("*.db-shm\n")
        f.write("state.json\n")

    db_path = os.path.join(core2_dir, DEFAULT_DB_NAME)
    store = SQLiteEntityStore(db_path)
    version = store.get_metadata("schema_version")
    store.close()

    click.echo(f"Initialized core2 in {core2_dir}")
    click.echo(f"  Database: {DEFAULT_DB_NAME} (schema v{version})")
