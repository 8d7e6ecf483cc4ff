"""core2 daily - personal daily calendar."""

from __future__ import annotations

import calendar
from datetime import date, datetime

import click

from core2.cli import Core2Context, pass_ctx
from core2.errors import NotFoundError, ValidationError
from core2.models import DailyTask, DailyTaskKind, DailyTaskUpdate
from core2.utils import format_daily_task_row
from core2.views import day_bounds, month_grid, shift_month, sort_daily_tasks
from core2.workflows import (
    DEFAULT_DAILY_END, DEFAULT_DAILY_START, create_daily_task, local_instant,
    update_daily_task,
)

WEEKDAYS = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")


def _parse_day(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"date must be YYYY-MM-DD, got {value!r}") from None


def _parse_month(value: str | None) -> tuple[int, int]:
    if not value:
        today = date.today()
        return today.year, today.month
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise ValidationError(f"month must be YYYY-MM, got {value!r}") from None
    return parsed.year, parsed.month


def owned_entry(ctx: Core2Context, partial: str) -> DailyTask:
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    entry = ctx.repos.daily_tasks.get_by_id(ctx.resolve("daily_task", partial, "entry"))
    if entry.owner_user_id != owner_id:
        raise NotFoundError("daily_task", partial)
    return entry


@click.group("daily")
def daily() -> None:
    """Manage the daily calendar."""


@daily.command("add")
@click.option("--title", "-t", required=True, help="Entry title")
@click.option("--date", "-d", "day", default=None, help="Day (YYYY-MM-DD, default today)")
@click.option("--start", default=DEFAULT_DAILY_START, show_default=True, help="Start time HH:MM")
@click.option("--end", default=DEFAULT_DAILY_END, show_default=True, help="End time HH:MM")
@click.option("--kind", "-k", default=DailyTaskKind.MEETING, show_default=True,
              type=click.Choice(list(DailyTaskKind.ALL)), help="Entry kind")
@click.option("--notes", "-n", default=None, help="Notes")
@pass_ctx
def daily_add(ctx: Core2Context, title: str, day: str | None, start: str, end: str,
              kind: str, notes: str | None) -> None:
    """Add a calendar entry."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    on = _parse_day(day)
    entry = create_daily_task(
        ctx.repos, owner_id, title,
        local_instant(on, start), local_instant(on, end),
        kind=kind, notes=notes,
    )
    if ctx.json_output:
        ctx.output(entry.to_dict())
    else:
        click.echo(f"Added {entry.kind} {entry.id}: {entry.title} ({on.isoformat()} {start}-{end})")


@daily.command("list")
@click.option("--date", "-d", "day", default=None, help="Day (YYYY-MM-DD, default today)")
@pass_ctx
def daily_list(ctx: Core2Context, day: str | None) -> None:
    """List the entries of one day."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    on = _parse_day(day)
    start, end = day_bounds(on)
    entries = sort_daily_tasks(
        ctx.repos.daily_tasks.list_by_owner_and_range(owner_id, start, end))

    if ctx.json_output:
        ctx.output([e.to_dict() for e in entries])
        return
    click.echo(on.strftime("%A %d %B %Y"))
    if not entries:
        click.echo("  Nothing scheduled.")
        return
    for e in entries:
        click.echo(f"  {format_daily_task_row(e)}")


@daily.command("calendar")
@click.option("--month", "-m", default=None, help="Month (YYYY-MM, default current)")
@click.option("--offset", default=0, type=int, help="Months to move forward/back")
@pass_ctx
def daily_calendar(ctx: Core2Context, month: str | None, offset: int) -> None:
    """Show a month grid. Days with entries are marked with '*'."""
    owner_id = ctx.owner_id
    assert ctx.repos is not None
    year, mon = shift_month(*_parse_month(month), offset)
    grid = month_grid(year, mon)

    last_day = calendar.monthrange(year, mon)[1]
    start, _ = day_bounds(date(year, mon, 1))
    _, end = day_bounds(date(year, mon, last_day))
    entries = ctx.repos.daily_tasks.list_by_owner_and_range(owner_id, start, end)
    busy = {e.start_at.astimezone().date() for e in entries}

    if ctx.json_output:
        ctx.output({
            "year": year,
            "month": mon,
            "weeks": [[d.isoformat() if d else None for d in week] for week in grid],
            "busy": sorted(d.isoformat() for d in busy),
        })
        return

    header = " ".join(f"{name} " for name in WEEKDAYS)
    click.echo(date(year, mon, 1).strftime("%B %Y").center(len(header)))
    click.echo(header.rstrip())
    for week in grid:
        cells = [
            "   " if d is None else f"{d.day:>2}{'*' if d in busy else ' '}"
            for d in week
        ]
        click.echo(" ".join(cells).rstrip())
    if entries and not ctx.quiet:
        click.echo(f"\n{len(entries)} entr{'y' if len(entries) == 1 else 'ies'} this month")


@daily.command("update")
@click.argument("entry_id")
@click.option("--title", "-t", default=None, help="New title")
@click.option("--date", "-d", "day", default=None, help="Move to another day (YYYY-MM-DD)")
@click.option("--start", default=None, help="New start time HH:MM")
@click.option("--end", default=None, help="New end time HH:MM")
@click.option("--kind", "-k", default=None, type=click.Choice(list(DailyTaskKind.ALL)),
              help="New kind")
@click.option("--notes", "-n", default=None, help="New notes ('' clears)")
@pass_ctx
def daily_update(ctx: Core2Context, entry_id: str, title: str | None, day: str | None,
                 start: str | None, end: str | None, kind: str | None,
                 notes: str | None) -> None:
    """Update a calendar entry. Times keep their day unless --date is given."""
    entry = owned_entry(ctx, entry_id)
    assert ctx.repos is not None
    patch = DailyTaskUpdate()
    if title is not None:
        patch.title = title
    if kind is not None:
        patch.kind = kind
    if notes is not None:
        patch.notes = notes
    if day or start or end:
        local_start = entry.start_at.astimezone()
        local_end = entry.end_at.astimezone()
        on = _parse_day(day) if day else local_start.date()
        patch.start_at = local_instant(on, start or local_start.strftime("%H:%M"))
        patch.end_at = local_instant(on, end or local_end.strftime("%H:%M"))

    if not patch.to_patch():
        click.echo("Nothing to update.")
        return
    entry = update_daily_task(ctx.repos, entry, patch)
    if ctx.json_output:
        ctx.output(entry.to_dict())
    else:
        click.echo(f"Updated entry {entry.id}")


@daily.command("delete")
@click.argument("entry_id")
@pass_ctx
def daily_delete(ctx: Core2Context, entry_id: str) -> None:
    """Delete a calendar entry."""
    entry = owned_entry(ctx, entry_id)
    assert ctx.repos is not None
    ctx.repos.daily_tasks.remove(entry.id)
    if ctx.json_output:
        ctx.output({"deleted": entry.id})
    else:
        click.echo(f"Deleted entry {entry.id}")
