"""core2 pomodoro - focus timer in the terminal."""

from __future__ import annotations

import time

import click

from core2.cli import Core2Context, pass_ctx
from core2.config import Core2Config, find_core2_dir
from core2.pomodoro import LONG_BREAK, SHORT_BREAK, WORK, PomodoroBoard, format_remaining

TIMER_CHOICES = [WORK, SHORT_BREAK, LONG_BREAK]


def _board(ctx: Core2Context, **kwargs) -> PomodoroBoard:
    """Board with durations from config.yaml when inside a workspace."""
    core2_dir = ctx.core2_dir or find_core2_dir()
    config = ctx.config or (Core2Config.load(core2_dir) if core2_dir else Core2Config())
    return PomodoroBoard(config.pomodoro_seconds(), **kwargs)


@click.group("pomodoro")
def pomodoro() -> None:
    """Pomodoro timers."""


@pomodoro.command("status")
@pass_ctx
def pomodoro_status(ctx: Core2Context) -> None:
    """Show the configured timers."""
    board = _board(ctx)
    if ctx.json_output:
        ctx.output([t.to_dict() for t in board.timers.values()])
        return
    for t in board.timers.values():
        click.echo(f"  {t.id:<6} {t.label:<12} {format_remaining(t.duration)}")


@pomodoro.command("run")
@click.argument("timer_id", default=WORK, type=click.Choice(TIMER_CHOICES))
@click.option("--interval", default=1.0, type=float, hidden=True,
              help="Seconds per tick")
@pass_ctx
def pomodoro_run(ctx: Core2Context, timer_id: str, interval: float) -> None:
    """Run a timer until it reaches zero. Ctrl-C pauses and exits."""
    finished = []
    board = _board(ctx, interval=interval, on_finish=finished.append)
    timer = board.toggle(timer_id)
    click.echo(f"{timer.label} started ({format_remaining(timer.duration)})")
    try:
        while board.has_running():
            if not ctx.quiet:
                click.echo(f"\r  {format_remaining(timer.remaining)} ", nl=False)
            time.sleep(min(interval, 0.25))
    except KeyboardInterrupt:
        board.toggle(timer_id)
        click.echo(f"\n{timer.label} paused at {format_remaining(timer.remaining)}")
        return
    finally:
        board.close()

    if finished:
        click.echo(f"\n{timer.label} done!")
