"""Tests for the Pomodoro board and tick driver."""

import threading
import time

import pytest

from core2.pomodoro import (
    LONG_BREAK, SHORT_BREAK, WORK, PomodoroBoard, format_remaining,
)


def _wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def board():
    # Long interval: the driver never ticks during a test unless asked to.
    b = PomodoroBoard({WORK: 3, SHORT_BREAK: 2, LONG_BREAK: 5}, interval=60)
    yield b
    b.close()


def test_default_durations():
    b = PomodoroBoard()
    assert b.get(WORK).duration == 25 * 60
    assert b.get(SHORT_BREAK).duration == 5 * 60
    assert b.get(LONG_BREAK).duration == 15 * 60
    assert not b.has_running()
    assert b.driver is None


def test_from_minutes():
    b = PomodoroBoard.from_minutes(work=50, short=10, long=30)
    assert b.get(WORK).remaining == 3000


def test_unknown_timer(board: PomodoroBoard):
    with pytest.raises(ValueError):
        board.toggle("lunch")


def test_toggle_starts_and_pauses(board: PomodoroBoard):
    timer = board.toggle(WORK)
    assert timer.running
    assert board.driver is not None
    board.tick()
    assert timer.remaining == 2
    board.toggle(WORK)
    assert not timer.running
    assert board.driver is None
    board.tick()
    assert timer.remaining == 2


def test_tick_stops_at_zero(board: PomodoroBoard):
    finished = []
    board.on_finish = finished.append
    board.toggle(SHORT_BREAK)
    board.tick()
    assert board.tick() == [board.get(SHORT_BREAK)]
    timer = board.get(SHORT_BREAK)
    assert timer.remaining == 0
    assert not timer.running
    board.tick()
    assert timer.remaining == 0
    assert finished == [timer]


def test_toggle_at_zero_restarts_full_duration(board: PomodoroBoard):
    timer = board.get(SHORT_BREAK)
    board.toggle(SHORT_BREAK)
    board.tick()
    board.tick()
    assert timer.remaining == 0
    board.toggle(SHORT_BREAK)
    assert timer.running
    assert timer.remaining == timer.duration


def test_reset(board: PomodoroBoard):
    board.toggle(LONG_BREAK)
    board.tick()
    timer = board.reset(LONG_BREAK)
    assert timer.remaining == 5
    assert not timer.running
    assert board.driver is None


def test_single_driver_for_many_timers(board: PomodoroBoard):
    board.toggle(WORK)
    driver = board.driver
    board.toggle(SHORT_BREAK)
    assert board.driver is driver
    board.toggle(WORK)
    assert board.driver is driver
    board.toggle(SHORT_BREAK)
    assert board.driver is None
    assert _wait_for(lambda: not driver.is_alive())


def test_driver_ticks_until_done():
    b = PomodoroBoard({WORK: 2, SHORT_BREAK: 1, LONG_BREAK: 1}, interval=0.01)
    try:
        b.toggle(WORK)
        assert _wait_for(lambda: not b.has_running())
        assert b.get(WORK).remaining == 0
        assert _wait_for(lambda: b.driver is None)
    finally:
        b.close()


def test_on_finish_runs_without_holding_the_board():
    seen = []

    def on_finish(timer):
        # Another thread must be able to read the board from inside the callback
        reader = threading.Thread(target=lambda: seen.append(b.has_running()))
        reader.start()
        reader.join(timeout=2)
        seen.append(reader.is_alive())

    b = PomodoroBoard({WORK: 1, SHORT_BREAK: 1, LONG_BREAK: 1}, interval=0.01,
                      on_finish=on_finish)
    try:
        b.toggle(WORK)
        assert _wait_for(lambda: len(seen) == 2)
        assert seen == [False, False]
    finally:
        b.close()


def test_format_remaining():
    assert format_remaining(25 * 60) == "25:00"
    assert format_remaining(61) == "01:01"
    assert format_remaining(-3) == "00:00"
