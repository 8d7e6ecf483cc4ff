"""Pomodoro timers and the background thread that ticks them."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

WORK = "work"
SHORT_BREAK = "short"
LONG_BREAK = "long"

DEFAULT_MINUTES = {WORK: 25, SHORT_BREAK: 5, LONG_BREAK: 15}
LABELS = {WORK: "Pomodoro", SHORT_BREAK: "Short break", LONG_BREAK: "Long break"}


@dataclass
class PomodoroTimer:
    id: str
    label: str
    duration: int  # seconds
    remaining: int
    running: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "duration": self.duration,
            "remaining": self.remaining,
            "running": self.running,
        }


class PomodoroBoard:
    """The three timers plus at most one tick driver.

    The driver exists only while some timer is running.
    """

    def __init__(self, durations: dict[str, int] | None = None,
                 interval: float = 1.0,
                 on_finish: Callable[[PomodoroTimer], None] | None = None) -> None:
        seconds = durations or {k: m * 60 for k, m in DEFAULT_MINUTES.items()}
        self.timers: dict[str, PomodoroTimer] = {}
        for timer_id in (WORK, SHORT_BREAK, LONG_BREAK):
            duration = int(seconds[timer_id])
            self.timers[timer_id] = PomodoroTimer(
                id=timer_id, label=LABELS[timer_id], duration=duration, remaining=duration,
            )
        self.interval = interval
        self.on_finish = on_finish
        self._lock = threading.RLock()
        self._driver: TickDriver | None = None

    @classmethod
    def from_minutes(cls, work: int = 25, short: int = 5, long: int = 15,
                     **kwargs) -> PomodoroBoard:
        return cls({WORK: work * 60, SHORT_BREAK: short * 60, LONG_BREAK: long * 60}, **kwargs)

    def get(self, timer_id: str) -> PomodoroTimer:
        timer = self.timers.get(timer_id)
        if timer is None:
            raise ValueError(f"unknown timer: {timer_id}")
        return timer

    def toggle(self, timer_id: str) -> PomodoroTimer:
        """Pause a running timer, or start a stopped one.

        A timer that already reached zero starts over from its full duration.
        """
        stale = None
        with self._lock:
            timer = self.get(timer_id)
            if timer.running:
                timer.running = False
            else:
                if timer.remaining <= 0:
                    timer.remaining = timer.duration
                timer.running = True
            stale = self._sync_driver()
        _join(stale)
        return timer

    def reset(self, timer_id: str) -> PomodoroTimer:
        stale = None
        with self._lock:
            timer = self.get(timer_id)
            timer.running = False
            timer.remaining = timer.duration
            stale = self._sync_driver()
        _join(stale)
        return timer

    def tick(self) -> list[PomodoroTimer]:
        """Advance every running timer by one second. Returns timers that finished."""
        finished = self._advance()
        self._notify(finished)
        return finished

    def _advance(self) -> list[PomodoroTimer]:
        finished = []
        with self._lock:
            for timer in self.timers.values():
                if not timer.running:
                    continue
                timer.remaining -= 1
                if timer.remaining <= 0:
                    timer.remaining = 0
                    timer.running = False
                    finished.append(timer)
        return finished

    def _notify(self, finished: list[PomodoroTimer]) -> None:
        """Run on_finish callbacks. Never called with the lock held."""
        for timer in finished:
            logger.info("%s finished", timer.label)
            if self.on_finish is not None:
                self.on_finish(timer)

    def has_running(self) -> bool:
        with self._lock:
            return any(t.running for t in self.timers.values())

    @property
    def driver(self) -> TickDriver | None:
        return self._driver

    def close(self) -> None:
        """Pause everything and stop the driver."""
        with self._lock:
            for timer in self.timers.values():
                timer.running = False
            stale = self._sync_driver()
        _join(stale)

    def _sync_driver(self) -> TickDriver | None:
        """Start or stop the driver to match the running timers.

        Must hold the lock. Returns a driver that was stopped, for joining
        once the lock is released.
        """
        if self.has_running():
            if self._driver is None:
                self._driver = TickDriver(self, self.interval)
                self._driver.start()
                logger.debug("tick driver started")
            return None
        driver, self._driver = self._driver, None
        if driver is not None:
            driver.stop()
            logger.debug("tick driver stopped")
        return driver

    def _driver_tick(self, driver: TickDriver) -> bool:
        """One tick on behalf of a driver. False tells the driver to exit."""
        with self._lock:
            if driver is not self._driver:
                return False
            finished = self._advance()
            keep_going = self.has_running()
            if not keep_going:
                self._driver = None
                logger.debug("tick driver idle")
        self._notify(finished)
        return keep_going


class TickDriver(threading.Thread):
    """Calls back into the board once per interval until stopped."""

    def __init__(self, board: PomodoroBoard, interval: float) -> None:
        super().__init__(name="pomodoro-tick", daemon=True)
        self.board = board
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.wait(self.interval):
            if not self.board._driver_tick(self):
                break

    def stop(self) -> None:
        self._stop_event.set()


def _join(driver: TickDriver | None) -> None:
    if driver is not None and driver is not threading.current_thread():
        driver.join()


def format_remaining(seconds: int) -> str:
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"
