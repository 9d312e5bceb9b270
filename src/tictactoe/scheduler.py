"""Deferred callbacks used to pace the computer's moves."""

from __future__ import annotations

import threading
from typing import Callable, Protocol


class ScheduledCall(Protocol):
    cancelled: bool

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        ...


class TimerCall:
    """Handle for a callback running on a ``threading.Timer``."""

    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        self._timer.cancel()


class ThreadingScheduler:
    """Runs each callback once on a daemon timer thread."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerCall:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        call = TimerCall(timer)
        timer.start()
        return call
