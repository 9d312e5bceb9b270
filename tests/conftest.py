"""Shared helpers for driving a GameSession without real timers."""

from __future__ import annotations

from typing import Callable, List

import pytest

from tictactoe.session import Presenter


class ManualCall:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Collects callbacks until the test fires them with ``run_pending``."""

    def __init__(self, honor_cancel: bool = True) -> None:
        self.honor_cancel = honor_cancel
        self.calls: List[ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualCall:
        call = ManualCall(delay, callback)
        self.calls.append(call)
        return call

    def run_pending(self) -> int:
        calls, self.calls = self.calls, []
        fired = 0
        for call in calls:
            if call.cancelled and self.honor_cancel:
                continue
            call.callback()
            fired += 1
        return fired


class RecordingPresenter(Presenter):
    """Remembers every render call in order."""

    def __init__(self) -> None:
        self.events: List[tuple] = []
        self.input_enabled = False

    def named(self, name: str) -> List[tuple]:
        return [event for event in self.events if event[0] == name]

    def render_stage(self, stage):
        self.events.append(("render_stage", stage))

    def render_labels(self, names):
        self.events.append(("render_labels", dict(names)))

    def clear_board(self):
        self.events.append(("clear_board",))

    def render_cell(self, index, mark):
        self.events.append(("render_cell", index, mark))

    def render_turn(self, mark, name):
        self.events.append(("render_turn", mark, name))

    def render_scores(self, ledger):
        self.events.append(("render_scores", ledger.as_dict()))

    def highlight_line(self, line):
        self.events.append(("highlight_line", tuple(line)))

    def show_result(self, result, winner_name):
        self.events.append(("show_result", result, winner_name))

    def set_input_enabled(self, enabled):
        self.events.append(("set_input_enabled", enabled))
        self.input_enabled = enabled


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()
