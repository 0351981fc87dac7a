"""Shared fixtures: a manual clock and a scheduler driven by it."""

from __future__ import annotations

from typing import Any, Callable

import pytest


class ManualClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class ManualHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """`call_later` that only fires when the test advances the clock."""

    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.handles: list[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualHandle:
        handle = ManualHandle(self.clock.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[ManualHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = sorted((h for h in self.live if h.when <= target + 1e-9), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self.handles.remove(handle)
            self.clock.now = handle.when
            handle.callback(*handle.args)
        self.clock.now = target


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> ManualScheduler:
    return ManualScheduler(clock)
