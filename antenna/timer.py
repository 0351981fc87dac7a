"""Countdown timer reconciled against server-issued remaining durations."""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any, Protocol

import structlog

log = structlog.get_logger(__name__)

DISPLAY_EPSILON_SEC = 0.001
MIN_TICK_SEC = 0.01


class TimerHandle(Protocol):
    """Cancelable scheduled callback (matches `asyncio.TimerHandle`)."""

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay (matches `asyncio.AbstractEventLoop`)."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


def display_seconds(remaining_sec: float) -> int:
    """Whole seconds to show for a remaining duration, never negative."""
    return max(0, math.ceil(remaining_sec - DISPLAY_EPSILON_SEC))


class TimerReconciler:
    """Single live countdown, restarted from scratch by every `set_timer` call.

    The server only ever tells the client how long is left; the reconciler
    turns that into an absolute expiry on the local clock and recomputes the
    displayed whole seconds each time the display is due to drop by one.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        clock: Callable[[], float] = time.monotonic,
        on_tick: Callable[[int | None], None] | None = None,
    ):
        self._scheduler = scheduler
        self._clock = clock
        self._on_tick = on_tick
        self._handle: TimerHandle | None = None
        self.expires_at: float | None = None
        self.display: int | None = None

    @property
    def active(self) -> bool:
        return self.expires_at is not None

    @property
    def scheduled(self) -> bool:
        """Whether a recomputation callback is pending."""
        return self._handle is not None

    def remaining(self) -> float | None:
        """Seconds left on the local clock, or `None` when no countdown is live."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - self._clock())

    def set_timer(self, remaining_sec: float | None) -> None:
        """Replace any live countdown. `None` cancels and hides it."""
        self._cancel_handle()
        if remaining_sec is None:
            self.expires_at = None
            self._publish(None)
            return
        self.expires_at = self._clock() + max(0.0, float(remaining_sec))
        log.debug("timer_set", remaining_sec=remaining_sec)
        self._tick()

    def cancel(self) -> None:
        """Stop the countdown and hide it."""
        self.set_timer(None)

    def _tick(self) -> None:
        self._handle = None
        remaining = self.remaining()
        if remaining is None:
            return
        shown = display_seconds(remaining)
        self._publish(shown)
        if shown <= 0:
            return
        # Wake up when the displayed value is due to drop by one.
        delay = max(MIN_TICK_SEC, remaining - (shown - 1))
        self._handle = self._scheduler.call_later(delay, self._tick)

    def _publish(self, shown: int | None) -> None:
        self.display = shown
        if self._on_tick is not None:
            self._on_tick(shown)

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
