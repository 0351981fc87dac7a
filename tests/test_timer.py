"""Countdown reconciliation against a manual clock."""

from __future__ import annotations

from antenna.timer import TimerReconciler, display_seconds


def _timer(scheduler, clock, ticks: list | None = None) -> TimerReconciler:
    on_tick = ticks.append if ticks is not None else None
    return TimerReconciler(scheduler, clock=clock, on_tick=on_tick)


def test_display_seconds_rounds_up_with_small_tolerance() -> None:
    assert display_seconds(30.0) == 30
    assert display_seconds(29.4) == 30
    assert display_seconds(1.0009) == 1
    assert display_seconds(1.002) == 2
    assert display_seconds(0.0) == 0
    assert display_seconds(-4.0) == 0


def test_countdown_ticks_down_to_zero_and_stops(scheduler, clock) -> None:
    ticks: list = []
    timer = _timer(scheduler, clock, ticks)

    timer.set_timer(3)
    assert timer.display == 3
    assert timer.scheduled

    scheduler.advance(1.0)
    assert timer.display == 2
    scheduler.advance(1.0)
    assert timer.display == 1
    scheduler.advance(1.0)
    assert timer.display == 0
    assert not timer.scheduled
    assert ticks == [3, 2, 1, 0]


def test_fractional_remaining_wakes_when_display_drops(scheduler, clock) -> None:
    timer = _timer(scheduler, clock)

    timer.set_timer(2.5)
    assert timer.display == 3
    assert scheduler.live[0].when == 0.5

    scheduler.advance(0.5)
    assert timer.display == 2


def test_newer_timer_supersedes_previous_schedule(scheduler, clock) -> None:
    timer = _timer(scheduler, clock)

    timer.set_timer(30)
    scheduler.advance(0.5)
    timer.set_timer(10)

    assert timer.display == 10
    assert len(scheduler.live) == 1
    assert timer.expires_at == 10.5

    scheduler.advance(1.0)
    assert timer.display == 9


def test_none_cancels_and_hides_countdown(scheduler, clock) -> None:
    ticks: list = []
    timer = _timer(scheduler, clock, ticks)

    timer.set_timer(5)
    timer.set_timer(None)

    assert timer.display is None
    assert not timer.active
    assert not timer.scheduled
    assert scheduler.live == []
    assert ticks[-1] is None

    scheduler.advance(10.0)
    assert ticks[-1] is None


def test_remaining_tracks_local_clock(scheduler, clock) -> None:
    timer = _timer(scheduler, clock)
    assert timer.remaining() is None

    timer.set_timer(4)
    clock.now = 1.5
    assert timer.remaining() == 2.5
    clock.now = 9.0
    assert timer.remaining() == 0.0
