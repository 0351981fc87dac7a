"""Accumulates the three independent picks of a selection turn into one action."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Final

import structlog

from .commands import NO_TARGET, Action

log = structlog.get_logger(__name__)


class _Unset:
    """Marker for a pick that has not been made yet."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


class SelectionAccumulator:
    """Holds pending arena / hand / target picks and emits a single action.

    Each `choose_*` call overwrites only its own slot. The instant all three
    slots are set, the triple is read, one `Action` is handed to `emit`, and
    every slot goes back to `UNSET` before the call returns. Whether the
    local user may select at all is for the owner to decide; the owner also
    calls `reset()` when the turn moves on.
    """

    def __init__(self, emit: Callable[[Action], None]):
        self._emit = emit
        self.arena_index: int | _Unset = UNSET
        self.hand_index: int | _Unset = UNSET
        self.target: int | _Unset = UNSET

    def choose_arena(self, index: int) -> Action | None:
        """Pick an arena keyword slot."""
        self.arena_index = _index(index, "arena index")
        return self._complete_if_ready()

    def choose_hand(self, index: int) -> Action | None:
        """Pick a hand card."""
        self.hand_index = _index(index, "hand index")
        return self._complete_if_ready()

    def choose_target(self, seat_index: int | None) -> Action | None:
        """Pick a target seat; `None` or `NO_TARGET` means explicitly no target."""
        if seat_index is None:
            seat_index = NO_TARGET
        if seat_index != NO_TARGET:
            seat_index = _index(seat_index, "target seat")
        self.target = seat_index
        return self._complete_if_ready()

    def reset(self) -> None:
        """Drop every pending pick."""
        if self.has_pending:
            log.debug("selection_reset", pending=self.pending())
        self.arena_index = UNSET
        self.hand_index = UNSET
        self.target = UNSET

    @property
    def has_pending(self) -> bool:
        return any(value is not UNSET for value in (self.arena_index, self.hand_index, self.target))

    def pending(self) -> dict[str, Any]:
        """Return picks made so far; unset slots map to `None`."""
        return {
            "arena_index": None if self.arena_index is UNSET else self.arena_index,
            "hand_index": None if self.hand_index is UNSET else self.hand_index,
            "target": None if self.target is UNSET else self.target,
            "no_target": self.target == NO_TARGET,
        }

    def _complete_if_ready(self) -> Action | None:
        arena_index, hand_index, target = self.arena_index, self.hand_index, self.target
        if arena_index is UNSET or hand_index is UNSET or target is UNSET:
            return None
        action = Action(hand_index=hand_index, arena_index=arena_index, target=target)  # type: ignore[arg-type]
        self.arena_index = UNSET
        self.hand_index = UNSET
        self.target = UNSET
        self._emit(action)
        return action


def _index(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}.")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}.")
    return value
