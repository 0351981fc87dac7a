"""Immutable, UI-facing snapshots derived from a session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .log_store import LogEntry
from .serialize import digest, to_serializable
from .status import GameEndSummary, GameplayStatus, Phase, RoomInfo


class Connectivity(str, Enum):
    """Channel status as last reported by the transport."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class SlotView:
    """One roster seat with the derived turn markers applied."""

    seat_index: int
    creator_id: int
    creator_nickname: str
    profile_id: int | None
    seated: bool
    race: str | None
    description: str | None
    stats: tuple[int, ...] | None
    is_self: bool
    is_holder: bool
    is_storyteller: bool


@dataclass(frozen=True)
class AssemblyPanel:
    """What the seating screen needs: am I seated, with which profiles, can I start."""

    self_seated: bool
    offered_profile_ids: tuple[int, ...]
    is_room_creator: bool
    can_start: bool


@dataclass(frozen=True)
class AppointmentPanel:
    holder: int
    is_self_holder: bool


@dataclass(frozen=True)
class GameplayPanel:
    """Gameplay status plus what the local user may do with it."""

    status: GameplayStatus
    storyteller: int | None
    can_act: bool
    is_storyteller: bool
    keyword_text: str | None
    pending_selection: Mapping[str, Any]
    hand_cards: tuple[Mapping[str, Any], ...]


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session at one point in the message stream."""

    self_id: int
    room_id: int
    room: RoomInfo | None
    phase: Phase
    connectivity: Connectivity
    roster: tuple[SlotView, ...]
    self_seat_index: int | None
    holder: int | None
    storyteller: int | None
    timer_seconds: int | None
    assembly: AssemblyPanel | None
    appointment: AppointmentPanel | None
    gameplay: GameplayPanel | None
    game_end: GameEndSummary | None
    log: tuple[LogEntry, ...]
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        payload = {
            "self_id": self.self_id,
            "room_id": self.room_id,
            "room": self.room.to_dict() if self.room is not None else None,
            "phase": self.phase.value,
            "connectivity": self.connectivity.value,
            "roster": to_serializable(self.roster),
            "self_seat_index": self.self_seat_index,
            "holder": self.holder,
            "storyteller": self.storyteller,
            "timer_seconds": self.timer_seconds,
            "assembly": to_serializable(self.assembly),
            "appointment": to_serializable(self.appointment),
            "gameplay": None,
            "game_end": self.game_end.to_dict() if self.game_end is not None else None,
            "log": [dict(entry.to_dict(), clock=entry.clock_label) for entry in self.log],
            "last_error": self.last_error,
        }
        if self.gameplay is not None:
            gameplay = to_serializable(self.gameplay)
            gameplay["status"] = self.gameplay.status.to_dict()
            payload["gameplay"] = gameplay
        return payload

    def state_digest(self) -> str:
        """Digest of the reconciled game state, ignoring the ticking timer display."""
        payload = self.to_dict()
        payload.pop("timer_seconds")
        if payload["gameplay"] is not None:
            payload["gameplay"]["status"].pop("timer")
        return digest(payload)
