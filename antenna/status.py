"""Immutable phase payloads mirrored from the server: room, appointment, gameplay, game end."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Self, Sequence

from .serialize import to_serializable


class Phase(str, Enum):
    """Top-level session phases."""

    ASSEMBLY = "assembly"
    APPOINTMENT = "appointment"
    GAMEPLAY = "gameplay"
    GAME_END = "game_end"


class GameplayStep(str, Enum):
    """Sub-steps reported inside gameplay status. Informational only."""

    SELECTION = "selection"
    STORYTELLING_HOLDER = "storytelling_holder"
    STORYTELLING_TARGET = "storytelling_target"
    RESOLUTION = "resolution"


def _int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"`{name}` must be an integer, got {value!r}.")
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise TypeError(f"`{name}` must be an integer, got {value!r}.")
    return int(value)


def _optional_int(value: Any, name: str) -> int | None:
    return None if value is None else _int(value, name)


def _seconds(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError(f"`{name}` must be a number of seconds, got {value!r}.")
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise TypeError(f"`{name}` must be a number of seconds, got {value!r}.") from exc
    if not math.isfinite(seconds):
        raise TypeError(f"`{name}` must be a finite number of seconds, got {value!r}.")
    return seconds


def _list(value: Any, name: str) -> Sequence[Any]:
    if value is None:
        return ()
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TypeError(f"`{name}` must be a list.")
    return value


def _relationship(value: Any, name: str) -> tuple[tuple[float, ...], ...]:
    rows = []
    for row in _list(value, name):
        cells = tuple(float(cell) for cell in _list(row, f"{name}[]"))
        if not all(math.isfinite(cell) for cell in cells):
            raise TypeError(f"`{name}` values must be finite numbers.")
        rows.append(cells)
    return tuple(rows)


@dataclass(frozen=True)
class RoomInfo:
    """Room metadata as delivered in `room_state` or fetched over HTTP."""

    room_id: int
    title: str
    description: str = ""
    tags: tuple[str, ...] = ()
    creator_id: int | None = None
    creator_nickname: str | None = None
    created_at: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.room_id,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "creator": {"id": self.creator_id, "nickname": self.creator_nickname},
            "created_at": self.created_at,
        }

    def notice(self) -> str:
        """Text of the system log line announcing the room."""
        if self.description:
            return f"Room “{self.title}”: {self.description}"
        return f"Room “{self.title}”"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        creator = data.get("creator") or {}
        if not isinstance(creator, Mapping):
            raise TypeError("Room `creator` must be an object.")
        # The server encodes the room id as a decimal string.
        room_id = int(str(data["id"]))
        tags = tuple(str(tag) for tag in _list(data.get("tags"), "tags") if str(tag))
        return cls(
            room_id=room_id,
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            tags=tags,
            creator_id=_optional_int(creator.get("id"), "creator.id"),
            creator_nickname=None if creator.get("nickname") is None else str(creator["nickname"]),
            created_at=_optional_int(data.get("created_at"), "created_at"),
        )


@dataclass(frozen=True)
class AppointmentStatus:
    """Who currently holds the opening appointment, and for how long."""

    holder: int
    timer: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"holder": self.holder, "timer": self.timer}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(holder=_int(data["holder"], "holder"), timer=_seconds(data.get("timer"), "timer"))


@dataclass(frozen=True)
class GameplayStatus:
    """Per-viewer gameplay status pushed by the server."""

    holder: int
    step: str
    event: str = "none"
    act_count: int = 1
    round_count: int = 1
    move_count: int = 1
    relationship: tuple[tuple[float, ...], ...] = ()
    action_points: int = 0
    hand: tuple[str, ...] = ()
    arena: tuple[str, ...] = ()
    action: str | None = None
    keyword: int | None = None
    target: int | None = None
    holder_difficulty: int | None = None
    holder_result: int | None = None
    target_difficulty: int | None = None
    target_result: int | None = None
    timer: float | None = None
    queue: tuple[int, ...] = field(default_factory=tuple)

    @property
    def storyteller(self) -> int | None:
        """Seat currently telling the story, derived from the step."""
        if self.step == GameplayStep.STORYTELLING_HOLDER.value:
            return self.holder
        if self.step == GameplayStep.STORYTELLING_TARGET.value:
            return self.target
        return None

    @property
    def is_selection(self) -> bool:
        return self.step == GameplayStep.SELECTION.value

    def turn_key(self) -> tuple[int, str, int, int, int]:
        """Identity of the current turn; changes whenever the turn moves on."""
        return (self.holder, self.step, self.act_count, self.round_count, self.move_count)

    def keyword_text(self) -> str | None:
        if self.keyword is None or not 0 <= self.keyword < len(self.arena):
            return None
        return self.arena[self.keyword]

    def to_dict(self) -> dict[str, Any]:
        return to_serializable(
            {
                "event": self.event,
                "act_count": self.act_count,
                "round_count": self.round_count,
                "move_count": self.move_count,
                "relationship": self.relationship,
                "action_points": self.action_points,
                "hand": self.hand,
                "arena": self.arena,
                "holder": self.holder,
                "step": self.step,
                "action": self.action,
                "keyword": self.keyword,
                "target": self.target,
                "holder_difficulty": self.holder_difficulty,
                "holder_result": self.holder_result,
                "target_difficulty": self.target_difficulty,
                "target_result": self.target_result,
                "timer": self.timer,
                "queue": self.queue,
            }
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        step = data["step"]
        if not isinstance(step, str):
            raise TypeError(f"`step` must be a string, got {step!r}.")
        return cls(
            holder=_int(data["holder"], "holder"),
            step=step,
            event=str(data.get("event") or "none"),
            act_count=_int(data.get("act_count", 1), "act_count"),
            round_count=_int(data.get("round_count", 1), "round_count"),
            move_count=_int(data.get("move_count", 1), "move_count"),
            relationship=_relationship(data.get("relationship"), "relationship"),
            action_points=_int(data.get("action_points", 0), "action_points"),
            hand=tuple(str(card) for card in _list(data.get("hand"), "hand")),
            arena=tuple(str(word) for word in _list(data.get("arena"), "arena")),
            action=None if data.get("action") is None else str(data["action"]),
            keyword=_optional_int(data.get("keyword"), "keyword"),
            target=_optional_int(data.get("target"), "target"),
            holder_difficulty=_optional_int(data.get("holder_difficulty"), "holder_difficulty"),
            holder_result=_optional_int(data.get("holder_result"), "holder_result"),
            target_difficulty=_optional_int(data.get("target_difficulty"), "target_difficulty"),
            target_result=_optional_int(data.get("target_result"), "target_result"),
            timer=_seconds(data.get("timer"), "timer"),
            queue=tuple(_int(seat, "queue[]") for seat in _list(data.get("queue"), "queue")),
        )


@dataclass(frozen=True)
class GameEndSummary:
    """Final relationship matrix (from the viewer's seat) and growth points."""

    relationship: tuple[tuple[float, ...], ...] = ()
    growth_points: tuple[int, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return to_serializable({"relationship": self.relationship, "growth_points": self.growth_points})

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        raw_growth = data.get("growth_points")
        growth = None
        if raw_growth is not None:
            if isinstance(raw_growth, (int, float)) and not isinstance(raw_growth, bool):
                growth = (_int(raw_growth, "growth_points"),)
            else:
                growth = tuple(_int(value, "growth_points[]") for value in _list(raw_growth, "growth_points"))
        return cls(relationship=_relationship(data.get("relationship"), "relationship"), growth_points=growth)
