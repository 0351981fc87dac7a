"""Inbound server message definitions and their parser."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Self, Sequence

from .errors import MessageDecodeError
from .log_store import LogEntry
from .roster import Roster
from .status import AppointmentStatus, GameEndSummary, GameplayStatus, Phase, RoomInfo


class MessageType(str, Enum):
    """Supported inbound message discriminators."""

    LOG = "log"
    ROOM_STATE = "room_state"
    ASSEMBLY_UPDATE = "assembly_update"
    START = "start"
    APPOINTMENT_PASS = "appointment_pass"
    APPOINTMENT_ACCEPT = "appointment_accept"
    GAMEPLAY_PROGRESS = "gameplay_progress"
    GAME_END = "game_end"


class InboundMessage:
    """Base class for a decoded server push."""

    message_type: ClassVar[str] = "message"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        raise NotImplementedError(f"{cls.__name__} does not implement from_dict().")


def _optional_seat(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"`{name}` must be a seat index, got {value!r}.")
    if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
        raise TypeError(f"`{name}` must be a seat index, got {value!r}.")
    return int(value)


def _seat(value: Any, name: str) -> int:
    seat = _optional_seat(value, name)
    if seat is None:
        raise TypeError(f"`{name}` is required.")
    return seat


def _mapping(value: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"`{name}` must be an object.")
    return value


@dataclass(frozen=True)
class LogBatch(InboundMessage):
    """Batch of room log entries in server order."""

    entries: tuple[LogEntry, ...]
    message_type = MessageType.LOG.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        raw = data["log"]
        if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
            raise TypeError("`log` must be a list.")
        return cls(entries=tuple(LogEntry.from_dict(_mapping(item, "log[]")) for item in raw))


@dataclass(frozen=True)
class RoomState(InboundMessage):
    """Full room snapshot, sent on every (re)connect."""

    room: RoomInfo
    phase: Phase
    players: Roster | None = None
    my_index: int | None = None
    appointment_status: AppointmentStatus | None = None
    gameplay_status: GameplayStatus | None = None
    message_type = MessageType.ROOM_STATE.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        phase = Phase(str(data["phase"]))
        raw_appointment = data.get("appointment_status")
        raw_gameplay = data.get("gameplay_status")
        return cls(
            room=RoomInfo.from_dict(_mapping(data["room"], "room")),
            phase=phase,
            players=Roster.from_list(data["players"]) if data.get("players") is not None else None,
            my_index=_optional_seat(data.get("my_index"), "my_index"),
            appointment_status=(
                AppointmentStatus.from_dict(_mapping(raw_appointment, "appointment_status"))
                if raw_appointment is not None
                else None
            ),
            gameplay_status=(
                GameplayStatus.from_dict(_mapping(raw_gameplay, "gameplay_status"))
                if raw_gameplay is not None
                else None
            ),
        )


@dataclass(frozen=True)
class AssemblyUpdate(InboundMessage):
    """Roster changed while players are still taking seats."""

    players: Roster
    message_type = MessageType.ASSEMBLY_UPDATE.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(players=Roster.from_list(data["players"]))


@dataclass(frozen=True)
class Start(InboundMessage):
    """Game left assembly; `holder` received the opening appointment."""

    holder: int
    my_index: int | None = None
    message_type = MessageType.START.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(holder=_seat(data.get("holder"), "holder"), my_index=_optional_seat(data.get("my_index"), "my_index"))


@dataclass(frozen=True)
class AppointmentPass(InboundMessage):
    """Appointment passed on to `next_holder`."""

    next_holder: int
    prev_holder: int | None = None
    message_type = MessageType.APPOINTMENT_PASS.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            next_holder=_seat(data.get("next_holder"), "next_holder"),
            prev_holder=_optional_seat(data.get("prev_holder"), "prev_holder"),
        )


@dataclass(frozen=True)
class AppointmentAccept(InboundMessage):
    """Appointment accepted (or randomly forced); gameplay begins."""

    gameplay_status: GameplayStatus
    prev_holder: int | None = None
    message_type = MessageType.APPOINTMENT_ACCEPT.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            gameplay_status=GameplayStatus.from_dict(_mapping(data["gameplay_status"], "gameplay_status")),
            prev_holder=_optional_seat(data.get("prev_holder"), "prev_holder"),
        )


@dataclass(frozen=True)
class GameplayProgress(InboundMessage):
    """Updated gameplay status after any in-game event."""

    gameplay_status: GameplayStatus
    message_type = MessageType.GAMEPLAY_PROGRESS.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(gameplay_status=GameplayStatus.from_dict(_mapping(data["gameplay_status"], "gameplay_status")))


@dataclass(frozen=True)
class GameEnd(InboundMessage):
    """Final summary; the room returns to assembly server-side."""

    summary: GameEndSummary
    message_type = MessageType.GAME_END.value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(summary=GameEndSummary.from_dict(data))


MESSAGE_CLASSES: dict[str, type[InboundMessage]] = {
    MessageType.LOG.value: LogBatch,
    MessageType.ROOM_STATE.value: RoomState,
    MessageType.ASSEMBLY_UPDATE.value: AssemblyUpdate,
    MessageType.START.value: Start,
    MessageType.APPOINTMENT_PASS.value: AppointmentPass,
    MessageType.APPOINTMENT_ACCEPT.value: AppointmentAccept,
    MessageType.GAMEPLAY_PROGRESS.value: GameplayProgress,
    MessageType.GAME_END.value: GameEnd,
}


def is_known_type(message_type: Any) -> bool:
    return isinstance(message_type, str) and message_type in MESSAGE_CLASSES


def message_from_dict(data: Mapping[str, Any]) -> InboundMessage:
    """Parse one inbound message. Raises `MessageDecodeError` on unknown or malformed payloads."""
    message_type = data.get("type")
    if not is_known_type(message_type):
        raise MessageDecodeError(None if message_type is None else str(message_type), "unknown message type")
    try:
        return MESSAGE_CLASSES[message_type].from_dict(data)
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        reason = f"missing field {exc}" if isinstance(exc, KeyError) else str(exc)
        raise MessageDecodeError(message_type, reason) from exc
