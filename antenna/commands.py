"""Outbound command definitions sent over the room channel."""

from __future__ import annotations

from abc import ABC
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Self

from .errors import MessageDecodeError
from .serialize import to_serializable

NO_TARGET = -1


class CommandType(str, Enum):
    """Supported outbound command discriminators."""

    START = "start"
    SEAT = "seat"
    WITHDRAW = "withdraw"
    APPOINTMENT_ACCEPT = "appointment_accept"
    APPOINTMENT_PASS = "appointment_pass"
    ACTION = "action"
    QUEUE = "queue"
    COMMENT = "comment"
    STORYTELLING_END = "storytelling_end"


class Command(ABC):
    """Base class for a typed intent emitted to the server."""

    command_type: ClassVar[str] = "command"

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-serializable frame for the command."""
        payload = {key: to_serializable(value) for key, value in asdict(self).items()}
        payload["type"] = self.command_type
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build the command from a dictionary payload."""
        kwargs = {key: value for key, value in data.items() if key != "type"}
        return cls(**kwargs)  # type: ignore[misc, call-arg]


@dataclass(frozen=True)
class StartGame(Command):
    """Room creator asks the server to leave assembly."""

    command_type = CommandType.START.value


@dataclass(frozen=True)
class Seat(Command):
    """Take a seat with one of the user's own profiles."""

    profile_id: int
    command_type = CommandType.SEAT.value


@dataclass(frozen=True)
class Withdraw(Command):
    """Leave the seat taken during assembly."""

    command_type = CommandType.WITHDRAW.value


@dataclass(frozen=True)
class AcceptAppointment(Command):
    """Appointment holder accepts to open the game."""

    command_type = CommandType.APPOINTMENT_ACCEPT.value


@dataclass(frozen=True)
class PassAppointment(Command):
    """Appointment holder passes to the next seat."""

    command_type = CommandType.APPOINTMENT_PASS.value


@dataclass(frozen=True)
class Action(Command):
    """Play a hand card on an arena keyword, optionally towards another seat."""

    hand_index: int
    arena_index: int
    target: int = NO_TARGET
    command_type = CommandType.ACTION.value

    def __post_init__(self) -> None:
        if self.hand_index < 0:
            raise ValueError("hand_index must be >= 0.")
        if self.arena_index < 0:
            raise ValueError("arena_index must be >= 0.")
        if self.target < NO_TARGET:
            raise ValueError(f"target must be a seat index or {NO_TARGET}.")

    @property
    def has_target(self) -> bool:
        return self.target != NO_TARGET


@dataclass(frozen=True)
class Queue(Command):
    """Ask to be queued as a future turn holder."""

    command_type = CommandType.QUEUE.value


@dataclass(frozen=True)
class Comment(Command):
    """Free-text line posted to the room log."""

    text: str
    command_type = CommandType.COMMENT.value

    def __post_init__(self) -> None:
        text = self.text.strip()
        if not text:
            raise ValueError("Comment text must be non-empty.")
        object.__setattr__(self, "text", text)


@dataclass(frozen=True)
class EndStorytelling(Command):
    """Current storyteller finishes their part."""

    command_type = CommandType.STORYTELLING_END.value


_COMMAND_CLASSES: dict[str, type[Command]] = {
    CommandType.START.value: StartGame,
    CommandType.SEAT.value: Seat,
    CommandType.WITHDRAW.value: Withdraw,
    CommandType.APPOINTMENT_ACCEPT.value: AcceptAppointment,
    CommandType.APPOINTMENT_PASS.value: PassAppointment,
    CommandType.ACTION.value: Action,
    CommandType.QUEUE.value: Queue,
    CommandType.COMMENT.value: Comment,
    CommandType.STORYTELLING_END.value: EndStorytelling,
}


def command_from_dict(data: Mapping[str, Any]) -> Command:
    """Parse an outbound command from a JSON payload."""
    command_type = data.get("type")
    command_class = _COMMAND_CLASSES.get(str(command_type))
    if command_class is None:
        raise MessageDecodeError(None if command_type is None else str(command_type), "unknown command type")
    payload = dict(data)
    if command_class is Action and payload.get("target") is None:
        payload["target"] = NO_TARGET
    try:
        return command_class.from_dict(payload)
    except (TypeError, ValueError) as exc:
        raise MessageDecodeError(str(command_type), str(exc)) from exc
