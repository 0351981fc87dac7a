"""Client-side session reconciliation for the room channel."""

from .client import GameClient
from .commands import Action, Command, command_from_dict
from .config import ClientConfig, load_config
from .errors import (
    AntennaError,
    ConfigurationError,
    ContextFetchError,
    MessageDecodeError,
    NotYourTurnError,
    TransportError,
)
from .log_store import EventLogStore, LogEntry
from .messages import InboundMessage, message_from_dict
from .router import MessageRouter
from .selection import SelectionAccumulator
from .session import Session
from .snapshot import Connectivity, SessionSnapshot
from .status import GameplayStatus, Phase
from .timer import TimerReconciler

__all__ = [
    "Action",
    "AntennaError",
    "ClientConfig",
    "Command",
    "ConfigurationError",
    "Connectivity",
    "ContextFetchError",
    "EventLogStore",
    "GameClient",
    "GameplayStatus",
    "InboundMessage",
    "LogEntry",
    "MessageDecodeError",
    "MessageRouter",
    "NotYourTurnError",
    "Phase",
    "SelectionAccumulator",
    "Session",
    "SessionSnapshot",
    "TimerReconciler",
    "TransportError",
    "command_from_dict",
    "load_config",
    "message_from_dict",
]
