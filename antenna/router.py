"""Route decoded channel frames to the session handler for their type."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import structlog

from .errors import ConfigurationError, MessageDecodeError
from .messages import (
    MESSAGE_CLASSES,
    AppointmentAccept,
    AppointmentPass,
    AssemblyUpdate,
    GameEnd,
    GameplayProgress,
    InboundMessage,
    LogBatch,
    RoomState,
    Start,
    is_known_type,
    message_from_dict,
)
from .serialize import decode_frame
from .session import Session

log = structlog.get_logger(__name__)

Handler = Callable[[Any], None]


def session_handlers(session: Session) -> dict[type[InboundMessage], Handler]:
    """Default handler table binding every inbound message class to a session method."""
    return {
        LogBatch: session.on_log,
        RoomState: session.on_room_state,
        AssemblyUpdate: session.on_assembly_update,
        Start: session.on_start,
        AppointmentPass: session.on_appointment_pass,
        AppointmentAccept: session.on_appointment_accept,
        GameplayProgress: session.on_gameplay_progress,
        GameEnd: session.on_game_end,
    }


class MessageRouter:
    """Decode frames and invoke exactly one session handler per known message."""

    def __init__(self, session: Session, handlers: Mapping[type[InboundMessage], Handler] | None = None):
        self.session = session
        self._handlers = dict(handlers if handlers is not None else session_handlers(session))
        missing = sorted(cls.message_type for cls in MESSAGE_CLASSES.values() if cls not in self._handlers)
        if missing:
            raise ConfigurationError(f"No handler registered for message types: {', '.join(missing)}")

    def dispatch(self, raw: str | bytes | Mapping[str, Any]) -> InboundMessage | None:
        """Apply one inbound frame. Returns the handled message, or None if it was dropped."""
        if isinstance(raw, (str, bytes)):
            try:
                data = decode_frame(raw)
            except ValueError as exc:
                log.warning("message_dropped", reason="invalid json", error=str(exc))
                return None
        else:
            data = raw

        if not isinstance(data, Mapping):
            log.warning("message_dropped", reason="frame is not an object")
            return None

        message_type = data.get("type")
        if message_type is None and "error" in data:
            with self.session.batch():
                self.session.on_server_error(str(data["error"]))
            return None
        if not is_known_type(message_type):
            log.debug("message_ignored", message_type=message_type)
            return None

        try:
            message = message_from_dict(data)
        except MessageDecodeError as exc:
            log.warning("message_dropped", message_type=exc.message_type, reason=exc.reason)
            return None

        with self.session.batch():
            self.session.clear_error()
            self._handlers[type(message)](message)
        return message
