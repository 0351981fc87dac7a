"""Structured exceptions used across the antenna client."""

from __future__ import annotations

from typing import Any


class AntennaError(Exception):
    """Base class for client-level exceptions."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {"type": self.__class__.__name__, "message": str(self)}


class ConfigurationError(AntennaError):
    """Raised when the client or one of its components is configured incorrectly."""


class MessageDecodeError(AntennaError):
    """Raised when an inbound frame cannot be decoded into a known message shape."""

    def __init__(self, message_type: str | None, reason: str):
        self.message_type = message_type
        self.reason = reason
        label = message_type if message_type is not None else "<untyped>"
        super().__init__(f"Malformed {label} message: {reason}")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"message_type": self.message_type, "reason": self.reason})
        return payload


class ContextFetchError(AntennaError):
    """Raised when initial user/room/profile context cannot be fetched."""

    def __init__(self, url: str, message: str, status: int | None = None):
        self.url = url
        self.status = status
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["url"] = self.url
        if self.status is not None:
            payload["status"] = self.status
        return payload


class TransportError(AntennaError):
    """Raised when the persistent channel is unavailable for sending."""


class NotYourTurnError(AntennaError):
    """Raised when a selection is attempted outside the local user's selection turn."""

    def __init__(self, self_seat_index: int | None, holder: int | None, step: str | None):
        self.self_seat_index = self_seat_index
        self.holder = holder
        self.step = step
        super().__init__(f"Seat {self_seat_index} cannot select now (holder={holder}, step={step}).")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update({"self_seat_index": self.self_seat_index, "holder": self.holder, "step": self.step})
        return payload
