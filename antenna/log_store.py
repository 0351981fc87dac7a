"""Room event log entries and the append-only, id-deduplicated log store."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from time import time
from typing import Any, Iterable, Iterator, Mapping, Self

SYNTHESIZED_ENTRY_ID = -1


@dataclass(frozen=True)
class LogEntry:
    """Single timestamped line of the room log."""

    id: int
    timestamp: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Return JSON-serializable entry data."""
        return {"id": self.id, "timestamp": self.timestamp, "content": self.content}

    @property
    def clock_label(self) -> str:
        """Return the `HH:MM:SS` (UTC) label shown next to the entry."""
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).strftime("%H:%M:%S")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build an entry from a server payload. Raises on missing or mistyped fields."""
        entry_id = data["id"]
        timestamp = data["timestamp"]
        content = data["content"]
        if isinstance(entry_id, bool) or not isinstance(entry_id, int):
            raise TypeError(f"Log entry id must be an integer, got {entry_id!r}.")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise TypeError(f"Log entry timestamp must be a number, got {timestamp!r}.")
        if isinstance(timestamp, float) and not math.isfinite(timestamp):
            raise TypeError(f"Log entry timestamp must be a number, got {timestamp!r}.")
        if not isinstance(content, str):
            raise TypeError(f"Log entry content must be a string, got {content!r}.")
        return cls(id=entry_id, timestamp=int(timestamp), content=content)

    @classmethod
    def synthesized(cls, content: str, timestamp: int | None = None) -> Self:
        """Construct a client-side system notice with the reserved id."""
        return cls(
            id=SYNTHESIZED_ENTRY_ID,
            timestamp=int(time()) if timestamp is None else timestamp,
            content=content,
        )


class EventLogStore:
    """Append-only sequence of log entries, deduplicated by id.

    Server order is authoritative: entries are kept in first-seen order and
    never reordered. The reserved synthesized id takes part in the same
    id-presence check as server ids, so only the first synthesized notice of
    a store's lifetime is kept.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []
        self._ids: set[int] = set()

    def append(self, entries: Iterable[LogEntry]) -> list[LogEntry]:
        """Append unseen entries in order and return the ones actually added."""
        added: list[LogEntry] = []
        for entry in entries:
            if entry.id in self._ids:
                continue
            self._ids.add(entry.id)
            self._entries.append(entry)
            added.append(entry)
        return added

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._ids

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        return tuple(self._entries)

    @property
    def ids(self) -> tuple[int, ...]:
        return tuple(entry.id for entry in self._entries)

    def latest(self, limit: int) -> tuple[LogEntry, ...]:
        """Return the newest `limit` entries, oldest first."""
        if limit <= 0:
            return ()
        return tuple(self._entries[-limit:])
