"""Player slots keyed by seat index, and the roster snapshot that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Sequence, Self

STAT_COUNT = 8


@dataclass(frozen=True)
class PlayerSlot:
    """One seat of the roster: either fully seated or fully empty."""

    creator_id: int
    creator_nickname: str
    profile_id: int | None = None
    details: Mapping[str, Any] | None = None
    stats: tuple[int, ...] | None = None
    traits: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        present = [self.profile_id is not None, self.details is not None, self.stats is not None]
        if any(present) and not all(present):
            raise ValueError(
                f"Slot of user {self.creator_id} is partially seated: "
                "profile id, details and stats must be all present or all absent."
            )
        if self.stats is not None and len(self.stats) != STAT_COUNT:
            raise ValueError(f"Profile stats must have exactly {STAT_COUNT} values, got {len(self.stats)}.")

    @property
    def seated(self) -> bool:
        return self.profile_id is not None

    @property
    def race(self) -> str | None:
        if self.details is None:
            return None
        value = self.details.get("race")
        return None if value is None else str(value)

    @property
    def description(self) -> str | None:
        if self.details is None:
            return None
        value = self.details.get("description")
        return None if value is None else str(value)

    def to_dict(self) -> dict[str, Any]:
        """Return the slot in the server's player representation."""
        return {
            "id": self.profile_id,
            "creator": {"id": self.creator_id, "nickname": self.creator_nickname},
            "details": dict(self.details) if self.details is not None else None,
            "stats": list(self.stats) if self.stats is not None else None,
            "traits": list(self.traits),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Parse one server player entry. Raises on malformed shapes."""
        creator = data["creator"]
        if not isinstance(creator, Mapping):
            raise TypeError("Player `creator` must be an object.")
        creator_id = _as_int(creator["id"], "creator.id")
        nickname = str(creator.get("nickname", ""))

        raw_profile_id = data.get("id")
        if raw_profile_id is None:
            return cls(creator_id=creator_id, creator_nickname=nickname)

        details = data.get("details")
        if details is not None and not isinstance(details, Mapping):
            raise TypeError("Player `details` must be an object.")
        raw_stats = data.get("stats")
        stats = None
        if raw_stats is not None:
            if not isinstance(raw_stats, Sequence) or isinstance(raw_stats, (str, bytes)):
                raise TypeError("Player `stats` must be a list.")
            stats = tuple(_as_int(value, "stats[]") for value in raw_stats)
        raw_traits = data.get("traits") or []
        traits = tuple(str(trait) for trait in raw_traits if str(trait))
        return cls(
            creator_id=creator_id,
            creator_nickname=nickname,
            profile_id=_as_int(raw_profile_id, "id"),
            details=dict(details) if details is not None else None,
            stats=stats,
            traits=traits,
        )


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"`{name}` must be an integer, got {value!r}.")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise TypeError(f"`{name}` must be an integer, got {value!r}.")
    return value


@dataclass(frozen=True)
class Roster:
    """Ordered, index-addressed player slots. Replaced wholesale, never patched."""

    slots: tuple[PlayerSlot, ...] = ()

    def __iter__(self) -> Iterator[PlayerSlot]:
        return iter(self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def slot(self, seat_index: int | None) -> PlayerSlot | None:
        """Return the slot at `seat_index`, or `None` when out of bounds."""
        if seat_index is None or not 0 <= seat_index < len(self.slots):
            return None
        return self.slots[seat_index]

    def seat_of(self, user_id: int) -> int | None:
        """Return the seat index whose slot belongs to `user_id`."""
        for index, slot in enumerate(self.slots):
            if slot.creator_id == user_id:
                return index
        return None

    @property
    def all_seated(self) -> bool:
        return bool(self.slots) and all(slot.seated for slot in self.slots)

    def to_list(self) -> list[dict[str, Any]]:
        return [slot.to_dict() for slot in self.slots]

    @classmethod
    def from_list(cls, players: Any) -> Self:
        """Parse the server `players` array."""
        if not isinstance(players, Sequence) or isinstance(players, (str, bytes)):
            raise TypeError("`players` must be a list.")
        slots = []
        for raw in players:
            if not isinstance(raw, Mapping):
                raise TypeError("Each player entry must be an object.")
            slots.append(PlayerSlot.from_dict(raw))
        return cls(slots=tuple(slots))
