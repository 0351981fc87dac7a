"""Static card-definition table: requirements, growth and relationship deltas per card."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Self, Sequence

from .errors import ConfigurationError


class CognitiveFunction(str, Enum):
    """The eight cognitive functions, in profile-stat order."""

    SE = "Se"
    SI = "Si"
    NE = "Ne"
    NI = "Ni"
    TE = "Te"
    TI = "Ti"
    FE = "Fe"
    FI = "Fi"

    @property
    def stat_index(self) -> int:
        return _FUNCTION_ORDER.index(self)

    @classmethod
    def from_stat_index(cls, index: int) -> "CognitiveFunction":
        if not 0 <= index < len(_FUNCTION_ORDER):
            raise ValueError(f"Stat index out of range: {index}")
        return _FUNCTION_ORDER[index]


_FUNCTION_ORDER: tuple[CognitiveFunction, ...] = tuple(CognitiveFunction)


@dataclass(frozen=True)
class CardDefinition:
    """One action card as the server defines it."""

    name: str
    requirements: tuple[CognitiveFunction, ...]
    growth: int
    relationship_change: tuple[int, int, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "requirements": [function.value for function in self.requirements],
            "growth": self.growth,
            "relationship_change": list(self.relationship_change),
        }

    @classmethod
    def from_row(cls, name: str, row: Sequence[Any]) -> Self:
        """Parse a `[requirements, growth, [d0, d1, d2]]` table row."""
        if len(row) != 3:
            raise ValueError(f"Card {name!r}: expected [requirements, growth, relationship_change].")
        raw_requirements, growth, raw_change = row
        requirements = tuple(CognitiveFunction.from_stat_index(int(index)) for index in raw_requirements)
        change = tuple(int(value) for value in raw_change)
        if len(change) != 3:
            raise ValueError(f"Card {name!r}: relationship_change must have 3 values.")
        return cls(name=name, requirements=requirements, growth=int(growth), relationship_change=change)  # type: ignore[arg-type]


class CardTable:
    """Card definitions keyed by card name."""

    def __init__(self, cards: Mapping[str, CardDefinition] | None = None):
        self._cards: dict[str, CardDefinition] = dict(cards or {})

    def __contains__(self, name: object) -> bool:
        return name in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def get(self, name: str) -> CardDefinition | None:
        return self._cards.get(name)

    def describe(self, names: Sequence[str]) -> list[dict[str, Any]]:
        """Pair each card name with its definition (or `None` when unknown)."""
        described = []
        for name in names:
            card = self._cards.get(name)
            described.append({"name": name, "definition": card.to_dict() if card is not None else None})
        return described

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Self:
        cards = {}
        for name, row in data.items():
            if not isinstance(row, Sequence) or isinstance(row, (str, bytes)):
                raise ValueError(f"Card {name!r}: row must be a list.")
            cards[str(name)] = CardDefinition.from_row(str(name), row)
        return cls(cards)


def load_card_table(path: str | Path) -> CardTable:
    """Load the card table from a JSON file."""
    table_path = Path(path)
    try:
        raw = json.loads(table_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read card table {table_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Card table {table_path} must be a JSON object keyed by card name.")
    try:
        return CardTable.from_mapping(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid card table {table_path}: {exc}") from exc
