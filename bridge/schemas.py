"""Pydantic request schemas for the local bridge API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


SelectionSlot = Literal["arena", "hand", "target"]


class SelectionRequest(BaseModel):
    """One pick towards an action: an arena card, a hand card or a target seat."""

    slot: SelectionSlot
    index: int | None = None


class CommandRequest(BaseModel):
    """Outbound command frame; extra fields are the command's payload."""

    model_config = ConfigDict(extra="allow")

    type: str
