"""Outbound command frames."""

from __future__ import annotations

import json

import pytest

from antenna.commands import (
    NO_TARGET,
    Action,
    Comment,
    EndStorytelling,
    Seat,
    StartGame,
    command_from_dict,
)
from antenna.errors import MessageDecodeError
from antenna.serialize import encode_frame


def test_frames_carry_wire_type_tags() -> None:
    assert StartGame().to_dict() == {"type": "start"}
    assert Seat(profile_id=8).to_dict() == {"type": "seat", "profile_id": 8}
    assert EndStorytelling().to_dict() == {"type": "storytelling_end"}


def test_encoded_frame_puts_type_first() -> None:
    raw = encode_frame(Action(hand_index=1, arena_index=0, target=2).to_dict())

    assert raw.startswith('{"type":"action"')
    assert json.loads(raw) == {"type": "action", "hand_index": 1, "arena_index": 0, "target": 2}


def test_action_validates_indices() -> None:
    with pytest.raises(ValueError):
        Action(hand_index=-1, arena_index=0)
    with pytest.raises(ValueError):
        Action(hand_index=0, arena_index=0, target=-2)
    assert Action(hand_index=0, arena_index=0).target == NO_TARGET


def test_comment_text_is_stripped_and_required() -> None:
    assert Comment(text="  hello  ").text == "hello"
    with pytest.raises(ValueError):
        Comment(text="   ")


def test_command_from_dict_round_trips_known_commands() -> None:
    assert command_from_dict({"type": "seat", "profile_id": 3}) == Seat(profile_id=3)
    assert command_from_dict({"type": "action", "hand_index": 2, "arena_index": 1, "target": None}) == Action(
        hand_index=2, arena_index=1, target=NO_TARGET
    )


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "dance"},
        {"type": "seat"},
        {"type": "seat", "profile_id": 1, "extra": True},
        {"type": "comment", "text": ""},
    ],
)
def test_command_from_dict_rejects_bad_payloads(payload: dict) -> None:
    with pytest.raises(MessageDecodeError):
        command_from_dict(payload)
