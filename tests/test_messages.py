"""Inbound message parsing."""

from __future__ import annotations

import pytest

from antenna.errors import MessageDecodeError
from antenna.messages import (
    AppointmentPass,
    GameEnd,
    GameplayProgress,
    LogBatch,
    RoomState,
    Start,
    message_from_dict,
)
from antenna.status import GameplayStatus, Phase


def _room() -> dict:
    return {
        "id": "42",
        "creator": {"id": 1, "nickname": "ana"},
        "created_at": 1_700_000_000,
        "title": "Harbor",
        "tags": ["sea", "fog"],
        "description": "Foggy docks.",
    }


def test_room_state_parses_string_room_id_and_optional_status() -> None:
    message = message_from_dict(
        {
            "type": "room_state",
            "room": _room(),
            "players": [{"id": None, "creator": {"id": 1, "nickname": "ana"}}],
            "phase": "appointment",
            "my_index": 0,
            "appointment_status": {"holder": 0, "timer": 12.5},
        }
    )

    assert isinstance(message, RoomState)
    assert message.room.room_id == 42
    assert message.room.tags == ("sea", "fog")
    assert message.phase is Phase.APPOINTMENT
    assert message.appointment_status.timer == 12.5
    assert message.gameplay_status is None
    assert len(message.players) == 1


def test_room_notice_mentions_title_and_description() -> None:
    message = message_from_dict({"type": "room_state", "room": _room(), "phase": "assembly"})

    assert message.room.notice() == "Room “Harbor”: Foggy docks."
    assert message.players is None


def test_simple_turn_messages() -> None:
    start = message_from_dict({"type": "start", "holder": 2, "my_index": 1})
    passed = message_from_dict({"type": "appointment_pass", "prev_holder": 2, "next_holder": 0})

    assert start == Start(holder=2, my_index=1)
    assert passed == AppointmentPass(next_holder=0, prev_holder=2)


def test_log_batch_entries_keep_order() -> None:
    message = message_from_dict(
        {
            "type": "log",
            "log": [
                {"id": 5, "timestamp": 10, "content": "b"},
                {"id": 4, "timestamp": 9, "content": "a"},
            ],
        }
    )

    assert isinstance(message, LogBatch)
    assert [entry.id for entry in message.entries] == [5, 4]


def test_gameplay_status_derivations() -> None:
    message = message_from_dict(
        {
            "type": "gameplay_progress",
            "gameplay_status": {
                "event": "none",
                "act_count": 1,
                "round_count": 2,
                "move_count": 3,
                "relationship": [[0, 1.5, -1], [0, 0, 0]],
                "action_points": 4,
                "hand": ["Confide", "Tease"],
                "arena": ["storm", "letter", "oath"],
                "holder": 0,
                "step": "storytelling_target",
                "action": "Confide",
                "keyword": 1,
                "target": 1,
                "timer": 44.2,
                "queue": [1],
            },
        }
    )

    assert isinstance(message, GameplayProgress)
    status = message.gameplay_status
    assert status.storyteller == 1
    assert not status.is_selection
    assert status.keyword_text() == "letter"
    assert status.relationship[0] == (0.0, 1.5, -1.0)
    assert status.turn_key() == (0, "storytelling_target", 1, 2, 3)


def test_unknown_steps_are_tolerated() -> None:
    status = GameplayStatus.from_dict({"holder": 1, "step": "intermission"})

    assert status.storyteller is None
    assert not status.is_selection
    assert status.keyword_text() is None


def test_game_end_with_growth_points() -> None:
    message = message_from_dict({"type": "game_end", "relationship": [[1, 2, 3]], "growth_points": [2, 0]})

    assert isinstance(message, GameEnd)
    assert message.summary.relationship == ((1.0, 2.0, 3.0),)
    assert message.summary.growth_points == (2, 0)


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "start"},
        {"type": "start", "holder": "zero"},
        {"type": "appointment_accept", "gameplay_status": {"holder": 0}},
        {"type": "room_state", "room": _room(), "phase": "lobby"},
        {"type": "log", "log": "not a list"},
        {"type": "assembly_update", "players": [{"id": 3, "creator": {"id": 1}}]},
    ],
)
def test_malformed_payloads_raise_decode_error(payload: dict) -> None:
    with pytest.raises(MessageDecodeError) as exc_info:
        message_from_dict(payload)
    assert exc_info.value.message_type == payload["type"]


def test_unknown_type_raises_decode_error() -> None:
    with pytest.raises(MessageDecodeError):
        message_from_dict({"type": "chat"})
