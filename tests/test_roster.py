"""Roster parsing and seat invariants."""

from __future__ import annotations

import pytest

from antenna.roster import PlayerSlot, Roster


def _seated(user_id: int, profile_id: int) -> dict:
    return {
        "id": profile_id,
        "creator": {"id": user_id, "nickname": f"user{user_id}"},
        "details": {"race": "Selkie", "description": "Keeps a lighthouse."},
        "stats": [3, 1, 4, 1, 5, 9, 2, 6],
        "traits": ["calm", ""],
    }


def _empty(user_id: int) -> dict:
    return {"id": None, "creator": {"id": user_id, "nickname": f"user{user_id}"}}


def test_parses_seated_and_empty_slots() -> None:
    roster = Roster.from_list([_seated(1, 11), _empty(2)])

    first, second = roster
    assert first.seated and first.profile_id == 11
    assert first.race == "Selkie"
    assert first.stats == (3, 1, 4, 1, 5, 9, 2, 6)
    assert first.traits == ("calm",)
    assert not second.seated
    assert second.details is None and second.stats is None
    assert roster.to_list()[1]["id"] is None


def test_partial_seat_is_rejected() -> None:
    with pytest.raises(ValueError):
        PlayerSlot(creator_id=1, creator_nickname="a", profile_id=5)


def test_stats_must_have_eight_values() -> None:
    payload = _seated(1, 11)
    payload["stats"] = [1, 2, 3]

    with pytest.raises(ValueError):
        Roster.from_list([payload])


def test_seat_lookup_and_bounds() -> None:
    roster = Roster.from_list([_empty(4), _seated(9, 90)])

    assert roster.seat_of(9) == 1
    assert roster.seat_of(100) is None
    assert roster.slot(1).profile_id == 90
    assert roster.slot(2) is None
    assert roster.slot(-1) is None
    assert roster.slot(None) is None


def test_all_seated_requires_every_slot_and_at_least_one() -> None:
    assert not Roster().all_seated
    assert not Roster.from_list([_seated(1, 1), _empty(2)]).all_seated
    assert Roster.from_list([_seated(1, 1), _seated(2, 2)]).all_seated


def test_malformed_players_raise_type_error() -> None:
    with pytest.raises(TypeError):
        Roster.from_list({"players": []})
    with pytest.raises(TypeError):
        Roster.from_list([{"id": None, "creator": "someone"}])
