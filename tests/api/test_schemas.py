"""Tests for intent parsing."""

import pytest
from pydantic import ValidationError

from api.schemas import (
    CreateRoomIntent,
    DrawIntent,
    JoinRoomIntent,
    LeaveRoomIntent,
    UseAbilityIntent,
    intent_adapter,
)
from core.game import AbilityTarget


def test_create_room():
    intent = intent_adapter.validate_python({"type": "CreateRoom"})
    assert isinstance(intent, CreateRoomIntent)
    assert intent.bet is None

    assert intent_adapter.validate_python({"type": "CreateRoom", "bet": 25}).bet == 25


def test_join_room_camel_case():
    intent = intent_adapter.validate_python({"type": "JoinRoom", "roomCode": "ab12cd"})
    assert isinstance(intent, JoinRoomIntent)
    assert intent.room_code == "ab12cd"


def test_seat_is_optional():
    intent = intent_adapter.validate_python({"type": "Draw", "roomCode": "AB12CD"})
    assert isinstance(intent, DrawIntent)
    assert intent.seat is None

    assert intent_adapter.validate_python(
        {"type": "Stand", "roomCode": "AB12CD", "seat": "B"}
    ).seat == "B"


def test_use_ability_with_target():
    intent = intent_adapter.validate_python({
        "type": "UseAbility",
        "roomCode": "AB12CD",
        "abilityId": "swap",
        "targetData": {"myCardIndex": 0, "opponentCardIndex": 1},
    })
    assert isinstance(intent, UseAbilityIntent)
    assert intent.ability_id == "swap"
    assert intent.target_data.to_target() == AbilityTarget(my_card_index=0, opponent_card_index=1)


def test_use_ability_alternate_field_names():
    intent = intent_adapter.validate_python({
        "type": "UseAbility",
        "roomCode": "AB12CD",
        "cardType": "tothemoon",
        "data": {"myCardIndex": 1, "newValue": 11},
    })
    assert intent.ability_id == "tothemoon"
    assert intent.target_data.new_value == 11


def test_leave_room():
    intent = intent_adapter.validate_python({"type": "LeaveRoom", "roomCode": "AB12CD"})
    assert isinstance(intent, LeaveRoomIntent)


@pytest.mark.parametrize("payload", [
    {"type": "Fly"},
    {"roomCode": "AB12CD"},
    {"type": "JoinRoom"},
    {"type": "CreateRoom", "bet": 0},
    {"type": "Draw", "roomCode": "AB12CD", "seat": "C"},
    {"type": "UseAbility", "roomCode": "AB12CD"},
    {"type": "UseAbility", "roomCode": "AB12CD", "abilityId": "swap",
     "targetData": {"myCardIndex": "first"}},
])
def test_invalid_payloads(payload):
    with pytest.raises(ValidationError):
        intent_adapter.validate_python(payload)
