"""Pydantic schemas for gateway intents and API responses."""

from typing import Annotated, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from core.game.abilities import AbilityTarget


class CamelModel(BaseModel):
    """Base model accepting camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Inbound intents
class CreateRoomIntent(CamelModel):
    """Open a new room, optionally with a bet."""

    type: Literal["CreateRoom"]
    bet: int | None = Field(default=None, ge=1, description="Tokens staked per round")


class JoinRoomIntent(CamelModel):
    """Take the second seat of a room."""

    type: Literal["JoinRoom"]
    room_code: str = Field(..., min_length=1, max_length=16)


class SeatIntent(CamelModel):
    """Intent addressed to the caller's seat in a room."""

    room_code: str = Field(..., min_length=1, max_length=16)
    seat: Literal["A", "B"] | None = None


class DrawIntent(SeatIntent):
    """Draw one card."""

    type: Literal["Draw"]


class StandIntent(SeatIntent):
    """Stop drawing for this round."""

    type: Literal["Stand"]


class TargetData(CamelModel):
    """Ability targeting parameters."""

    my_card_index: int | None = None
    opponent_card_index: int | None = None
    target_card_index: int | None = None
    new_value: int | None = None

    def to_target(self) -> AbilityTarget:
        """Convert to the engine's target type."""
        return AbilityTarget(
            my_card_index=self.my_card_index,
            opponent_card_index=self.opponent_card_index,
            target_card_index=self.target_card_index,
            new_value=self.new_value,
        )


class UseAbilityIntent(SeatIntent):
    """Use a special ability."""

    type: Literal["UseAbility"]
    ability_id: str = Field(
        ...,
        validation_alias=AliasChoices("abilityId", "ability_id", "cardType"),
    )
    target_data: TargetData | None = Field(
        default=None,
        validation_alias=AliasChoices("targetData", "target_data", "data"),
    )


class RequestRematchIntent(SeatIntent):
    """Ask for another round once the current one is over."""

    type: Literal["RequestRematch"]


class LeaveRoomIntent(CamelModel):
    """Leave and destroy a room."""

    type: Literal["LeaveRoom"]
    room_code: str = Field(..., min_length=1, max_length=16)


Intent = Annotated[
    Union[
        CreateRoomIntent,
        JoinRoomIntent,
        DrawIntent,
        StandIntent,
        UseAbilityIntent,
        RequestRematchIntent,
        LeaveRoomIntent,
    ],
    Field(discriminator="type"),
]

intent_adapter = TypeAdapter(Intent)


# REST responses
class SessionResponse(BaseModel):
    """A newly issued player token."""

    token: str
    balance: int


class BalanceResponse(BaseModel):
    """Wallet balance of the calling player."""

    balance: int


class RoomSummaryResponse(CamelModel):
    """Public room information."""

    room_code: str
    seats_filled: int
    round_number: int
    phase: Literal["NOT_STARTED", "IN_PROGRESS", "ROUND_OVER"]
    bet: int | None = None
