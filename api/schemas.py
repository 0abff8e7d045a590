"""Pydantic schemas for API requests and responses."""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model using camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests
class DealRequest(ApiModel):
    """Start a new game."""

    action: Literal["deal"]
    bet: int
    perfect_pairs_bet: int = 0
    twenty_one_plus_three_bet: int = 0


class HitRequest(ApiModel):
    """Take another card."""

    action: Literal["hit"]
    game_id: str = Field(..., min_length=1)


class StandRequest(ApiModel):
    """End the player's turn."""

    action: Literal["stand"]
    game_id: str = Field(..., min_length=1)


ActionRequest = Union[DealRequest, HitRequest, StandRequest]


# Responses
class CardResponse(ApiModel):
    """Card representation."""

    suit: str
    rank: str
    value: int
    color: Literal["red", "black"]


class HiddenCardResponse(ApiModel):
    """The dealer's face-down card."""

    model_config = ConfigDict(extra="forbid")

    hidden: Literal[True] = True


class GameResponse(ApiModel):
    """Public view of a game."""

    id: str
    bet: int
    perfect_pairs_bet: int
    twenty_one_plus_three_bet: int
    status: Literal["playing", "dealer_turn", "finished"]
    result: Literal["blackjack", "player_win", "dealer_win", "push", "bust"] | None
    result_amount: int | None
    player_hand: list[CardResponse]
    player_value: int
    dealer_hand: list[CardResponse | HiddenCardResponse]
    dealer_value: int | None


class GameEnvelope(ApiModel):
    """Successful action response."""

    success: bool = True
    game: GameResponse
