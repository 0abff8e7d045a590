"""Game status and the persisted game record."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from core.cards import Card, build_deck
from core.hand import Hand
from core.outcome import GameResult


class GameStatus(str, Enum):
    """
    Game state machine states.

    Flow: PLAYING → DEALER_TURN → FINISHED, or PLAYING → FINISHED on a bust
    or a natural.
    """

    PLAYING = "playing"

    # Dealer draws; resolved within the same request
    DEALER_TURN = "dealer_turn"

    FINISHED = "finished"

    def __str__(self) -> str:
        return self.value

    @property
    def is_active(self) -> bool:
        """Check if the game still awaits resolution."""
        return self != GameStatus.FINISHED


# Valid state transitions
VALID_TRANSITIONS: dict[GameStatus, list[GameStatus]] = {
    GameStatus.PLAYING: [GameStatus.DEALER_TURN, GameStatus.FINISHED],
    GameStatus.DEALER_TURN: [GameStatus.FINISHED],
    GameStatus.FINISHED: [],  # Terminal state
}


def is_valid_transition(from_state: GameStatus, to_state: GameStatus) -> bool:
    """
    Check if a status transition is valid.

    Args:
        from_state: Current status
        to_state: Desired status

    Returns:
        True if the transition is allowed
    """
    return to_state in VALID_TRANSITIONS.get(from_state, [])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SideBets:
    """
    Side wagers placed with the deal.

    They are validated and stored with the game. Their payouts are not
    resolved: whether Perfect Pairs and 21+3 should settle is still an open
    product question.
    """

    perfect_pairs: int = 0
    twenty_one_plus_three: int = 0


@dataclass
class Game:
    """A single blackjack game, stored in full after every transition."""

    owner: str
    bet_amount: int
    id: str = field(default_factory=lambda: str(uuid4()))
    side_bets: SideBets = field(default_factory=SideBets)
    status: GameStatus = GameStatus.PLAYING
    player_hand: Hand = field(default_factory=Hand)
    dealer_hand: Hand = field(default_factory=Hand)
    deck: list[Card] = field(default_factory=list)
    result: GameResult | None = None
    result_amount: int | None = None
    dealer_revealed: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    ended_at: datetime | None = None
    # Optimistic concurrency token, bumped by the store on every save
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def player_value(self) -> int:
        return self.player_hand.value

    @property
    def dealer_value(self) -> int:
        return self.dealer_hand.value

    def all_cards(self) -> list[Card]:
        """Every card the game holds: deck and both hands."""
        return list(self.deck) + list(self.player_hand) + list(self.dealer_hand)

    def accounts_for_full_deck(self) -> bool:
        """Check that deck and hands partition the 52-card universe."""
        cards = self.all_cards()
        return len(cards) == 52 and set(cards) == set(build_deck())
