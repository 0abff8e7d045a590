"""Outcome and payout resolution."""

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from core.hand import Hand


class GameResult(str, Enum):
    """Result tag of a finished game."""

    BLACKJACK = "blackjack"
    PLAYER_WIN = "player_win"
    DEALER_WIN = "dealer_win"
    PUSH = "push"
    BUST = "bust"

    def __str__(self) -> str:
        return self.value


# Total returned to the player per unit staked, stake included.
RETURN_MULTIPLIERS: dict[GameResult, Decimal] = {
    GameResult.BLACKJACK: Decimal("2.5"),  # 3:2
    GameResult.PLAYER_WIN: Decimal("2"),
    GameResult.PUSH: Decimal("1"),
    GameResult.DEALER_WIN: Decimal("0"),
    GameResult.BUST: Decimal("0"),
}


@dataclass(frozen=True)
class Outcome:
    """A result tag and the amount returned to the player."""

    result: GameResult
    amount: int


def payout(result: GameResult, bet: int) -> int:
    """Amount returned for a result, rounded down to a whole unit."""
    return math.floor(bet * RETURN_MULTIPLIERS[result])


def _outcome(result: GameResult, bet: int) -> Outcome:
    return Outcome(result=result, amount=payout(result, bet))


def resolve_naturals(player: Hand, dealer: Hand, bet: int) -> Outcome | None:
    """
    Settle a freshly dealt round if either side holds a natural.

    Returns:
        The outcome, or None when play continues
    """
    player_bj = player.is_blackjack
    dealer_bj = dealer.is_blackjack

    if player_bj and dealer_bj:
        return _outcome(GameResult.PUSH, bet)
    if player_bj:
        return _outcome(GameResult.BLACKJACK, bet)
    if dealer_bj:
        return _outcome(GameResult.DEALER_WIN, bet)
    return None


def resolve_outcome(player: Hand, dealer: Hand, bet: int) -> Outcome:
    """
    Compare final player and dealer hands.

    Naturals are checked first, then a player bust, then a dealer bust,
    then the totals.
    """
    natural = resolve_naturals(player, dealer, bet)
    if natural is not None:
        return natural

    # Player busts always loses
    if player.is_busted:
        return _outcome(GameResult.BUST, bet)

    if dealer.is_busted:
        return _outcome(GameResult.PLAYER_WIN, bet)

    if player.value > dealer.value:
        return _outcome(GameResult.PLAYER_WIN, bet)
    if player.value == dealer.value:
        return _outcome(GameResult.PUSH, bet)
    return _outcome(GameResult.DEALER_WIN, bet)
