"""Blackjack round engine with state machine."""

import logging
from datetime import datetime, timezone
from random import Random

from transitions import Machine

from core.cards import build_deck, deal_top, shuffle
from core.dealer import play_dealer
from core.errors import IllegalActionError
from core.game.state import Game, GameStatus, SideBets
from core.hand import Hand
from core.outcome import GameResult, Outcome, payout, resolve_naturals, resolve_outcome
from core.rules import TableRules

logger = logging.getLogger(__name__)


class BlackjackRound:
    """
    Drives one game record through deal, hit and stand.

    The round holds no state of its own beyond the ``Game`` it wraps: it is
    rebuilt from the stored record on every request and the record is
    written back after each transition.
    """

    # State machine states
    STATES = [s.value for s in GameStatus]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "reveal_dealer", "source": "playing", "dest": "dealer_turn"},
        {"trigger": "settle", "source": "dealer_turn", "dest": "finished"},
        # Bust or a natural on the deal
        {"trigger": "conclude", "source": "playing", "dest": "finished"},
    ]

    def __init__(self, game: Game) -> None:
        """
        Wrap a game record.

        Args:
            game: Record loaded from the store; mutated in place by actions
        """
        self.game = game

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial=game.status.value,
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_sync_status",
        )

    @property
    def status(self) -> GameStatus:
        """Get current status as enum."""
        return GameStatus(self._machine_state)  # type: ignore[attr-defined]

    def _sync_status(self) -> None:
        self.game.status = self.status

    @classmethod
    def deal(
        cls,
        owner: str,
        bet: int,
        perfect_pairs_bet: int = 0,
        twenty_one_plus_three_bet: int = 0,
        rules: TableRules | None = None,
        rng: Random | None = None,
    ) -> "BlackjackRound":
        """
        Start a new game: validate stakes, shuffle a fresh deck and deal.

        Naturals are settled immediately, so the returned round is either
        ``playing`` or already ``finished``.

        Args:
            owner: Player id
            bet: Main bet
            perfect_pairs_bet: Perfect Pairs side bet (stored only)
            twenty_one_plus_three_bet: 21+3 side bet (stored only)
            rules: Stake limits (uses defaults if not provided)
            rng: Random source for the shuffle; a fresh ``Random`` if omitted

        Raises:
            InvalidStakeError: If a stake is outside the table limits
        """
        rules = rules or TableRules()
        rules.validate_stakes(bet, perfect_pairs_bet, twenty_one_plus_three_bet)

        deck = shuffle(build_deck(), rng or Random())
        player = Hand()
        dealer = Hand()

        # Deal: player, dealer, player, dealer (hole card)
        for _ in range(2):
            card, deck = deal_top(deck)
            player = player.add_card(card)
            card, deck = deal_top(deck)
            dealer = dealer.add_card(card)

        game = Game(
            owner=owner,
            bet_amount=bet,
            side_bets=SideBets(
                perfect_pairs=perfect_pairs_bet,
                twenty_one_plus_three=twenty_one_plus_three_bet,
            ),
            player_hand=player,
            dealer_hand=dealer,
            deck=deck,
        )
        round_ = cls(game)

        natural = resolve_naturals(player, dealer, bet)
        if natural is not None:
            round_.conclude()
            round_._finish(natural)

        logger.info(
            "Dealt game %s for %s: player %s, status %s",
            game.id,
            owner,
            player,
            game.status,
        )
        return round_

    def _require_playing(self, action: str) -> None:
        if self.status != GameStatus.PLAYING:
            raise IllegalActionError(f"Cannot {action} a game that is {self.status}")

    def hit(self) -> Game:
        """
        Player takes another card.

        A bust ends the game; reaching exactly 21 stands automatically.
        """
        self._require_playing("hit")

        card, self.game.deck = deal_top(self.game.deck)
        self.game.player_hand = self.game.player_hand.add_card(card)
        value = self.game.player_value
        logger.info("Game %s: player hits %s, value %d", self.game.id, card, value)

        if value > 21:
            self.conclude()
            self._finish(
                Outcome(GameResult.BUST, payout(GameResult.BUST, self.game.bet_amount))
            )
        elif value == 21:
            self._resolve_dealer()

        return self.game

    def stand(self) -> Game:
        """Player keeps the current hand; the dealer plays it out."""
        self._require_playing("stand")
        self._resolve_dealer()
        return self.game

    def _resolve_dealer(self) -> None:
        """Reveal the hole card, play the dealer out and settle the game."""
        self.reveal_dealer()
        self.game.deck, self.game.dealer_hand = play_dealer(
            self.game.deck, self.game.dealer_hand
        )
        outcome = resolve_outcome(
            self.game.player_hand, self.game.dealer_hand, self.game.bet_amount
        )
        self.settle()
        self._finish(outcome)

    def _finish(self, outcome: Outcome) -> None:
        self.game.result = outcome.result
        self.game.result_amount = outcome.amount
        self.game.dealer_revealed = True
        self.game.ended_at = datetime.now(timezone.utc)
        logger.info(
            "Game %s finished: %s (player %d, dealer %d), returns %d",
            self.game.id,
            outcome.result,
            self.game.player_value,
            self.game.dealer_value,
            outcome.amount,
        )
