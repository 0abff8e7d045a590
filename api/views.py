"""Outward projection of game records."""

from api.schemas import CardResponse, GameResponse, HiddenCardResponse
from core.cards import Card
from core.game.state import Game


def card_view(card: Card) -> CardResponse:
    """Convert a Card to CardResponse, adding its display color."""
    return CardResponse(
        suit=str(card.suit),
        rank=str(card.rank),
        value=card.value,
        color=card.color,
    )


def public_view(game: Game) -> GameResponse:
    """
    Project a game for the client.

    Until the game is finished only the dealer's first card is shown; the
    hole card is replaced by ``{"hidden": true}`` and the dealer value is
    withheld. The deck is never exposed.
    """
    dealer_cards = list(game.dealer_hand)
    if game.dealer_revealed:
        dealer_hand: list[CardResponse | HiddenCardResponse] = [
            card_view(c) for c in dealer_cards
        ]
        dealer_value: int | None = game.dealer_value
    else:
        dealer_hand = [card_view(c) for c in dealer_cards[:1]]
        dealer_hand.extend(HiddenCardResponse() for _ in dealer_cards[1:])
        dealer_value = None

    return GameResponse(
        id=game.id,
        bet=game.bet_amount,
        perfect_pairs_bet=game.side_bets.perfect_pairs,
        twenty_one_plus_three_bet=game.side_bets.twenty_one_plus_three,
        status=game.status.value,
        result=game.result.value if game.result is not None else None,
        result_amount=game.result_amount,
        player_hand=[card_view(c) for c in game.player_hand],
        player_value=game.player_value,
        dealer_hand=dealer_hand,
        dealer_value=dealer_value,
    )
