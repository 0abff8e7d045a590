"""Dealer drawing policy."""

from core.cards import Card, deal_top
from core.hand import Hand

# The dealer stands on every 17, soft or hard.
DEALER_STANDS_ON = 17


def dealer_should_hit(hand: Hand) -> bool:
    """Determine if the dealer must draw another card."""
    return hand.value < DEALER_STANDS_ON


def play_dealer(deck: list[Card], dealer_hand: Hand) -> tuple[list[Card], Hand]:
    """
    Play the dealer's hand to completion.

    Each draw adds at least one point, so the loop is bounded by the
    remaining deck.

    Args:
        deck: Remaining cards, top first
        dealer_hand: The dealer's hand with the hole card

    Returns:
        The remaining deck and the finished dealer hand
    """
    while dealer_should_hit(dealer_hand):
        card, deck = deal_top(deck)
        dealer_hand = dealer_hand.add_card(card)
    return deck, dealer_hand
