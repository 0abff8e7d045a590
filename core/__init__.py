"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Rank, Suit, build_deck, deal_top, shuffle
from core.hand import Hand, hand_value, is_natural_blackjack

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "build_deck",
    "deal_top",
    "shuffle",
    "Hand",
    "hand_value",
    "is_natural_blackjack",
]
