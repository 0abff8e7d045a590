"""Pytest fixtures for blackjack table tests."""

import os

# Keep the shared limiter out of the way of the endpoint tests
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from random import Random

from core.cards import Card, build_deck
from core.hand import Hand


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def make_hand():
    """Build a hand from card strings, e.g. make_hand("A♠", "K♥")."""

    def _make(*cards: str) -> Hand:
        return Hand(tuple(Card.from_string(c) for c in cards))

    return _make


@pytest.fixture
def stack_deck(monkeypatch):
    """
    Replace the shuffle so the next deals come off a known deck.

    Cards are dealt player, dealer, player, dealer, then in order; the
    rest of the 52 cards follow in canonical order.
    """

    def _stack(*top: str) -> list[Card]:
        cards = [Card.from_string(c) for c in top]
        deck = cards + [c for c in build_deck() if c not in cards]
        monkeypatch.setattr("core.game.engine.shuffle", lambda _deck, _rng: list(deck))
        return deck

    return _stack


@pytest.fixture
def blackjack_hand(make_hand):
    """A natural blackjack hand."""
    return make_hand("A♠", "K♥")


@pytest.fixture
def soft_17_hand(make_hand):
    """A soft 17 hand (A-6)."""
    return make_hand("A♠", "6♥")


@pytest.fixture
def hard_16_hand(make_hand):
    """A hard 16 hand (10-6)."""
    return make_hand("10♠", "6♥")


@pytest.fixture
def bust_hand(make_hand):
    """A busted hand."""
    return make_hand("10♠", "6♥", "K♣")
