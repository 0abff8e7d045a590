"""Cards, the 52-card deck, and shuffling."""

from dataclasses import dataclass
from enum import Enum
from random import Random

from core.errors import EmptyDeckError


class Suit(Enum):
    """Card suits, in canonical deck order."""

    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"
    SPADES = "♠"

    def __str__(self) -> str:
        return self.value

    @property
    def color(self) -> str:
        """Display color of the suit."""
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return "red"
        return "black"


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return {
            Rank.JACK: "J",
            Rank.QUEEN: "Q",
            Rank.KING: "K",
            Rank.ACE: "A",
        }[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> "Rank":
        """Look up a rank by its printed symbol ('2'..'10', 'J', 'Q', 'K', 'A')."""
        symbol = symbol.strip().upper()
        if symbol == "T":
            symbol = "10"
        for rank in cls:
            if str(rank) == symbol:
                return rank
        raise ValueError(f"Invalid rank: {symbol}")

    @property
    def blackjack_value(self) -> int:
        """Return the nominal point value (Ace = 11, face cards = 10)."""
        if self.value <= 10:
            return self.value
        if self == Rank.ACE:
            return 11
        return 10  # Face cards

    @property
    def is_ace(self) -> bool:
        """Check if this rank is an Ace."""
        return self == Rank.ACE


_SUIT_LETTERS = {
    "H": Suit.HEARTS,
    "D": Suit.DIAMONDS,
    "C": Suit.CLUBS,
    "S": Suit.SPADES,
}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the nominal blackjack value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def color(self) -> str:
        return self.suit.color

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like '2♣', 'AS', '10h'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        if suit_str in _SUIT_LETTERS:
            suit = _SUIT_LETTERS[suit_str]
        else:
            try:
                suit = Suit(suit_str)
            except ValueError:
                raise ValueError(f"Invalid suit: {suit_str}") from None

        return cls(Rank.from_symbol(rank_str), suit)


def build_deck() -> list[Card]:
    """Return the 52 cards in canonical suit-by-rank order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


def shuffle(deck: list[Card], rng: Random) -> list[Card]:
    """
    Shuffle a deck in place with Fisher-Yates and return it.

    Args:
        deck: Cards to permute
        rng: Uniform random source; pass a seeded ``Random`` for reproducible decks

    Returns:
        The same list, permuted
    """
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


def deal_top(deck: list[Card]) -> tuple[Card, list[Card]]:
    """
    Take the top card of a deck.

    Returns:
        The dealt card and a new list holding the remaining cards

    Raises:
        EmptyDeckError: If the deck has no cards left
    """
    if not deck:
        raise EmptyDeckError("Cannot deal from an empty deck")
    return deck[0], deck[1:]
