"""Engine-level exceptions."""


class GameError(Exception):
    """Base class for blackjack engine errors."""


class InvalidStakeError(GameError):
    """A main or side bet is outside the table limits."""


class IllegalActionError(GameError):
    """An action was attempted in a state that does not allow it."""


class EmptyDeckError(GameError):
    """A card was requested from an exhausted deck."""
