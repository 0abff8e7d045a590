"""Table stake limits."""

from dataclasses import dataclass

from core.errors import InvalidStakeError


@dataclass(frozen=True)
class TableRules:
    """
    Betting limits for the table.

    Dealer play and payouts are fixed house rules and are not configurable
    here.
    """

    min_bet: int = 10
    max_bet: int = 200
    max_side_bet: int = 10

    def __post_init__(self) -> None:
        """Validate limits."""
        if self.min_bet < 1:
            raise ValueError("min_bet must be at least 1")
        if self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet")
        if self.max_side_bet < 0:
            raise ValueError("max_side_bet must not be negative")

    def validate_stakes(
        self,
        bet: int,
        perfect_pairs_bet: int = 0,
        twenty_one_plus_three_bet: int = 0,
    ) -> None:
        """
        Check a main bet and both side bets against the limits.

        Raises:
            InvalidStakeError: If any stake is out of range
        """
        if not self.min_bet <= bet <= self.max_bet:
            raise InvalidStakeError(
                f"Invalid bet amount ({self.min_bet}-{self.max_bet})"
            )
        if not 0 <= perfect_pairs_bet <= self.max_side_bet:
            raise InvalidStakeError(f"Invalid Perfect Pairs bet (0-{self.max_side_bet})")
        if not 0 <= twenty_one_plus_three_bet <= self.max_side_bet:
            raise InvalidStakeError(f"Invalid 21+3 bet (0-{self.max_side_bet})")
