"""Game record and round engine."""

from core.game.state import Game, GameStatus, SideBets
from core.game.engine import BlackjackRound

__all__ = [
    "Game",
    "GameStatus",
    "SideBets",
    "BlackjackRound",
]
