"""Game domain services: conversions, challenges, the game controller and
the per-game sessions that host them.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from .errors import ConfigurationError, GameError, LevelsExhausted
from .settings import GameSettings, Level
from .challenge import ChallengeModel
from .controller import GameController, GameState

__all__ = [
    'ChallengeModel',
    'ConfigurationError',
    'GameController',
    'GameError',
    'GameSettings',
    'GameState',
    'Level',
    'LevelsExhausted',
]
