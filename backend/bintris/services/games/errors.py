class GameError(Exception):
    """Base class for game domain errors."""


class ConfigurationError(GameError):
    """Raised when the game settings cannot describe a playable game."""


class LevelsExhausted(GameError):
    """Raised when the player clears the last configured level.

    This is a terminal condition distinct from a normal game over: the
    controller stops playing and the final stats are attached.
    """

    def __init__(self, score: int, level: int, count_resolved: int):
        super().__init__(f"All levels are completed (score={score}, level={level}, resolved={count_resolved})")
        self.score = score
        self.level = level
        self.count_resolved = count_resolved
