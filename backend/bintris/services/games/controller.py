"""The game controller: spawning, scoring, levels and game over.

The controller is not thread-safe. Every call must come from a single
owner at a time; `GameSession` provides that serialization when the
controller is hosted by the web app.
"""

import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .challenge import ChallengeModel
from .errors import LevelsExhausted
from .settings import GameSettings, Level

EVENTS = (
    'game_started',
    'challenge_spawned',
    'challenge_resolved',
    'level_up',
    'game_over',
    'levels_exhausted',
)

# Spawn delays vary by +/- 12.5% so challenges do not arrive mechanically
JITTER = 0.125


class GameState(str, Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    GAME_OVER = 'game_over'
    COMPLETED = 'completed'


class GameController:
    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings or GameSettings()
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)
        self._listeners: Dict[str, List[Callable[..., Any]]] = {name: [] for name in EVENTS}
        self.state = GameState.IDLE
        self._reset()

    def _reset(self) -> None:
        self.level = 1
        self.score = 0
        self.count_resolved = 0
        self.count_on_screen = 0
        self.count_generated = 0
        self.challenges: Dict[int, ChallengeModel] = {}
        self.wait_time = 0.0
        self._next_id = 0

    # ---- Observer interface ----

    def subscribe(self, event: str, callback: Callable[..., Any]) -> None:
        if event not in self._listeners:
            raise ValueError(f"unknown event {event!r}")
        self._listeners[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable[..., Any]) -> None:
        if event not in self._listeners:
            raise ValueError(f"unknown event {event!r}")
        if callback in self._listeners[event]:
            self._listeners[event].remove(callback)

    def _notify(self, event: str, *args) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    # ---- State ----

    @property
    def playing(self) -> bool:
        return self.state == GameState.RUNNING

    @property
    def current_level(self) -> Level:
        return self.settings.levels[self.level]

    def snapshot(self) -> Dict[str, Any]:
        """Public view of the game; never exposes a challenge's target side."""
        return {
            'state': self.state.value,
            'playing': self.playing,
            'level': self.level,
            'score': self.score,
            'count_resolved': self.count_resolved,
            'count_on_screen': self.count_on_screen,
            'count_generated': self.count_generated,
            'max_on_screen': self.settings.max_on_screen_for(self.level),
            'challenges': [c.to_dict() for c in sorted(self.challenges.values(), key=lambda c: c.id)],
        }

    # ---- Lifecycle ----

    def start_game(self) -> None:
        self._reset()
        self.state = GameState.RUNNING
        self.logger.info("[start] level=1")
        self._notify('game_started')

    def tick(self) -> Optional[ChallengeModel]:
        """Advance the spawn timer by one tick.

        Returns the spawned challenge, if any.
        """
        if not self.playing:
            return None
        remaining = self.wait_time
        self.wait_time -= 1
        if remaining > 0:
            return None

        wait = self.settings.wait_ticks(self.level)
        self.wait_time = wait + wait * self.rng.uniform(-JITTER, JITTER)

        self.count_on_screen += 1
        self.count_generated += 1

        if self.count_on_screen >= self.settings.max_on_screen_for(self.level):
            self.state = GameState.GAME_OVER
            self.logger.info(
                f"[game-over] score={self.score} level={self.level} resolved={self.count_resolved}"
            )
            self._notify('game_over', self.score, self.level, self.count_resolved)
            return None

        challenge = ChallengeModel(
            self._next_id,
            self.rng,
            binary_length=self.settings.binary_length,
            bases=self.settings.bases,
        )
        self._next_id += 1
        self.challenges[challenge.id] = challenge
        self.logger.debug(f"[spawn] {challenge!r} next_in={self.wait_time:.1f} ticks")
        binary, numeric = challenge.given()
        self._notify('challenge_spawned', challenge.id, binary, numeric, challenge.base, challenge.binary_fixed)
        return challenge

    # ---- Answers ----

    def submit_binary_answer(self, challenge_id: int, candidate: str) -> bool:
        if not self.playing:
            return False
        challenge = self.challenges.get(challenge_id)
        if challenge is None or challenge.binary_fixed:
            return False
        if not challenge.matches_binary_answer(candidate):
            return False
        return self.resolve_challenge(challenge_id)

    def submit_numeric_answer(self, challenge_id: int, candidate: str) -> bool:
        if not self.playing:
            return False
        challenge = self.challenges.get(challenge_id)
        if challenge is None or not challenge.binary_fixed:
            return False
        if not challenge.matches_numeric_answer(candidate):
            return False
        return self.resolve_challenge(challenge_id)

    def resolve_challenge(self, challenge_id: int) -> bool:
        """Score a solved challenge. Unknown ids and finished games are no-ops."""
        if not self.playing or self.challenges.pop(challenge_id, None) is None:
            return False
        points = self.current_level.points
        self.count_resolved += 1
        self.count_on_screen -= 1
        self.score += points
        self.logger.debug(f"[resolve] id={challenge_id} points={points} score={self.score}")
        self._notify('challenge_resolved', challenge_id)

        if self.count_resolved < self.current_level.threshold:
            return True
        if self.settings.level(self.level + 1) is None:
            self.state = GameState.COMPLETED
            self.logger.warning(
                f"[levels-exhausted] score={self.score} level={self.level} resolved={self.count_resolved}"
            )
            self._notify('levels_exhausted', self.score, self.level, self.count_resolved)
            raise LevelsExhausted(self.score, self.level, self.count_resolved)
        self.level += 1
        self.logger.info(f"[level-up] level={self.level} resolved={self.count_resolved}")
        self._notify('level_up', self.level)
        return True
