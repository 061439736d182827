"""Game settings: binary width, bases, spawn rate and the level table.

Settings are built once from the Flask config mapping and shared,
read-only, by every controller created for that app.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class Level:
    """One difficulty tier."""

    points: int
    delay: float  # seconds between spawns
    threshold: int  # resolved count that advances to the next level
    max_on_screen: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'points': self.points,
            'delay': self.delay,
            'threshold': self.threshold,
            'max_on_screen': self.max_on_screen,
        }


DEFAULT_LEVELS: Dict[int, Level] = {
    1: Level(points=1, delay=15.0, threshold=10),
    2: Level(points=2, delay=10.0, threshold=20),
    3: Level(points=4, delay=8.0, threshold=50),
    4: Level(points=8, delay=6.0, threshold=80),
    5: Level(points=16, delay=5.0, threshold=100),
    6: Level(points=32, delay=4.0, threshold=120),
    7: Level(points=64, delay=3.0, threshold=140),
    8: Level(points=128, delay=2.0, threshold=200),
    9: Level(points=128, delay=1.0, threshold=900),
}


def _parse_bases(raw) -> Tuple[int, ...]:
    if isinstance(raw, str):
        parts = [p.strip() for p in raw.split(',') if p.strip()]
    else:
        parts = list(raw)
    try:
        return tuple(int(p) for p in parts)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid BASE_LIST {raw!r}") from exc


def _parse_level(number: int, entry) -> Level:
    if isinstance(entry, Level):
        return entry
    try:
        max_on_screen = entry.get('max_on_screen')
        return Level(
            points=int(entry['points']),
            delay=float(entry['delay']),
            threshold=int(entry['threshold']),
            max_on_screen=int(max_on_screen) if max_on_screen is not None else None,
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"invalid definition for level {number}: {entry!r}") from exc


@dataclass(frozen=True)
class GameSettings:
    binary_length: int = 8
    bases: Tuple[int, ...] = (8, 10, 16)
    max_on_screen: int = 9
    tick_ms: int = 100
    levels: Mapping[int, Level] = field(default_factory=lambda: dict(DEFAULT_LEVELS))

    def __post_init__(self):
        if self.binary_length < 1:
            raise ConfigurationError("BINARY_LENGTH must be at least 1")
        if not self.bases:
            raise ConfigurationError("BASE_LIST must name at least one base")
        for base in self.bases:
            if not 2 <= base <= 16:
                raise ConfigurationError(f"unsupported base {base}, expected 2..16")
        if self.max_on_screen < 1:
            raise ConfigurationError("MAX_ON_SCREEN must be at least 1")
        if self.tick_ms < 1:
            raise ConfigurationError("TICK_MS must be at least 1")
        if not self.levels:
            raise ConfigurationError("LEVELS must define at least one level")
        if 1 not in self.levels:
            raise ConfigurationError("LEVELS must start at level 1")
        for number, level in self.levels.items():
            if level.delay <= 0:
                raise ConfigurationError(f"level {number} delay must be positive")
            if level.threshold < 1:
                raise ConfigurationError(f"level {number} threshold must be positive")
            if level.max_on_screen is not None and level.max_on_screen < 1:
                raise ConfigurationError(f"level {number} max_on_screen must be at least 1")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'GameSettings':
        """Build settings from a Flask config (or any mapping)."""
        raw_levels = config.get('LEVELS')
        if raw_levels is None:
            raw_levels = DEFAULT_LEVELS
        try:
            levels = {int(k): _parse_level(int(k), v) for k, v in raw_levels.items()}
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid LEVELS table: {exc}") from exc
        try:
            return cls(
                binary_length=int(config.get('BINARY_LENGTH', 8)),
                bases=_parse_bases(config.get('BASE_LIST', (8, 10, 16))),
                max_on_screen=int(config.get('MAX_ON_SCREEN', 9)),
                tick_ms=int(config.get('TICK_MS', 100)),
                levels=levels,
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(str(exc)) from exc

    def level(self, number: int) -> Optional[Level]:
        return self.levels.get(number)

    def max_on_screen_for(self, number: int) -> int:
        level = self.levels.get(number)
        if level is not None and level.max_on_screen is not None:
            return level.max_on_screen
        return self.max_on_screen

    def wait_ticks(self, number: int) -> float:
        """Spawn delay of a level expressed in ticks."""
        return self.levels[number].delay * 1000 / self.tick_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            'binary_length': self.binary_length,
            'bases': list(self.bases),
            'max_on_screen': self.max_on_screen,
            'tick_ms': self.tick_ms,
            'levels': {str(k): v.to_dict() for k, v in sorted(self.levels.items())},
        }
