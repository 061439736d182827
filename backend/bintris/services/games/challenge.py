import random
from typing import Any, Dict, Optional, Sequence, Tuple

from .conversion import convert_to_string


class ChallengeModel:
    """One conversion puzzle.

    The binary and numeric strings are computed from `value` on demand.
    When `binary_fixed` is true the binary string is given and the player
    must find the numeric string, otherwise the numeric string is given and
    the player must find the binary string.
    """

    def __init__(
        self,
        challenge_id: int,
        rng: Optional[random.Random] = None,
        binary_length: int = 8,
        bases: Sequence[int] = (8, 10, 16),
    ):
        rng = rng or random.Random()
        self._id = challenge_id
        self.binary_length = binary_length
        self.value = rng.randint(0, (1 << binary_length) - 1)
        self.base = rng.choice(list(bases))
        self.binary_fixed = rng.random() < 0.5

    @property
    def id(self) -> int:
        return self._id

    @property
    def binary_string(self) -> str:
        return convert_to_string(self.value, 2, self.binary_length)

    @property
    def numeric_string(self) -> str:
        return convert_to_string(self.value, self.base)

    def matches_binary_answer(self, candidate: str) -> bool:
        # Only meaningful when the binary side is the target
        return (candidate or '').strip() == self.binary_string

    def matches_numeric_answer(self, candidate: str) -> bool:
        return (candidate or '').strip().upper() == self.numeric_string

    def given(self) -> Tuple[str, str]:
        """(binary, numeric) as displayed; the target side is empty."""
        if self.binary_fixed:
            return self.binary_string, ''
        return '', self.numeric_string

    def to_dict(self) -> Dict[str, Any]:
        binary, numeric = self.given()
        return {
            'id': self.id,
            'binary': binary,
            'numeric': numeric,
            'base': self.base,
            'binary_fixed': self.binary_fixed,
        }

    def __repr__(self):
        return (
            f"ChallengeModel(id={self.id}, value={self.value}, base={self.base}, "
            f"binary_fixed={self.binary_fixed})"
        )
