"""Fair spin selection and wheel rotation targeting.

The wheel is divided into equal wedges. Wedge ``i`` spans
``[i * segment, (i + 1) * segment)`` in the wheel's own frame and the pointer
sits at world angle 0. Rotating the wheel by ``r`` degrees moves local angle
``a`` to world angle ``(a + r) % 360``, so the wedge under the pointer is the one
containing local angle ``(-r) % 360``.
"""

import math
import random
from collections.abc import Sequence
from dataclasses import dataclass, field

from tiny_decisions.domain.options import Option
from tiny_decisions.errors import InsufficientOptionsError

MIN_OPTIONS = 2
EXTRA_REVOLUTIONS = 5
JITTER_RATIO = 0.4
SPIN_DURATION_MS = 4000


@dataclass(frozen=True)
class SpinResult:
    """Winner selected at spin time and the rotation the wheel animates to."""

    winner_index: int
    target_rotation: float


@dataclass
class SpinEngine:
    """Selects a winner and computes where the wheel must stop."""

    rng: random.Random = field(default_factory=random.Random)
    extra_revolutions: int = EXTRA_REVOLUTIONS

    def spin(
        self,
        options: Sequence[Option],
        current_rotation: float,
        forced_index: int | None = None,
    ) -> SpinResult:
        """Pick a winner and return the target rotation for the animation."""
        count = len(options)
        if count < MIN_OPTIONS:
            raise InsufficientOptionsError(
                "Add at least 2 options!", required=MIN_OPTIONS, actual=count
            )

        if forced_index is not None and 0 <= forced_index < count:
            winner_index = forced_index
        else:
            winner_index = self.rng.randrange(count)

        segment = 360 / count
        wedge_center = (winner_index + 0.5) * segment
        angle_needed = (360 - ((wedge_center + current_rotation) % 360)) % 360
        jitter = self.rng.uniform(-JITTER_RATIO * segment, JITTER_RATIO * segment)
        target = (
            current_rotation + self.extra_revolutions * 360 + angle_needed + jitter
        )
        return SpinResult(winner_index=winner_index, target_rotation=target)


def wedge_at_pointer(rotation: float, option_count: int) -> int:
    """Return the index of the wedge under the pointer at a given rotation."""
    if option_count <= 0:
        raise ValueError("option_count must be positive")
    segment = 360 / option_count
    local_angle = (-rotation) % 360
    return min(math.floor(local_angle / segment), option_count - 1)
