"""
Bird Physics
============

Explicit Euler integration of the bird's vertical motion, one step per frame.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from flappy_arena.flappy_core.config_loader import GameConfig, get_config
from flappy_arena.flappy_core.errors import InvariantViolation


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in world pixels (y grows downward)."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def overlaps(self, other: "Rect") -> bool:
        """
        True unless the rectangles are strictly separated.

        Touching edges count as overlapping.
        """
        return not (
            self.right < other.left
            or self.left > other.right
            or self.bottom < other.top
            or self.top > other.bottom
        )


@dataclass
class Bird:
    """The falling, jump-controlled entity."""
    x: float
    y: float                 # Top edge
    width: float
    height: float
    velocity: float = 0.0    # Positive is downward

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.x + self.width, self.y + self.height)

    @classmethod
    def from_config(cls, config: GameConfig) -> "Bird":
        bird = config.bird
        return cls(x=bird.x, y=bird.start_y, width=bird.width, height=bird.height)


class PhysicsIntegrator:
    """
    Advances the bird under constant downward acceleration.

    No bounds clamping happens here; leaving the arena is detected by the
    collision engine.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize integrator.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._down_force = config.physics.down_force
        self._jump_force = config.physics.jump_force

    @property
    def down_force(self) -> float:
        return self._down_force

    @property
    def jump_force(self) -> float:
        return self._jump_force

    def tick(self, bird: Bird) -> None:
        """Apply one frame: acceleration first, then position."""
        bird.velocity += self._down_force
        bird.y += bird.velocity

        if not (math.isfinite(bird.velocity) and math.isfinite(bird.y)):
            raise InvariantViolation(
                f"Bird state became non-finite: y={bird.y}, velocity={bird.velocity}"
            )

    def jump(self, bird: Bird) -> None:
        """Replace the current velocity with the upward impulse."""
        bird.velocity = -self._jump_force
