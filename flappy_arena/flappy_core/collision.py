"""
Collision Engine
================

Pure evaluation of the bird against the arena bounds and the next pipe.
Applying the outcome (score, notifications) is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flappy_arena.flappy_core.config_loader import GameConfig, get_config
from flappy_arena.flappy_core.physics import Rect
from flappy_arena.flappy_core.track import ObstacleTrack


@dataclass(frozen=True)
class CollisionResult:
    """Outcome of one evaluation."""
    collided: bool
    scored: bool
    next_pipe_id: int
    first_pipe_cleared: bool = False
    reason: str = ""             # "ceiling", "floor", "pipe" or ""

    @staticmethod
    def clear(next_pipe_id: int) -> "CollisionResult":
        return CollisionResult(False, False, next_pipe_id)


class CollisionEngine:
    """
    Tests the bird against world boundaries and the next uncleared pipe.

    Boundary checks run first and short-circuit. A pipe clear and a pipe
    hit may both be reported by the same evaluation.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize collision engine.

        Args:
            config: Game configuration. Uses default if None.
        """
        if config is None:
            config = get_config()

        self._ceiling = config.arena.ceiling
        self._floor = config.arena.floor

    @property
    def ceiling(self) -> float:
        return self._ceiling

    @property
    def floor(self) -> float:
        return self._floor

    def hits_bounds(self, bird_rect: Rect) -> str:
        """Name of the boundary the bird crossed, or empty string."""
        if bird_rect.top < self._ceiling:
            return "ceiling"
        if bird_rect.bottom > self._floor:
            return "floor"
        return ""

    def evaluate(
        self,
        bird_rect: Rect,
        track: ObstacleTrack,
        next_pipe_id: int
    ) -> CollisionResult:
        """
        Evaluate the bird's position for this tick.

        Args:
            bird_rect: Current bird bounding box.
            track: Live pipe registry.
            next_pipe_id: Id of the pipe the bird must clear next.

        Returns:
            CollisionResult with the (possibly advanced) next pipe id.
        """
        boundary = self.hits_bounds(bird_rect)
        if boundary:
            return CollisionResult(True, False, next_pipe_id, reason=boundary)

        pipe = track.get(next_pipe_id)
        if pipe is None:
            # Not spawned yet
            return CollisionResult.clear(next_pipe_id)

        upper = pipe.upper_rect(track.distance, self._ceiling)
        lower = pipe.lower_rect(track.distance, self._floor)

        scored = upper.right < bird_rect.left
        new_next_id = next_pipe_id + 1 if scored else next_pipe_id

        collided = bird_rect.overlaps(upper) or bird_rect.overlaps(lower)

        return CollisionResult(
            collided=collided,
            scored=scored,
            next_pipe_id=new_next_id,
            first_pipe_cleared=scored and new_next_id == 2,
            reason="pipe" if collided else ""
        )
