"""
Obstacle Track
==============

Owns the live pipes: spawns them at fixed scroll spacing, culls them once
they have scrolled out of view, and tracks the cumulative scroll distance.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flappy_arena.flappy_core.config_loader import GameConfig, get_config
from flappy_arena.flappy_core.errors import InvariantViolation
from flappy_arena.flappy_core.gap_generator import GapGenerator
from flappy_arena.flappy_core.physics import Rect

logger = logging.getLogger(__name__)

# Slack on spacing boundaries for scroll speeds that are not exact in binary
BOUNDARY_EPSILON = 1e-9


@dataclass(frozen=True)
class Pipe:
    """
    A pair of barriers with a vertical gap between them.

    Pipes never change after creation. Their on-screen x is derived from
    the track's scroll distance.
    """
    id: int
    gap_top: float       # Bottom edge of the upper barrier
    gap_height: float
    width: float
    offset: float        # World x when scroll distance is zero

    @property
    def gap_bottom(self) -> float:
        return self.gap_top + self.gap_height

    def x_at(self, distance: float) -> float:
        """Left edge for a given cumulative scroll distance."""
        return self.offset - distance

    def upper_rect(self, distance: float, ceiling: float = 0.0) -> Rect:
        x = self.x_at(distance)
        return Rect(x, ceiling, x + self.width, self.gap_top)

    def lower_rect(self, distance: float, floor: float) -> Rect:
        x = self.x_at(distance)
        return Rect(x, self.gap_bottom, x + self.width, floor)


@dataclass
class TrackUpdate:
    """Pipes created and removed by one advance."""
    spawned: List[Pipe] = field(default_factory=list)
    culled: List[Pipe] = field(default_factory=list)


class ObstacleTrack:
    """
    Ordered registry of live pipes plus the world scroll state.

    A pipe spawns every time the scroll distance crosses a multiple of
    spawn_spacing (landing exactly on the boundary counts). Pipe n therefore
    appears at origin_x when the distance reaches n * spawn_spacing.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        gap_generator: Optional[GapGenerator] = None
    ):
        """
        Initialize track.

        Args:
            config: Game configuration. Uses default if None.
            gap_generator: Source of gap levels. A fresh unseeded one if None.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._gaps = gap_generator if gap_generator is not None else GapGenerator(config)

        self._spacing = config.track.spawn_spacing
        self._origin_x = config.track.origin_x
        self._visible_width = config.track.visible_width
        self._pipe_width = config.track.pipe_width
        self._gap_height = config.gaps.gap_height

        self._pipes: Dict[int, Pipe] = {}
        self._distance: float = 0.0
        self._spawn_count: int = 0
        self._last_culled_id: int = 0

    @property
    def distance(self) -> float:
        """Cumulative scroll magnitude (never negative)."""
        return self._distance

    @property
    def scroll_offset(self) -> float:
        """Cumulative scroll as a leftward offset (never positive)."""
        return -self._distance

    @property
    def pipes(self) -> List[Pipe]:
        """Live pipes, oldest first."""
        return list(self._pipes.values())

    @property
    def spawn_count(self) -> int:
        """Total pipes spawned so far (also the id of the newest one)."""
        return self._spawn_count

    def get(self, pipe_id: int) -> Optional[Pipe]:
        return self._pipes.get(pipe_id)

    def __len__(self) -> int:
        return len(self._pipes)

    def __contains__(self, pipe_id: int) -> bool:
        return pipe_id in self._pipes

    def x_of(self, pipe: Pipe) -> float:
        """Current left edge of a pipe."""
        return pipe.x_at(self._distance)

    def advance(self, scroll_delta: float) -> TrackUpdate:
        """
        Scroll the world left and update the live pipe set.

        Args:
            scroll_delta: Distance scrolled this tick (non-negative).

        Returns:
            TrackUpdate listing spawned and culled pipes.
        """
        if scroll_delta < 0:
            raise ValueError(f"scroll_delta must be >= 0, got {scroll_delta}")

        update = TrackUpdate()
        before = self._distance
        self._distance += scroll_delta

        crossed = self._boundaries_passed(self._distance) - self._boundaries_passed(before)
        for _ in range(crossed):
            update.spawned.append(self._spawn())

        update.culled = self._cull()
        return update

    def _boundaries_passed(self, distance: float) -> int:
        return math.floor(distance / self._spacing + BOUNDARY_EPSILON)

    def _spawn(self) -> Pipe:
        self._spawn_count += 1
        pipe_id = self._spawn_count
        if self._pipes and pipe_id <= next(reversed(self._pipes)):
            raise InvariantViolation(f"Pipe id {pipe_id} is not newer than the live pipes")

        pipe = Pipe(
            id=pipe_id,
            gap_top=self._gaps.advance(),
            gap_height=self._gap_height,
            width=self._pipe_width,
            offset=self._origin_x + pipe_id * self._spacing
        )
        self._pipes[pipe_id] = pipe
        logger.debug("Spawned pipe %d (gap_top=%s) at distance %s",
                     pipe_id, pipe.gap_top, self._distance)
        return pipe

    def _cull(self) -> List[Pipe]:
        """Remove every pipe whose trailing edge left the visible window, oldest first."""
        cutoff = self._origin_x - self._visible_width
        culled: List[Pipe] = []
        for pipe in list(self._pipes.values()):
            if pipe.x_at(self._distance) + pipe.width >= cutoff:
                # Pipes are ordered by age, so every later pipe is still visible
                break
            if pipe.id <= self._last_culled_id:
                raise InvariantViolation(
                    f"Culling pipe {pipe.id} after pipe {self._last_culled_id}"
                )
            del self._pipes[pipe.id]
            self._last_culled_id = pipe.id
            culled.append(pipe)
            logger.debug("Culled pipe %d at distance %s", pipe.id, self._distance)
        return culled

    def reset(self) -> None:
        """Remove all pipes and rewind the scroll."""
        self._pipes.clear()
        self._distance = 0.0
        self._spawn_count = 0
        self._last_culled_id = 0
        self._gaps.reset()
