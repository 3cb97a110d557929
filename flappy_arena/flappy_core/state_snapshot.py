"""
State Snapshot
==============

Read-only copies of the game state for renderers and agents, plus packing
into fixed-size numpy arrays for Gymnasium observations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, TYPE_CHECKING
import numpy as np

from flappy_arena.flappy_core.config_loader import GameConfig, get_config

if TYPE_CHECKING:
    from flappy_arena.flappy_core.physics import Bird
    from flappy_arena.flappy_core.track import ObstacleTrack


@dataclass(frozen=True)
class PipeView:
    """A pipe as seen at the snapshot's scroll distance."""
    id: int
    x: float
    gap_top: float
    gap_height: float
    width: float

    @property
    def gap_bottom(self) -> float:
        return self.gap_top + self.gap_height


@dataclass(frozen=True)
class GameSnapshot:
    """
    Complete game state at a tick boundary.

    Holds plain values only, so readers can never mutate the simulation.
    """
    phase: int                   # GamePhase value
    tick: int
    bird_x: float
    bird_y: float
    bird_velocity: float
    bird_width: float
    bird_height: float
    scroll_offset: float
    score: int
    next_pipe_id: int
    pipes: Tuple[PipeView, ...]

    # Board info (for normalization)
    arena_height: float
    viewport_width: float

    @property
    def next_pipe(self) -> Optional[PipeView]:
        """The pipe the bird must clear next, if it has spawned."""
        for pipe in self.pipes:
            if pipe.id == self.next_pipe_id:
                return pipe
        return None

    def to_obs_dict(self, max_pipes: int) -> Dict[str, np.ndarray]:
        """
        Convert to Gymnasium observation dictionary.

        Pipe arrays hold up to max_pipes pipes, oldest first, padded with a
        mask. When pipes do not fit, passed pipes are dropped first and the
        pipe the bird must clear next is always kept.
        """
        pipe_id = np.zeros(max_pipes, dtype=np.int32)
        pipe_x = np.zeros(max_pipes, dtype=np.float32)
        pipe_gap_top = np.zeros(max_pipes, dtype=np.float32)
        pipe_gap_bottom = np.zeros(max_pipes, dtype=np.float32)
        pipe_mask = np.zeros(max_pipes, dtype=bool)

        start = max(0, len(self.pipes) - max_pipes)
        for i, pipe in enumerate(self.pipes):
            if pipe.id >= self.next_pipe_id:
                start = min(start, i)
                break
        kept = self.pipes[start:start + max_pipes]
        for i, pipe in enumerate(kept):
            pipe_id[i] = pipe.id
            pipe_x[i] = pipe.x
            pipe_gap_top[i] = pipe.gap_top
            pipe_gap_bottom[i] = pipe.gap_bottom
            pipe_mask[i] = True

        nxt = self.next_pipe
        if nxt is not None:
            next_x, next_top, next_bottom = nxt.x, nxt.gap_top, nxt.gap_bottom
        else:
            next_x, next_top, next_bottom = self.viewport_width, 0.0, self.arena_height

        return {
            # Core state
            "phase": np.array(self.phase, dtype=np.int32),
            "bird_y": np.array(self.bird_y, dtype=np.float32),
            "bird_velocity": np.array(self.bird_velocity, dtype=np.float32),
            "score": np.array(self.score, dtype=np.int64),
            "scroll_offset": np.array(self.scroll_offset, dtype=np.float32),
            "arena_height": np.array(self.arena_height, dtype=np.float32),
            "bird_height": np.array(self.bird_height, dtype=np.float32),

            # Next pipe (defaults describe an open arena when none has spawned)
            "next_pipe_present": np.array(int(nxt is not None), dtype=np.int32),
            "next_pipe_dx": np.array(next_x - self.bird_x, dtype=np.float32),
            "next_pipe_gap_top": np.array(next_top, dtype=np.float32),
            "next_pipe_gap_bottom": np.array(next_bottom, dtype=np.float32),

            # Pipe arrays
            "pipe_id": pipe_id,
            "pipe_x": pipe_x,
            "pipe_gap_top": pipe_gap_top,
            "pipe_gap_bottom": pipe_gap_bottom,
            "pipe_mask": pipe_mask,
        }


class SnapshotBuilder:
    """Builds game state snapshots."""

    def __init__(self, config: Optional[GameConfig] = None):
        if config is None:
            config = get_config()

        self._config = config
        self._max_pipes = config.observation.max_pipes
        self._arena_height = config.arena.height
        self._viewport_width = float(config.arena.viewport_width)

    @property
    def max_pipes(self) -> int:
        return self._max_pipes

    def build(
        self,
        bird: "Bird",
        track: "ObstacleTrack",
        phase: int,
        tick: int,
        score: int,
        next_pipe_id: int
    ) -> GameSnapshot:
        """Build a snapshot from current game state."""
        pipes = tuple(
            PipeView(
                id=pipe.id,
                x=track.x_of(pipe),
                gap_top=pipe.gap_top,
                gap_height=pipe.gap_height,
                width=pipe.width
            )
            for pipe in track.pipes
        )

        return GameSnapshot(
            phase=phase,
            tick=tick,
            bird_x=bird.x,
            bird_y=bird.y,
            bird_velocity=bird.velocity,
            bird_width=bird.width,
            bird_height=bird.height,
            scroll_offset=track.scroll_offset,
            score=score,
            next_pipe_id=next_pipe_id,
            pipes=pipes,
            arena_height=self._arena_height,
            viewport_width=self._viewport_width
        )
