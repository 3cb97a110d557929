"""
Gap Generator
=============

Derives each pipe's gap level from the previous one: a bounded random walk
pinned inside the arena's safe zones.
"""

from __future__ import annotations

import random
from typing import Any, Optional

from flappy_arena.flappy_core.config_loader import GameConfig, get_config


class GapGenerator:
    """
    Bounded random walk over gap levels.

    Each new level differs from the previous by an integer delta drawn
    uniformly from [-max_step, +max_step]. Candidates that leave the safe
    vertical zone are pinned to the nearest legal level:

    - at or above the top safe zone -> exactly safe_zone_top
    - gap bottom inside the bottom safe zone -> exactly the lowest legal level

    Consecutive gaps therefore stay navigable while still wandering.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[Any] = None
    ):
        """
        Initialize gap generator.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducibility. Random if None.
            rng: Random source with a random() -> [0, 1] method. Overrides seed.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._rng = rng if rng is not None else random.Random(seed)

        self._max_step = config.gaps.max_step
        self._gap_height = config.gaps.gap_height
        self._arena_height = config.arena.height
        self._safe_zone_top = config.arena.safe_zone_top
        self._safe_zone_bottom = config.arena.safe_zone_bottom

        self._initial_level = config.gaps.initial_level
        self._current_level = self._initial_level

    @property
    def current_level(self) -> float:
        """Level of the most recently generated gap (or the initial level)."""
        return self._current_level

    @property
    def lowest_level(self) -> float:
        """Bottom-most legal gap level."""
        return self._arena_height - self._gap_height - self._safe_zone_bottom

    def _draw_delta(self) -> float:
        return round(self._rng.random() * 2 * self._max_step - self._max_step)

    def next_gap_level(self, previous_level: float) -> float:
        """
        Compute the gap level that follows previous_level.

        Args:
            previous_level: Gap level of the previous pipe.

        Returns:
            New gap level within [safe_zone_top, lowest_level].
        """
        candidate = previous_level + self._draw_delta()

        if candidate <= self._safe_zone_top:
            return self._safe_zone_top
        if candidate + self._gap_height > self._arena_height - self._safe_zone_bottom:
            return self.lowest_level
        return candidate

    def advance(self) -> float:
        """Step the walk and return the new current level."""
        self._current_level = self.next_gap_level(self._current_level)
        return self._current_level

    def reset(self, seed: Optional[int] = None) -> None:
        """
        Restart the walk from the initial level.

        Args:
            seed: New random seed. Keeps current random source if None.
        """
        if seed is not None:
            self._rng = random.Random(seed)
        self._current_level = self._initial_level
