"""
Team Template Agent
===================

Your agent must provide one of:
1. A `FlappyAgent` class with an `act(obs) -> action` method
2. A standalone `act(obs) -> action` function

If the class also defines `reset(seed)`, the evaluation harness calls it
before every seed.

Actions are 0 (do nothing) or 1 (jump).

Useful observation keys: bird_y, bird_velocity, bird_height, arena_height,
next_pipe_present, next_pipe_dx, next_pipe_gap_top, next_pipe_gap_bottom,
and the padded pipe_* arrays with pipe_mask.
"""

from __future__ import annotations

from typing import Dict, Optional
import numpy as np


class FlappyAgent:
    """
    Your Flappy agent implementation.

    Replace the strategy in `act()` with your own logic.
    """

    def __init__(self):
        """Initialize your agent. Load models, set up state, etc."""
        self.rng = np.random.default_rng()

    def act(self, obs: Dict[str, np.ndarray]) -> int:
        """
        Choose an action based on the observation.

        Args:
            obs: Dictionary containing game state.

        Returns:
            action: 1 to jump, 0 otherwise.
        """
        # Random flapping, roughly once every twelve frames
        return int(self.rng.random() < 0.08)

    def reset(self, seed: Optional[int] = None) -> None:
        """Called by the harness before every seed (optional)."""
        self.rng = np.random.default_rng(seed)


def act(obs: Dict[str, np.ndarray]) -> int:
    """Standalone act function (alternative to class-based agent)."""
    return int(np.random.random() < 0.08)
