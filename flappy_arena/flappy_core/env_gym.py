"""
Gymnasium Environment Wrapper
=============================

Provides a standard Gymnasium interface to the Flappy game.
Reward is always 0.0 - agents must compute their own from info.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from flappy_arena.flappy_core.config_loader import GameConfig, load_config
from flappy_arena.flappy_core.game import CoreGame, GamePhase
from flappy_arena.flappy_core.state_snapshot import GameSnapshot

NOOP = 0
JUMP = 1


class FlappyEnv(gym.Env):
    """
    Flappy pipe-dodging game as a Gymnasium environment.

    Action Space:
        Discrete(2): 0 = do nothing, 1 = jump.

    Observation Space:
        Dict containing the bird state, the next pipe and padded pipe arrays.

    Reward:
        Always 0.0. Agents must compute their own reward from the info dict.

    Info:
        Contains score, delta_score, ticks, terminated_reason, etc.
    """

    metadata = {
        "render_modes": [],
        "render_fps": 60,
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        frame_skip: int = 1,
        debug: bool = False,
    ):
        """
        Initialize Flappy environment.

        Args:
            config_path: Path to a config YAML. Uses default if None.
            config: Already-loaded configuration (takes precedence).
            frame_skip: Ticks simulated per step; the action applies on the first.
            debug: If True, enables verbose debug output for agent development.
        """
        super().__init__()

        if frame_skip < 1:
            raise ValueError(f"frame_skip must be >= 1, got {frame_skip}")

        # Load config
        self._config = config if config is not None else load_config(config_path)
        self._frame_skip = int(frame_skip)
        self._debug = debug
        self._max_ticks = self._config.caps.max_ticks

        # Initialize game
        self._game = CoreGame(config=self._config)

        # Define action space
        self.action_space = spaces.Discrete(2)

        # Define observation space
        self.observation_space = self._build_observation_space()

        if self._debug:
            print(f"[DEBUG] FlappyEnv initialized")
            print(f"[DEBUG]   Arena: {self._config.arena.viewport_width}x{self._config.arena.height}")
            print(f"[DEBUG]   Spawn spacing: {self._config.track.spawn_spacing}")
            print(f"[DEBUG]   Max pipes: {self._config.observation.max_pipes}")

    def _build_observation_space(self) -> spaces.Dict:
        """Build the observation space definition."""
        max_pipes = self._config.observation.max_pipes
        big = np.finfo(np.float32).max

        obs_dict = {
            # Core state
            "phase": spaces.Discrete(len(GamePhase)),
            "bird_y": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "bird_velocity": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "score": spaces.Box(low=0, high=np.iinfo(np.int64).max, shape=(), dtype=np.int64),
            "scroll_offset": spaces.Box(low=-big, high=0, shape=(), dtype=np.float32),
            "arena_height": spaces.Box(low=0, high=big, shape=(), dtype=np.float32),
            "bird_height": spaces.Box(low=0, high=big, shape=(), dtype=np.float32),

            # Next pipe
            "next_pipe_present": spaces.Discrete(2),
            "next_pipe_dx": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "next_pipe_gap_top": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),
            "next_pipe_gap_bottom": spaces.Box(low=-big, high=big, shape=(), dtype=np.float32),

            # Pipe arrays
            "pipe_id": spaces.Box(low=0, high=np.iinfo(np.int32).max, shape=(max_pipes,), dtype=np.int32),
            "pipe_x": spaces.Box(low=-big, high=big, shape=(max_pipes,), dtype=np.float32),
            "pipe_gap_top": spaces.Box(low=-big, high=big, shape=(max_pipes,), dtype=np.float32),
            "pipe_gap_bottom": spaces.Box(low=-big, high=big, shape=(max_pipes,), dtype=np.float32),
            "pipe_mask": spaces.MultiBinary(max_pipes),
        }

        return spaces.Dict(obs_dict)

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset the environment and start a new game.

        Args:
            seed: Random seed for reproducibility.
            options: Additional options (unused).

        Returns:
            (observation, info) tuple.
        """
        super().reset(seed=seed)

        self._game.restart(seed=seed)
        self._game.start()

        obs = self._snapshot_to_obs(self._game.snapshot())
        info = self._game.get_info()
        info["delta_score"] = 0

        return obs, info

    def step(
        self,
        action: Union[int, np.ndarray]
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        Execute one step.

        Args:
            action: 1 to jump, 0 to do nothing.

        Returns:
            (observation, reward, terminated, truncated, info) tuple.
            Reward is always 0.0.
        """
        # Convert action to scalar
        if isinstance(action, np.ndarray):
            action = int(action.item())
        action = int(action)

        score_before = self._game.score

        if action == JUMP:
            self._game.jump()

        for _ in range(self._frame_skip):
            if not self._game.tick().should_continue:
                break

        terminated = self._game.is_over
        truncated = (
            not terminated
            and self._max_ticks > 0
            and self._game.tick_count >= self._max_ticks
        )

        obs = self._snapshot_to_obs(self._game.snapshot())

        # Reward is always 0.0 - agents compute their own
        reward = 0.0

        info = self._game.get_info()
        info["delta_score"] = self._game.score - score_before
        if truncated:
            info["terminated_reason"] = "tick_cap"

        if self._debug:
            print(f"[DEBUG] Step: action={action}, y={obs['bird_y']:.1f}, "
                  f"v={obs['bird_velocity']:.2f}, score={self._game.score}")
            if terminated:
                print(f"[DEBUG] TERMINATED: {info.get('terminated_reason', 'unknown')}")

        return obs, reward, terminated, truncated, info

    def _snapshot_to_obs(self, snapshot: GameSnapshot) -> Dict[str, np.ndarray]:
        """Convert snapshot to observation dict."""
        return snapshot.to_obs_dict(self._config.observation.max_pipes)

    def render(self) -> None:
        """Drawing belongs to the host (see tools/play_human.py)."""
        return None

    def close(self) -> None:
        """Nothing to release."""

    @property
    def game(self) -> CoreGame:
        """Access to underlying game (for debugging/tools)."""
        return self._game

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config
