"""
Vector Environment
==================

Single-process vectorized environment for parallel training.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple
import numpy as np

from flappy_arena.flappy_core.config_loader import GameConfig, load_config
from flappy_arena.flappy_core.game import CoreGame


class FlappyVectorEnv:
    """
    Vectorized Flappy environment for parallel training.

    Runs multiple game instances in a single process and stacks their
    observations along a leading batch axis. Environments that finish are
    not reset automatically; pass their indices to reset().
    """

    def __init__(
        self,
        num_envs: int,
        config_path: Optional[str] = None,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize vectorized environment.

        Args:
            num_envs: Number of parallel environments.
            config_path: Path to a config YAML.
            config: Already-loaded configuration (takes precedence).
            seed: Base random seed. Each env gets seed+i.
        """
        if num_envs < 1:
            raise ValueError(f"num_envs must be >= 1, got {num_envs}")

        self._num_envs = num_envs
        self._config = config if config is not None else load_config(config_path)
        self._base_seed = seed
        self._max_pipes = self._config.observation.max_pipes
        self._max_ticks = self._config.caps.max_ticks

        self._games: List[CoreGame] = [
            CoreGame(config=self._config, seed=(seed + i) if seed is not None else None)
            for i in range(num_envs)
        ]

        # Per-env observation dicts from the latest collect
        self._last_obs: List[Dict[str, np.ndarray]] = [{} for _ in range(num_envs)]

        self._rewards = np.zeros(num_envs, dtype=np.float32)
        self._terminateds = np.zeros(num_envs, dtype=bool)
        self._truncateds = np.zeros(num_envs, dtype=bool)

        # Action space info
        self.single_action_space = {"n": 2, "dtype": np.int64}
        self.action_space = {"n": 2, "shape": (num_envs,), "dtype": np.int64}

    @property
    def num_envs(self) -> int:
        """Number of parallel environments."""
        return self._num_envs

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    def reset(
        self,
        seed: Optional[int] = None,
        env_indices: Optional[Sequence[int]] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        Reset environments and start their games.

        Args:
            seed: Base random seed. Each env gets seed+i.
            env_indices: Indices of envs to reset. None = all.

        Returns:
            (observations, infos) tuple for all envs.
        """
        if env_indices is None:
            env_indices = range(self._num_envs)

        if seed is not None:
            self._base_seed = seed

        for i in env_indices:
            env_seed = (self._base_seed + i) if self._base_seed is not None else None
            game = self._games[i]
            game.restart(seed=env_seed)
            game.start()
            self._terminateds[i] = False
            self._truncateds[i] = False

        return self._collect_observations()

    def step(
        self,
        actions: Sequence[int]
    ) -> Tuple[Dict[str, np.ndarray], np.ndarray, np.ndarray, np.ndarray, Dict[str, Any]]:
        """
        Step all environments.

        Args:
            actions: (num_envs,) array of 0 (noop) / 1 (jump).

        Returns:
            (observations, rewards, terminateds, truncateds, infos) tuple.
            Rewards are always 0.0.
        """
        if len(actions) != self._num_envs:
            raise ValueError(f"Expected {self._num_envs} actions, got {len(actions)}")

        delta_scores = np.zeros(self._num_envs, dtype=np.int32)

        for i, action in enumerate(actions):
            game = self._games[i]
            before = game.score
            if int(action) == 1:
                game.jump()
            game.tick()

            self._terminateds[i] = game.is_over
            self._truncateds[i] = (
                not game.is_over
                and self._max_ticks > 0
                and game.tick_count >= self._max_ticks
            )
            delta_scores[i] = game.score - before

        obs, infos = self._collect_observations()
        infos["delta_score"] = delta_scores

        return (
            obs,
            self._rewards.copy(),
            self._terminateds.copy(),
            self._truncateds.copy(),
            infos
        )

    def _collect_observations(self) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """Stack per-env observation dicts into batched arrays."""
        for i, game in enumerate(self._games):
            self._last_obs[i] = game.snapshot().to_obs_dict(self._max_pipes)

        keys = self._last_obs[0].keys()
        obs = {key: np.stack([o[key] for o in self._last_obs], axis=0) for key in keys}

        infos = {
            "score": obs["score"].copy(),
            "ticks": np.array([g.tick_count for g in self._games], dtype=np.int64),
            "terminated_reason": [g.termination_reason for g in self._games],
        }
        return obs, infos

    def get_game(self, env_idx: int) -> CoreGame:
        """Get the underlying game instance for an environment."""
        return self._games[env_idx]

    def close(self) -> None:
        """Nothing to release."""

    def sample_actions(self) -> np.ndarray:
        """Sample random actions for all environments."""
        return np.random.randint(0, 2, size=self._num_envs).astype(np.int64)
