"""
Flappy Core - The heart of the arena.

This module provides the core game simulation, Gymnasium environment wrapper,
and all supporting systems (physics, gaps, track, collisions, scoring).

Main exports:
- CoreGame: Game simulation and phase state machine
- FlappyEnv: Gymnasium environment for single-agent training
- FlappyVectorEnv: Batched environments for parallel training
- FrameScheduler: Per-frame driver for hosts
- GameConfig: Configuration loaded from game_config.yaml
"""

from flappy_arena.flappy_core.config_loader import (
    GameConfig,
    load_config,
    load_preset,
    derive_arena,
)
from flappy_arena.flappy_core.errors import InvariantViolation
from flappy_arena.flappy_core.physics import Bird, PhysicsIntegrator, Rect
from flappy_arena.flappy_core.gap_generator import GapGenerator
from flappy_arena.flappy_core.track import ObstacleTrack, Pipe
from flappy_arena.flappy_core.collision import CollisionEngine, CollisionResult
from flappy_arena.flappy_core.scoring import ScoreTracker
from flappy_arena.flappy_core.persistence import (
    InMemoryBestScoreStore,
    JsonFileBestScoreStore,
    record_best_score,
)
from flappy_arena.flappy_core.game import CoreGame, GamePhase, GameEvent, TickResult
from flappy_arena.flappy_core.scheduler import FrameScheduler
from flappy_arena.flappy_core.state_snapshot import GameSnapshot
from flappy_arena.flappy_core.env_gym import FlappyEnv
from flappy_arena.flappy_core.vector_env import FlappyVectorEnv
from flappy_arena.flappy_core.replay_recorder import (
    ReplayRecorder,
    record_episode,
    replay_actions,
    generate_replay_filename,
)

__all__ = [
    "GameConfig",
    "load_config",
    "load_preset",
    "derive_arena",
    "InvariantViolation",
    "Bird",
    "PhysicsIntegrator",
    "Rect",
    "GapGenerator",
    "ObstacleTrack",
    "Pipe",
    "CollisionEngine",
    "CollisionResult",
    "ScoreTracker",
    "InMemoryBestScoreStore",
    "JsonFileBestScoreStore",
    "record_best_score",
    "CoreGame",
    "GamePhase",
    "GameEvent",
    "TickResult",
    "FrameScheduler",
    "GameSnapshot",
    "FlappyEnv",
    "FlappyVectorEnv",
    "ReplayRecorder",
    "record_episode",
    "replay_actions",
    "generate_replay_filename",
]
