"""
Core Game
=========

Main game orchestrator combining physics, pipe track, collisions, scoring
and the phase state machine.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from flappy_arena.flappy_core.collision import CollisionEngine, CollisionResult
from flappy_arena.flappy_core.config_loader import GameConfig, get_config
from flappy_arena.flappy_core.gap_generator import GapGenerator
from flappy_arena.flappy_core.persistence import BestScoreStore, record_best_score
from flappy_arena.flappy_core.physics import Bird, PhysicsIntegrator
from flappy_arena.flappy_core.scoring import ScoreTracker
from flappy_arena.flappy_core.state_snapshot import GameSnapshot, SnapshotBuilder
from flappy_arena.flappy_core.track import ObstacleTrack, Pipe

logger = logging.getLogger(__name__)


class GamePhase(IntEnum):
    """Top-level game state."""
    NOT_STARTED = 0
    RUNNING = 1
    PAUSED = 2
    OVER = 3


# Event kinds
FIRST_PIPE_CLEARED = "first_pipe_cleared"
GAME_OVER = "game_over"
PHASE_CHANGED = "phase_changed"

EVENT_KINDS = (FIRST_PIPE_CLEARED, GAME_OVER, PHASE_CHANGED)


@dataclass
class GameEvent:
    """A discrete notification for the UI collaborator."""
    kind: str
    tick: int
    score: int
    phase: GamePhase
    best_score: Optional[int] = None
    reason: str = ""


@dataclass
class TickResult:
    """Result of a single tick."""
    phase: GamePhase
    ran: bool                    # False when the tick was a no-op
    scored: bool = False
    collided: bool = False
    spawned: List[Pipe] = field(default_factory=list)
    culled: List[Pipe] = field(default_factory=list)
    events: List[GameEvent] = field(default_factory=list)

    @property
    def should_continue(self) -> bool:
        """False once the game is over; the scheduler stops then."""
        return self.phase != GamePhase.OVER


class CoreGame:
    """
    Main game simulation class.

    Orchestrates:
    - Bird physics
    - Pipe track (spawn / cull / scroll)
    - Collision evaluation
    - Scoring
    - Phase transitions and best score recording

    One tick = one display frame. Only a RUNNING game advances; ticks in
    any other phase do nothing.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        seed: Optional[int] = None,
        best_score_store: Optional[BestScoreStore] = None,
        rng: Optional[Any] = None
    ):
        """
        Initialize game.

        Args:
            config: Game configuration. Uses default if None.
            seed: Random seed for reproducible gap sequences.
            best_score_store: Collaborator that persists the best score.
            rng: Explicit random source for the gap generator (tests).
        """
        if config is None:
            config = get_config()

        self._config = config
        self._seed = seed
        # Untouched copy of an injected source; each game draws from a fresh copy
        self._rng_template = copy.deepcopy(rng)
        self._store = best_score_store
        self._listeners: Dict[str, List[Callable[[GameEvent], None]]] = {
            kind: [] for kind in EVENT_KINDS
        }
        self._snapshot_builder = SnapshotBuilder(config)
        self._physics = PhysicsIntegrator(config)
        self._collisions = CollisionEngine(config)

        self._build_state()

    def _build_state(self) -> None:
        """Construct all per-game state from scratch."""
        self._bird = Bird.from_config(self._config)
        self._gaps = GapGenerator(
            self._config,
            seed=self._seed,
            rng=copy.deepcopy(self._rng_template)
        )
        self._track = ObstacleTrack(self._config, self._gaps)
        self._scorer = ScoreTracker()

        self._phase = GamePhase.NOT_STARTED
        self._has_started = False
        self._jump_held = False
        self._tick_count = 0
        self._final_score: Optional[int] = None
        self._best_score: Optional[int] = None
        self._termination_reason = ""

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> GameConfig:
        """Game configuration."""
        return self._config

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def has_started(self) -> bool:
        return self._has_started

    @property
    def is_over(self) -> bool:
        """True if game has ended."""
        return self._phase == GamePhase.OVER

    @property
    def bird(self) -> Bird:
        """The bird. Callers must treat it as read-only."""
        return self._bird

    @property
    def track(self) -> ObstacleTrack:
        return self._track

    @property
    def pipes(self) -> List[Pipe]:
        return self._track.pipes

    @property
    def scroll_offset(self) -> float:
        return self._track.scroll_offset

    @property
    def score(self) -> int:
        """Current score."""
        return self._scorer.score

    @property
    def next_pipe_id(self) -> int:
        return self._scorer.next_pipe_id

    @property
    def tick_count(self) -> int:
        """Number of ticks the game actually advanced."""
        return self._tick_count

    @property
    def final_score(self) -> Optional[int]:
        """Score at game over, or None while playing."""
        return self._final_score

    @property
    def best_score(self) -> Optional[int]:
        """Best score recorded at game over, or None while playing."""
        return self._best_score

    @property
    def termination_reason(self) -> str:
        """What the bird hit, or empty string."""
        return self._termination_reason

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_listener(self, kind: str, callback: Callable[[GameEvent], None]) -> None:
        """Register a callback for an event kind."""
        if kind not in self._listeners:
            raise ValueError(f"Unknown event kind: {kind}")
        self._listeners[kind].append(callback)

    def remove_listener(self, kind: str, callback: Callable[[GameEvent], None]) -> None:
        """Unregister a callback. Unknown callbacks are ignored."""
        callbacks = self._listeners.get(kind, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def _emit(self, kind: str, **kwargs) -> GameEvent:
        event = GameEvent(
            kind=kind,
            tick=self._tick_count,
            score=self._scorer.score,
            phase=self._phase,
            **kwargs
        )
        for callback in list(self._listeners[kind]):
            callback(event)
        return event

    def _set_phase(self, phase: GamePhase) -> None:
        if phase == self._phase:
            return
        logger.info("Phase %s -> %s", self._phase.name, phase.name)
        self._phase = phase
        self._emit(PHASE_CHANGED)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start the game. One-time transition out of NOT_STARTED.

        Returns:
            True if the game was started by this call.
        """
        if self._phase != GamePhase.NOT_STARTED:
            return False
        self._has_started = True
        self._set_phase(GamePhase.RUNNING)
        return True

    def pause(self) -> bool:
        """Pause a running game."""
        if self._phase != GamePhase.RUNNING:
            return False
        self._set_phase(GamePhase.PAUSED)
        return True

    def resume(self) -> bool:
        """Resume a paused game."""
        if self._phase != GamePhase.PAUSED:
            return False
        self._set_phase(GamePhase.RUNNING)
        return True

    def toggle_pause(self) -> bool:
        """
        Flip between RUNNING and PAUSED.

        Ignored before the game has started and after it is over.

        Returns:
            True if the phase changed.
        """
        if self._phase == GamePhase.RUNNING:
            return self.pause()
        if self._phase == GamePhase.PAUSED:
            return self.resume()
        return False

    def jump(self) -> bool:
        """
        Apply the upward impulse.

        A jump before the game started starts it, and a jump while paused
        resumes it; the impulse is applied in both cases.

        Returns:
            True if the impulse was applied.
        """
        if self._phase == GamePhase.OVER:
            return False
        if self._phase == GamePhase.NOT_STARTED:
            self.start()
        elif self._phase == GamePhase.PAUSED:
            self.resume()

        self._physics.jump(self._bird)
        return True

    def press_jump(self) -> bool:
        """
        Jump on a key/button press, ignoring auto-repeat while held.

        Returns:
            True if the press produced an impulse.
        """
        if self._jump_held:
            return False
        self._jump_held = True
        return self.jump()

    def release_jump(self) -> None:
        """Re-arm jumping after the key/button is released."""
        self._jump_held = False

    def restart(self, seed: Optional[int] = None) -> GameSnapshot:
        """
        Rebuild the whole game from scratch.

        Args:
            seed: New random seed. If None, the previous seed or injected
                random source starts over from its original state.

        Returns:
            Initial game snapshot.
        """
        if seed is not None:
            self._seed = seed
            self._rng_template = None
        self._build_state()
        logger.info("Game restarted (seed=%s)", self._seed)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self) -> TickResult:
        """
        Advance the simulation by one frame.

        Order: scroll + spawn/cull, bird physics, collision evaluation,
        score apply, then game over on collision. A pipe cleared on the same
        tick as a collision still counts.

        Returns:
            TickResult describing what happened.
        """
        if self._phase != GamePhase.RUNNING:
            return TickResult(phase=self._phase, ran=False)

        self._tick_count += 1
        result = TickResult(phase=self._phase, ran=True)

        update = self._track.advance(self._config.track.scroll_speed)
        result.spawned = update.spawned
        result.culled = update.culled

        self._physics.tick(self._bird)

        collision = self._collisions.evaluate(
            self._bird.rect,
            self._track,
            self._scorer.next_pipe_id
        )
        self._apply_collision(collision, result)

        result.phase = self._phase
        return result

    def _apply_collision(self, collision: CollisionResult, result: TickResult) -> None:
        """Mutate score and phase from a pure collision evaluation."""
        score_event = self._scorer.apply(collision)
        if score_event is not None:
            result.scored = True
            if score_event.first_pipe:
                result.events.append(self._emit(FIRST_PIPE_CLEARED))

        if collision.collided:
            result.collided = True
            result.events.append(self._game_over(collision.reason))

    def _game_over(self, reason: str) -> GameEvent:
        self._termination_reason = reason
        self._final_score = self._scorer.score
        self._best_score = record_best_score(self._store, self._final_score)
        self._set_phase(GamePhase.OVER)
        logger.info("Game over (%s): score=%d best=%d",
                    reason, self._final_score, self._best_score)
        return self._emit(GAME_OVER, best_score=self._best_score, reason=reason)

    def run_headless(self, policy: Callable[["CoreGame"], bool], max_ticks: int) -> int:
        """
        Drive the game without a display.

        Args:
            policy: Called before every tick; returning True jumps.
            max_ticks: Upper bound on ticks.

        Returns:
            Score when the game ended or the tick budget ran out.
        """
        if self._phase == GamePhase.NOT_STARTED:
            self.start()
        for _ in range(max_ticks):
            if policy(self):
                self.jump()
            if not self.tick().should_continue:
                break
        return self.score

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def snapshot(self) -> GameSnapshot:
        """Build current game state snapshot."""
        return self._snapshot_builder.build(
            bird=self._bird,
            track=self._track,
            phase=int(self._phase),
            tick=self._tick_count,
            score=self._scorer.score,
            next_pipe_id=self._scorer.next_pipe_id
        )

    def get_info(self) -> Dict[str, Any]:
        """Get additional info dict for Gymnasium."""
        return {
            "score": self._scorer.score,
            "phase": self._phase.name,
            "ticks": self._tick_count,
            "next_pipe_id": self._scorer.next_pipe_id,
            "pipes_spawned": self._track.spawn_count,
            "terminated_reason": self._termination_reason,
            "best_score": self._best_score,
        }

    def get_render_data(self) -> Dict[str, Any]:
        """
        Get data needed for rendering.

        Returns:
            Dict with bird, pipes and board info in world pixels.
        """
        bird = self._bird
        return {
            "arena_height": self._config.arena.height,
            "viewport_width": self._config.arena.viewport_width,
            "ceiling": self._config.arena.ceiling,
            "floor": self._config.arena.floor,
            "bird": {
                "x": bird.x,
                "y": bird.y,
                "width": bird.width,
                "height": bird.height,
                "velocity": bird.velocity,
            },
            "pipes": [
                {
                    "id": pipe.id,
                    "x": self._track.x_of(pipe),
                    "gap_top": pipe.gap_top,
                    "gap_height": pipe.gap_height,
                    "width": pipe.width,
                }
                for pipe in self._track.pipes
            ],
            "scroll_offset": self._track.scroll_offset,
            "score": self._scorer.score,
            "phase": self._phase.name,
            "final_score": self._final_score,
            "best_score": self._best_score,
        }
