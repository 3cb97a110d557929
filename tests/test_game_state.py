"""
Tests for the game phase machine, tick orchestration and game over.
"""

import pytest

from flappy_arena.flappy_core.collision import CollisionResult
from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.game import (
    CoreGame,
    GamePhase,
    TickResult,
    FIRST_PIPE_CLEARED,
    GAME_OVER,
    PHASE_CHANGED,
)
from flappy_arena.flappy_core.persistence import InMemoryBestScoreStore


class FailingWriteStore:
    """Store that reads fine but cannot write."""

    def read_best_score(self):
        return 3

    def write_best_score(self, score):
        raise OSError("disk full")


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def game(config):
    return CoreGame(config=config, seed=42)


def fall_to_floor(game):
    """Run without jumping until the game ends."""
    ticks = 0
    while not game.is_over:
        game.tick()
        ticks += 1
    return ticks


class TestPhases:
    """Test phase transitions."""

    def test_initial_phase(self, game):
        assert game.phase == GamePhase.NOT_STARTED
        assert not game.has_started
        assert game.score == 0
        assert game.next_pipe_id == 1

    def test_tick_before_start_is_noop(self, game):
        y = game.bird.y
        result = game.tick()

        assert not result.ran
        assert result.should_continue
        assert game.bird.y == y
        assert game.tick_count == 0

    def test_start(self, game):
        assert game.start()
        assert game.phase == GamePhase.RUNNING
        assert not game.start()

    def test_jump_starts_game(self, game, config):
        assert game.jump()

        assert game.phase == GamePhase.RUNNING
        assert game.has_started
        assert game.bird.velocity == -config.physics.jump_force

    def test_toggle_pause_ignored_before_start(self, game):
        assert not game.toggle_pause()
        assert game.phase == GamePhase.NOT_STARTED

    def test_toggle_pause(self, game):
        game.start()
        assert game.toggle_pause()
        assert game.phase == GamePhase.PAUSED
        assert game.toggle_pause()
        assert game.phase == GamePhase.RUNNING

    def test_paused_tick_is_noop(self, game):
        game.start()
        game.tick()
        game.pause()
        y = game.bird.y
        offset = game.scroll_offset

        assert not game.tick().ran
        assert game.bird.y == y
        assert game.scroll_offset == offset

    def test_jump_resumes(self, game):
        game.start()
        game.pause()

        assert game.jump()
        assert game.phase == GamePhase.RUNNING
        assert game.bird.velocity == -4.0

    def test_over_ignores_commands(self, game):
        game.start()
        fall_to_floor(game)

        assert not game.jump()
        assert not game.toggle_pause()
        assert not game.tick().ran
        assert game.phase == GamePhase.OVER

    def test_phase_changed_events(self, game):
        seen = []
        game.add_listener(PHASE_CHANGED, lambda e: seen.append(e.phase))

        game.jump()
        game.toggle_pause()
        game.toggle_pause()

        assert seen == [GamePhase.RUNNING, GamePhase.PAUSED, GamePhase.RUNNING]

    def test_unknown_event_kind(self, game):
        with pytest.raises(ValueError):
            game.add_listener("no_such_event", lambda e: None)

    def test_remove_listener(self, game):
        seen = []
        callback = seen.append
        game.add_listener(PHASE_CHANGED, callback)
        game.remove_listener(PHASE_CHANGED, callback)
        game.start()
        assert seen == []


class TestJumpGuard:
    """Test one impulse per key press."""

    def test_held_key_jumps_once(self, game):
        assert game.press_jump()
        game.tick()
        assert not game.press_jump()

    def test_release_rearms(self, game):
        game.press_jump()
        game.release_jump()
        assert game.press_jump()


class TestTick:
    """Test the per-frame pipeline."""

    def test_scroll_and_gravity(self, game, config):
        game.start()
        game.tick()

        assert game.scroll_offset == -config.track.scroll_speed
        assert game.bird.velocity == pytest.approx(config.physics.down_force)
        assert game.tick_count == 1

    def test_first_pipe_spawns_at_tick_70(self, game):
        """210 px of spacing at 3 px per tick."""
        game.start()
        for _ in range(69):
            if game.bird.y > 300:
                game.jump()
            game.tick()
        assert game.pipes == []

        result = game.tick()
        assert [p.id for p in result.spawned] == [1]

    def test_falls_to_floor(self, game):
        """y = 200 + 0.1 t (t + 1); bottom passes 560 on tick 58."""
        game.start()
        ticks = fall_to_floor(game)

        assert ticks == 58
        assert game.termination_reason == "floor"
        assert game.final_score == 0

    def test_ceiling(self, game):
        game.start()
        while not game.is_over:
            game.jump()
            game.tick()

        assert game.termination_reason == "ceiling"

    def test_game_over_stops_scheduler(self, game):
        game.start()
        result = None
        while game.phase == GamePhase.RUNNING:
            result = game.tick()

        assert isinstance(result, TickResult)
        assert result.collided
        assert not result.should_continue
        assert [e.kind for e in result.events] == [GAME_OVER]

    def test_score_and_collision_same_tick(self, game):
        """A pipe cleared on the fatal tick still counts."""
        kinds = []
        game.add_listener(FIRST_PIPE_CLEARED, lambda e: kinds.append(e.kind))
        game.add_listener(GAME_OVER, lambda e: kinds.append(e.kind))
        game.start()

        result = TickResult(phase=game.phase, ran=True)
        game._apply_collision(
            CollisionResult(True, True, 2, first_pipe_cleared=True, reason="pipe"),
            result
        )

        assert game.score == 1
        assert game.final_score == 1
        assert game.phase == GamePhase.OVER
        assert kinds == [FIRST_PIPE_CLEARED, GAME_OVER]


class TestBestScore:
    """Test best score recording at game over."""

    def test_without_store(self, game):
        game.start()
        fall_to_floor(game)
        assert game.best_score == 0

    def test_previous_best_kept(self, config):
        store = InMemoryBestScoreStore(initial=5)
        game = CoreGame(config=config, seed=1, best_score_store=store)
        events = []
        game.add_listener(GAME_OVER, events.append)

        game.start()
        fall_to_floor(game)

        assert game.best_score == 5
        assert store.read_best_score() == 5
        assert events[0].best_score == 5
        assert events[0].score == 0

    def test_write_failure_still_ends_game(self, config):
        store = FailingWriteStore()
        game = CoreGame(config=config, seed=1, best_score_store=store)
        events = []
        game.add_listener(GAME_OVER, events.append)

        game.start()
        game.bird.y = -50
        game.tick()

        assert game.phase == GamePhase.OVER
        assert game.final_score == 0
        assert game.best_score == 3
        assert len(events) == 1

    def test_new_best_written(self, config):
        store = InMemoryBestScoreStore(initial=0)
        game = CoreGame(config=config, seed=1, best_score_store=store)
        game.start()

        game._apply_collision(
            CollisionResult(True, True, 2, first_pipe_cleared=True, reason="pipe"),
            TickResult(phase=game.phase, ran=True)
        )

        assert store.read_best_score() == 1
        assert game.best_score == 1


class TestRestart:
    """Test full reconstruction."""

    def test_restart_resets_everything(self, game, config):
        game.start()
        for _ in range(100):
            game.tick()
        snapshot = game.restart()

        assert game.phase == GamePhase.NOT_STARTED
        assert game.score == 0
        assert game.pipes == []
        assert game.scroll_offset == 0
        assert game.tick_count == 0
        assert game.final_score is None
        assert snapshot.bird_y == config.bird.start_y

    def test_restart_after_game_over(self, game):
        game.start()
        fall_to_floor(game)
        game.restart()

        assert game.jump()
        assert game.phase == GamePhase.RUNNING
        assert game.termination_reason == ""

    def test_listeners_survive_restart(self, game):
        seen = []
        game.add_listener(PHASE_CHANGED, seen.append)
        game.restart()
        game.start()
        assert len(seen) == 1


class TestDeterminism:
    """Test seeded reproducibility of whole games."""

    @staticmethod
    def hover(game):
        return game.bird.y > 300

    def test_same_seed_same_game(self, config):
        a = CoreGame(config=config, seed=99)
        b = CoreGame(config=config, seed=99)

        score_a = a.run_headless(self.hover, 1500)
        score_b = b.run_headless(self.hover, 1500)

        assert score_a == score_b
        assert a.tick_count == b.tick_count
        assert [p.gap_top for p in a.pipes] == [p.gap_top for p in b.pipes]

    def test_restart_with_seed_reproduces(self, config):
        game = CoreGame(config=config, seed=5)
        game.run_headless(self.hover, 800)
        first = [p.gap_top for p in game.pipes]

        game.restart(seed=5)
        game.run_headless(self.hover, 800)
        assert [p.gap_top for p in game.pipes] == first

    def test_restart_with_injected_rng_reproduces(self, config):
        """An injected random source restarts from its original state."""
        class CountingRandom:
            def __init__(self):
                self.calls = 0

            def random(self):
                self.calls += 1
                return (self.calls * 0.37) % 1.0

        game = CoreGame(config=config, rng=CountingRandom())
        game.run_headless(self.hover, 800)
        first = [p.gap_top for p in game.pipes]
        assert len(first) >= 2

        game.restart()
        game.run_headless(self.hover, 800)
        assert [p.gap_top for p in game.pipes] == first
