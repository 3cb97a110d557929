"""
Tests for collision evaluation and score application.
"""

import pytest

from flappy_arena.flappy_core.collision import CollisionEngine, CollisionResult
from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.errors import InvariantViolation
from flappy_arena.flappy_core.gap_generator import GapGenerator
from flappy_arena.flappy_core.physics import Bird
from flappy_arena.flappy_core.scoring import ScoreTracker
from flappy_arena.flappy_core.track import ObstacleTrack


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def engine(config):
    return CollisionEngine(config)


@pytest.fixture
def track(config):
    """
    Track whose first pipe has its gap at 100..190.

    Pipe 1 left edge is 1490 - distance; the bird spans x 120..154.
    """
    return ObstacleTrack(config, GapGenerator(config, rng=FixedRandom(0.5)))


def bird_at(y):
    return Bird(x=120, y=y, width=34, height=24).rect


class TestBounds:
    """Test ceiling and floor checks."""

    def test_ceiling_without_pipes(self, engine, track):
        result = engine.evaluate(bird_at(-1), track, 1)

        assert result.collided
        assert result.reason == "ceiling"
        assert not result.scored

    def test_floor(self, engine, track):
        result = engine.evaluate(bird_at(537), track, 1)

        assert result.collided
        assert result.reason == "floor"

    def test_resting_on_floor_is_fine(self, engine, track):
        """Bottom exactly on the floor line is still inside."""
        assert not engine.evaluate(bird_at(536), track, 1).collided

    def test_free_flight(self, engine, track):
        result = engine.evaluate(bird_at(200), track, 1)
        assert result == CollisionResult.clear(1)


class TestPipes:
    """Test pipe overlap and clearing."""

    def test_inside_gap(self, engine, track):
        track.advance(1400)
        result = engine.evaluate(bird_at(120), track, 1)

        assert not result.collided
        assert not result.scored
        assert result.next_pipe_id == 1

    def test_hits_upper(self, engine, track):
        track.advance(1400)
        result = engine.evaluate(bird_at(50), track, 1)

        assert result.collided
        assert result.reason == "pipe"

    def test_hits_lower(self, engine, track):
        track.advance(1400)
        assert engine.evaluate(bird_at(180), track, 1).collided

    def test_touching_gap_edge_collides(self, engine, track):
        """Bird top exactly on the upper barrier's bottom edge."""
        track.advance(1400)
        assert engine.evaluate(bird_at(100), track, 1).collided

    def test_only_next_pipe_checked(self, engine, track):
        """A pipe that isn't next is ignored even when overlapping."""
        track.advance(1400)
        assert not engine.evaluate(bird_at(50), track, 2).collided

    def test_clear_scores(self, engine, track):
        # Upper right edge = 1550 - 1431 = 119 < 120
        track.advance(1431)
        result = engine.evaluate(bird_at(120), track, 1)

        assert result.scored
        assert not result.collided
        assert result.next_pipe_id == 2
        assert result.first_pipe_cleared

    def test_touching_trailing_edge_not_cleared(self, engine, track):
        track.advance(1430)
        assert not engine.evaluate(bird_at(120), track, 1).scored

    def test_boundary_short_circuits_scoring(self, engine, track):
        track.advance(1431)
        result = engine.evaluate(bird_at(-5), track, 1)

        assert result.collided
        assert not result.scored
        assert result.next_pipe_id == 1

    def test_evaluate_is_pure(self, engine, track):
        track.advance(1431)
        engine.evaluate(bird_at(120), track, 1)
        again = engine.evaluate(bird_at(120), track, 1)

        assert again.next_pipe_id == 2
        assert 1 in track


class TestScoreTracker:
    """Test applying results to the score."""

    def test_initial(self):
        scorer = ScoreTracker()
        assert scorer.next_pipe_id == 1
        assert scorer.score == 0

    def test_apply_score(self):
        scorer = ScoreTracker()
        event = scorer.apply(CollisionResult(False, True, 2, first_pipe_cleared=True))

        assert scorer.score == 1
        assert event.pipe_id == 1
        assert event.first_pipe

    def test_apply_nothing(self):
        scorer = ScoreTracker()
        assert scorer.apply(CollisionResult.clear(1)) is None
        assert scorer.score == 0

    def test_score_and_collision_together(self):
        """The point is kept; ending the game is the caller's decision."""
        scorer = ScoreTracker()
        event = scorer.apply(CollisionResult(True, True, 2, reason="pipe"))

        assert event is not None
        assert scorer.score == 1

    def test_skipping_a_pipe_raises(self):
        scorer = ScoreTracker()
        with pytest.raises(InvariantViolation):
            scorer.apply(CollisionResult(False, True, 3))

    def test_decrease_raises(self):
        scorer = ScoreTracker()
        scorer.apply(CollisionResult(False, True, 2))
        with pytest.raises(InvariantViolation):
            scorer.apply(CollisionResult(False, False, 1))

    def test_reset(self):
        scorer = ScoreTracker()
        scorer.apply(CollisionResult(False, True, 2))
        scorer.reset()
        assert scorer.score == 0
