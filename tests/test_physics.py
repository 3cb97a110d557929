"""
Tests for bird physics and rectangle overlap.
"""

import pytest

from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.physics import Bird, PhysicsIntegrator, Rect


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def physics(config):
    return PhysicsIntegrator(config)


class TestIntegration:
    """Test per-tick Euler integration."""

    def test_velocity_updates_before_position(self, physics):
        """The first tick from rest already moves the bird."""
        bird = Bird(x=0, y=100, width=34, height=24)
        physics.tick(bird)

        assert bird.velocity == pytest.approx(0.2)
        assert bird.y == pytest.approx(100.2)

    def test_jump_replaces_velocity(self, physics):
        """Jump sets velocity to -jump_force regardless of current motion."""
        bird = Bird(x=0, y=100, width=34, height=24, velocity=7.5)
        physics.jump(bird)

        assert bird.velocity == -4.0
        assert bird.y == 100

    def test_jump_then_five_ticks(self, physics):
        """Velocity climbs back towards zero while the bird rises."""
        bird = Bird(x=0, y=0, width=34, height=24)
        physics.jump(bird)
        for _ in range(5):
            physics.tick(bird)

        assert bird.velocity == pytest.approx(-3.0)
        # -17.0: the jump sets velocity without moving the bird
        assert bird.y == pytest.approx(-(3.8 + 3.6 + 3.4 + 3.2 + 3.0))
        assert bird.y == pytest.approx(-17.0)

    def test_no_clamping(self, physics):
        """Leaving the arena is the collision engine's business."""
        bird = Bird(x=0, y=10000, width=34, height=24, velocity=50)
        physics.tick(bird)

        assert bird.y == pytest.approx(10050.2)

    def test_from_config(self, config):
        bird = Bird.from_config(config)

        assert bird.x == config.bird.x
        assert bird.y == config.bird.start_y
        assert bird.velocity == 0.0
        assert bird.rect.bottom == config.bird.start_y + config.bird.height


class TestRectOverlap:
    """Test strict-separation AABB overlap."""

    def test_separated(self):
        a = Rect(0, 0, 10, 10)
        assert not a.overlaps(Rect(11, 0, 20, 10))
        assert not a.overlaps(Rect(0, 11, 10, 20))

    def test_touching_edges_overlap(self):
        """Shared edges are not strict separation."""
        a = Rect(0, 0, 10, 10)
        assert a.overlaps(Rect(10, 0, 20, 10))
        assert a.overlaps(Rect(0, 10, 10, 20))

    def test_contained(self):
        assert Rect(0, 0, 100, 100).overlaps(Rect(40, 40, 60, 60))
