"""
Tests for pipe spawning, scrolling and culling.
"""

import dataclasses

import pytest

from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.errors import InvariantViolation
from flappy_arena.flappy_core.gap_generator import GapGenerator
from flappy_arena.flappy_core.track import ObstacleTrack


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def track(config):
    return ObstacleTrack(config, GapGenerator(config, seed=1))


class TestSpawning:
    """Test spawn timing at spacing boundaries (spacing = 60 + 150 = 210)."""

    def test_spawn_spacing(self, config):
        assert config.track.spawn_spacing == 210

    def test_no_pipe_before_first_boundary(self, track):
        update = track.advance(100)
        assert update.spawned == []
        assert len(track) == 0

    def test_landing_on_boundary_spawns(self, track):
        track.advance(100)
        update = track.advance(110)

        assert [p.id for p in update.spawned] == [1]
        assert track.distance == 210

    def test_second_pipe_at_second_boundary(self, track):
        track.advance(210)
        assert track.advance(90).spawned == []
        assert [p.id for p in track.advance(120).spawned] == [2]

    def test_large_advance_spawns_several(self, track):
        update = track.advance(650)
        assert [p.id for p in update.spawned] == [1, 2, 3]

    def test_speed_not_dividing_spacing(self, track):
        """Every crossing spawns exactly one pipe, even when never landing on a boundary."""
        spawn_ticks = []
        for tick in range(1, 200):
            if track.advance(4).spawned:
                spawn_ticks.append(tick)

        # 4 * 53 = 212 is the first distance past 210
        assert spawn_ticks[:3] == [53, 105, 158]
        assert track.spawn_count == len(spawn_ticks)

    def test_fractional_speed_spawns_on_time(self, config):
        """0.1 per tick reaches 210 after 2100 ticks despite float drift."""
        slow = dataclasses.replace(config, track=dataclasses.replace(config.track, scroll_speed=0.1))
        track = ObstacleTrack(slow, GapGenerator(slow, seed=1))
        for _ in range(2099):
            track.advance(0.1)
        assert track.spawn_count == 0

        update = track.advance(0.1)
        assert [p.id for p in update.spawned] == [1]

    def test_new_pipe_appears_at_origin(self, config, track):
        pipe = track.advance(210).spawned[0]
        assert track.x_of(pipe) == config.track.origin_x

    def test_ids_increase(self, track):
        for _ in range(300):
            track.advance(7)
        ids = [p.id for p in track.pipes]
        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_gap_from_generator(self, config, track):
        pipe = track.advance(210).spawned[0]
        assert config.arena.safe_zone_top <= pipe.gap_top <= config.lowest_gap_level
        assert pipe.gap_bottom == pipe.gap_top + config.gaps.gap_height


class TestScrolling:
    """Test scroll offset bookkeeping."""

    def test_offset_never_positive(self, track):
        assert track.scroll_offset == 0
        track.advance(3)
        assert track.scroll_offset == -3

    def test_negative_delta_rejected(self, track):
        with pytest.raises(ValueError):
            track.advance(-1)

    def test_pipe_moves_left(self, track):
        pipe = track.advance(210).spawned[0]
        before = track.x_of(pipe)
        track.advance(3)
        assert track.x_of(pipe) == before - 3


class TestCulling:
    """
    Test culling once a pipe's trailing edge leaves the visible window.

    Default geometry: origin 1280, visible width 1700, so the cutoff is
    x = -420. Pipe n trails at 1280 + 210 n + 60 - distance.
    """

    def test_pipe_kept_at_cutoff(self, track):
        track.advance(1970)
        assert 1 in track

    def test_pipe_culled_past_cutoff(self, track):
        track.advance(1970)
        update = track.advance(1)

        assert [p.id for p in update.culled] == [1]
        assert 1 not in track
        assert 2 in track

    def test_culls_all_eligible_oldest_first(self, track):
        update = track.advance(2500)

        assert [p.id for p in update.culled] == [1, 2, 3]
        assert [p.id for p in track.pipes][0] == 4

    def test_live_set_bounded(self, track):
        for _ in range(5000):
            track.advance(3)
        assert len(track) <= 11

    def test_reset(self, track):
        track.advance(1000)
        track.reset()

        assert len(track) == 0
        assert track.distance == 0
        assert track.spawn_count == 0
        assert track.advance(210).spawned[0].id == 1


class TestInvariants:
    """Test invariant checks on the registry."""

    def test_cull_out_of_order_raises(self, track):
        track.advance(1971)
        # Pretend a newer pipe was already culled
        track._last_culled_id = 5
        with pytest.raises(InvariantViolation):
            track.advance(300)

    def test_zero_spacing_butts_pipes(self, config):
        track_cfg = dataclasses.replace(config.track, pipe_spacing=0)
        assert track_cfg.spawn_spacing == config.track.pipe_width
