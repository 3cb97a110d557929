"""
Tests for configuration loading, validation and arena derivation.
"""

import copy

import pytest
import yaml

from flappy_arena.flappy_core.config_loader import (
    derive_arena,
    load_config,
    load_preset,
    parse_config,
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def raw():
    return {
        "arena": {"height": 560, "viewport_width": 1280,
                  "safe_zone_top": 100, "safe_zone_bottom": 50},
        "bird": {"x": 120, "start_y": 200, "width": 34, "height": 24},
        "physics": {"down_force": 0.2, "jump_force": 4.0},
        "track": {"scroll_speed": 3, "pipe_width": 60, "pipe_spacing": 150},
        "gaps": {"gap_height": 90, "max_step": 100, "initial_level": 80},
    }


class TestLoading:
    """Test the bundled config files."""

    def test_default(self, config):
        assert config.arena.height == 560
        assert config.physics.down_force == 0.2
        assert config.physics.jump_force == 4.0
        assert config.track.spawn_spacing == 210
        assert config.lowest_gap_level == 420

    def test_derived_track_defaults(self, config):
        assert config.track.origin_x == 1280
        assert config.track.visible_width == 1280 + 2 * 210

    def test_compact_preset(self):
        compact = load_preset("compact")
        assert compact.arena.height == 300
        assert compact.arena.safe_zone_top == 50
        assert compact.track.scroll_speed == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_yaml_file(self, tmp_path, raw):
        path = tmp_path / "custom.yaml"
        path.write_text(yaml.safe_dump(raw))

        custom = load_config(str(path))
        assert custom.arena.floor == 560
        assert custom.arena.ceiling == 0
        assert custom.observation.max_pipes == 10
        assert custom.caps.max_ticks == 0

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            load_config(str(path))


class TestValidation:
    """Test rejection of inconsistent tunings."""

    def test_valid(self, raw):
        assert parse_config(raw).gaps.max_step == 100

    def test_safe_zones_leave_no_gap(self, raw):
        bad = copy.deepcopy(raw)
        bad["arena"]["safe_zone_top"] = 450
        with pytest.raises(ValueError):
            parse_config(bad)

    def test_negative_max_step(self, raw):
        bad = copy.deepcopy(raw)
        bad["gaps"]["max_step"] = -1
        with pytest.raises(ValueError):
            parse_config(bad)

    def test_ceiling_below_floor(self, raw):
        bad = copy.deepcopy(raw)
        bad["arena"]["ceiling"] = 600
        with pytest.raises(ValueError):
            parse_config(bad)

    def test_non_positive_speed(self, raw):
        bad = copy.deepcopy(raw)
        bad["track"]["scroll_speed"] = 0
        with pytest.raises(ValueError):
            parse_config(bad)

    def test_missing_section(self, raw):
        bad = copy.deepcopy(raw)
        del bad["physics"]
        with pytest.raises(KeyError):
            parse_config(bad)


class TestDeriveArena:
    """Test sizing the arena from a viewport."""

    def test_tall_viewport(self, config):
        derived = derive_arena(config, 1024, 900)

        assert derived.arena.height == pytest.approx(630)
        assert derived.arena.floor == pytest.approx(630)
        assert derived.arena.safe_zone_top == 100
        assert derived.track.origin_x == 1024
        assert derived.track.visible_width == 1024 + 2 * 210

    def test_short_viewport_uses_minimum(self, config):
        derived = derive_arena(config, 480, 320)

        assert derived.arena.height == 300
        assert derived.arena.safe_zone_top == 50

    def test_safe_zone_threshold(self, config):
        """The wide top safe zone needs an arena taller than 450."""
        assert derive_arena(config, 800, 640).arena.safe_zone_top == 50
        assert derive_arena(config, 800, 650).arena.safe_zone_top == 100

    def test_original_untouched(self, config):
        derive_arena(config, 480, 320)
        assert config.arena.height == 560
