"""
Configuration Loader
====================

Loads and validates game_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import yaml


@dataclass(frozen=True)
class ArenaConfig:
    """Vertical play area and its collision lines."""
    height: float                # Arena height in pixels
    viewport_width: int          # Width of the host viewport
    ceiling: float               # Bird top above this collides (maxAllowedHeight)
    floor: float                 # Bird bottom below this collides (maxAllowedDepth)
    safe_zone_top: float         # No gap may start above this
    safe_zone_bottom: float      # No gap may end within this margin of the arena bottom


@dataclass(frozen=True)
class BirdConfig:
    """Bird placement and bounding box."""
    x: float
    start_y: float
    width: float
    height: float


@dataclass(frozen=True)
class PhysicsConfig:
    """Per-tick integration constants."""
    down_force: float
    jump_force: float


@dataclass(frozen=True)
class TrackConfig:
    """Pipe stream geometry and scroll speed."""
    scroll_speed: float
    pipe_width: float
    pipe_spacing: float
    origin_x: float              # World x at which new pipes appear
    visible_width: float         # Distance behind origin_x after which pipes are culled

    @property
    def spawn_spacing(self) -> float:
        """Scroll distance between two consecutive spawns."""
        return self.pipe_width + self.pipe_spacing


@dataclass(frozen=True)
class GapConfig:
    """Gap random walk parameters."""
    gap_height: float
    max_step: float
    initial_level: float


@dataclass(frozen=True)
class ObservationConfig:
    """Observation array sizes."""
    max_pipes: int


@dataclass(frozen=True)
class CapsConfig:
    """Episode limits for headless runs."""
    max_ticks: int               # 0 disables truncation


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    arena: ArenaConfig
    bird: BirdConfig
    physics: PhysicsConfig
    track: TrackConfig
    gaps: GapConfig
    observation: ObservationConfig
    caps: CapsConfig

    @property
    def lowest_gap_level(self) -> float:
        """Bottom-most legal gap top offset."""
        return self.arena.height - self.gaps.gap_height - self.arena.safe_zone_bottom

    @property
    def highest_gap_level(self) -> float:
        """Top-most legal gap top offset."""
        return self.arena.safe_zone_top


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    positives = {
        "arena.height": config.arena.height,
        "bird.width": config.bird.width,
        "bird.height": config.bird.height,
        "track.scroll_speed": config.track.scroll_speed,
        "track.pipe_width": config.track.pipe_width,
        "gaps.gap_height": config.gaps.gap_height,
        "observation.max_pipes": config.observation.max_pipes,
    }
    for name, value in positives.items():
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")

    if config.track.pipe_spacing < 0:
        raise ValueError(f"track.pipe_spacing must be >= 0, got {config.track.pipe_spacing}")

    if config.gaps.max_step < 0:
        raise ValueError(f"gaps.max_step must be >= 0, got {config.gaps.max_step}")

    if config.arena.ceiling >= config.arena.floor:
        raise ValueError(
            f"arena.ceiling ({config.arena.ceiling}) must be above "
            f"arena.floor ({config.arena.floor})"
        )

    # The safe zones must leave at least one legal gap position
    if config.highest_gap_level > config.lowest_gap_level:
        raise ValueError(
            f"Safe zones leave no room for a gap: top={config.arena.safe_zone_top}, "
            f"bottom={config.arena.safe_zone_bottom}, gap_height={config.gaps.gap_height}, "
            f"arena height={config.arena.height}"
        )

    if config.caps.max_ticks < 0:
        raise ValueError(f"caps.max_ticks must be >= 0, got {config.caps.max_ticks}")


def parse_config(raw: dict) -> GameConfig:
    """
    Build a validated GameConfig from an already-parsed YAML mapping.

    Raises:
        ValueError: If config validation fails.
        KeyError: If a required key is missing.
    """
    arena_data = raw["arena"]
    height = float(arena_data["height"])
    viewport_width = int(arena_data["viewport_width"])
    arena = ArenaConfig(
        height=height,
        viewport_width=viewport_width,
        ceiling=float(arena_data.get("ceiling", 0.0)),
        floor=float(arena_data.get("floor", height)),
        safe_zone_top=float(arena_data["safe_zone_top"]),
        safe_zone_bottom=float(arena_data["safe_zone_bottom"])
    )

    bird_data = raw["bird"]
    bird = BirdConfig(
        x=float(bird_data["x"]),
        start_y=float(bird_data["start_y"]),
        width=float(bird_data["width"]),
        height=float(bird_data["height"])
    )

    physics_data = raw["physics"]
    physics = PhysicsConfig(
        down_force=float(physics_data["down_force"]),
        jump_force=float(physics_data["jump_force"])
    )

    track_data = raw["track"]
    pipe_width = float(track_data["pipe_width"])
    pipe_spacing = float(track_data["pipe_spacing"])
    track = TrackConfig(
        scroll_speed=float(track_data["scroll_speed"]),
        pipe_width=pipe_width,
        pipe_spacing=pipe_spacing,
        origin_x=float(track_data.get("origin_x", viewport_width)),
        visible_width=float(track_data.get(
            "visible_width",
            viewport_width + 2 * (pipe_width + pipe_spacing)
        ))
    )

    gaps_data = raw["gaps"]
    gaps = GapConfig(
        gap_height=float(gaps_data["gap_height"]),
        max_step=float(gaps_data["max_step"]),
        initial_level=float(gaps_data.get("initial_level", arena.safe_zone_top))
    )

    obs_data = raw.get("observation", {})
    observation = ObservationConfig(
        max_pipes=int(obs_data.get("max_pipes", 10))
    )

    caps_data = raw.get("caps", {})
    caps = CapsConfig(
        max_ticks=int(caps_data.get("max_ticks", 0))
    )

    config = GameConfig(
        arena=arena,
        bird=bird,
        physics=physics,
        track=track,
        gaps=gaps,
        observation=observation,
        caps=caps
    )

    _validate_config(config)
    return config


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to a config YAML. If None, uses game_config.yaml
            at the package root.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "game_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    return parse_config(raw)


def load_preset(name: str) -> GameConfig:
    """Load a bundled tuning from the presets directory (e.g. "compact")."""
    path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "presets",
        f"{name}.yaml"
    )
    return load_config(path)


def derive_arena(
    config: GameConfig,
    viewport_width: int,
    viewport_height: int
) -> GameConfig:
    """
    Size the arena from a host viewport.

    The arena takes 70% of the viewport height (never less than 300px),
    a taller arena gets a wider top safe zone, and pipes appear at the
    right edge of the viewport.

    Args:
        config: Base configuration to derive from.
        viewport_width: Host viewport width in pixels.
        viewport_height: Host viewport height in pixels.

    Returns:
        New validated GameConfig.
    """
    height = max(viewport_height * 0.7, 300.0)
    arena = replace(
        config.arena,
        height=height,
        viewport_width=int(viewport_width),
        floor=height,
        safe_zone_top=100.0 if height > 450 else 50.0
    )
    track = replace(
        config.track,
        origin_x=float(viewport_width),
        visible_width=viewport_width + 2 * config.track.spawn_spacing
    )
    derived = replace(config, arena=arena, track=track)
    _validate_config(derived)
    return derived


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
