"""
Tests for episode recording and deterministic replay.
"""

import dataclasses
import json

import pytest

from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.env_gym import FlappyEnv
from flappy_arena.flappy_core.replay_recorder import (
    ReplayRecorder,
    compute_config_hash,
    generate_replay_filename,
    load_replay,
    record_episode,
    replay_actions,
)


@pytest.fixture
def config():
    base = load_config()
    return dataclasses.replace(base, caps=dataclasses.replace(base.caps, max_ticks=300))


def hover_agent(obs):
    return int(float(obs["bird_y"]) > 300)


class TestRecorder:
    """Test recording through the env wrapper."""

    def test_records_actions(self, config):
        with ReplayRecorder(FlappyEnv(config=config), agent_name="hover") as recorder:
            obs, _ = recorder.reset(seed=3)
            done = False
            while not done:
                obs, _, terminated, truncated, _ = recorder.step(hover_agent(obs))
                done = terminated or truncated

            data = recorder.get_replay_data()

        assert data["seed"] == 3
        assert data["agent"] == "hover"
        assert data["total_steps"] == len(data["actions"]) == 300
        assert data["termination_reason"] == "tick_cap"
        assert set(data["actions"]) == {0, 1}

    def test_save_and_load(self, config, tmp_path):
        path = tmp_path / "replays" / "run.json"
        data = record_episode(FlappyEnv(config=config), hover_agent, seed=4, save_path=str(path))

        loaded = load_replay(path)
        assert loaded == json.loads(json.dumps(data))

    def test_no_overwrite(self, config, tmp_path):
        path = tmp_path / "run.json"
        path.write_text("{}")
        recorder = ReplayRecorder(FlappyEnv(config=config))
        recorder.reset(seed=1)

        with pytest.raises(FileExistsError):
            recorder.save(path, overwrite=False)

    def test_auto_save(self, config, tmp_path):
        path = tmp_path / "auto.json"
        recorder = ReplayRecorder(FlappyEnv(config=config), auto_save_path=str(path))
        recorder.reset(seed=1)
        done = False
        while not done:
            _, _, terminated, truncated, _ = recorder.step(0)
            done = terminated or truncated

        assert load_replay(path)["termination_reason"] == "floor"


class TestReplay:
    """Test deterministic playback."""

    def test_replay_reproduces_score(self, config):
        data = record_episode(FlappyEnv(config=config), hover_agent, seed=8)
        assert replay_actions(FlappyEnv(config=config), data) == data["final_score"]

    def test_config_mismatch(self, config):
        data = record_episode(FlappyEnv(config=config), hover_agent, seed=8)
        stronger = dataclasses.replace(config, physics=dataclasses.replace(config.physics, jump_force=5.0))

        with pytest.raises(ValueError):
            replay_actions(FlappyEnv(config=stronger), data)

    def test_hash_stable(self, config):
        assert compute_config_hash(config) == compute_config_hash(config)
        assert len(compute_config_hash(config)) == 8

    def test_filename(self, tmp_path):
        path = generate_replay_filename("hover", seed=5, directory=tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("hover_")
        assert path.name.endswith("_s5.json")
