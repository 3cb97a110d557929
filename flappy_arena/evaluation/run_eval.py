"""
Evaluation Harness
==================

Flies an agent through every gap sequence in the seed bank and reports how
far it got: pipes cleared, how long it survived, and what ended each run.

Usage:
    python -m flappy_arena.evaluation.run_eval --agent contestants/baseline_gap_follower
    python -m flappy_arena.evaluation.run_eval --agent my_agent.py --preset compact \\
        --max-ticks 5000 --replays replays/ --score-file scores.json
"""

from __future__ import annotations

import argparse
import importlib.util
import json
import os
import sys
import time
from collections import Counter
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, List, Optional

import numpy as np

from flappy_arena.flappy_core.config_loader import GameConfig, load_config, load_preset
from flappy_arena.flappy_core.env_gym import FlappyEnv
from flappy_arena.flappy_core.persistence import (
    BestScoreStore,
    JsonFileBestScoreStore,
    record_best_score,
)
from flappy_arena.flappy_core.replay_recorder import ReplayRecorder

AgentFn = Callable[[Dict[str, np.ndarray]], int]


@dataclass
class EvalResult:
    """One flight through one seed's gap sequence."""
    seed: int
    final_score: int
    ticks: int
    termination_reason: str      # "ceiling", "floor", "pipe" or "tick_cap"
    first_pipe_tick: Optional[int]
    elapsed_time: float
    actions: Optional[List[int]] = None

    @property
    def crashed(self) -> bool:
        return self.termination_reason != "tick_cap"

    @property
    def pipes_per_kilotick(self) -> float:
        return 1000.0 * self.final_score / self.ticks if self.ticks else 0.0


@dataclass
class EvalSummary:
    """Aggregate over the whole seed bank."""
    results: List[EvalResult]
    total_time: float
    best_score: Optional[int] = None
    reason_counts: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.reason_counts:
            self.reason_counts = dict(Counter(r.termination_reason for r in self.results))

    @property
    def scores(self) -> np.ndarray:
        return np.array([r.final_score for r in self.results], dtype=np.int64)

    @property
    def mean_score(self) -> float:
        return float(np.mean(self.scores))

    @property
    def std_score(self) -> float:
        return float(np.std(self.scores))

    @property
    def median_score(self) -> float:
        return float(np.median(self.scores))

    @property
    def min_score(self) -> int:
        return int(self.scores.min())

    @property
    def max_score(self) -> int:
        return int(self.scores.max())

    @property
    def mean_ticks(self) -> float:
        return float(np.mean([r.ticks for r in self.results]))

    @property
    def pipes_per_kilotick(self) -> float:
        """Pipes cleared per 1000 ticks flown, pooled over all seeds."""
        ticks = sum(r.ticks for r in self.results)
        return 1000.0 * int(self.scores.sum()) / ticks if ticks else 0.0

    @property
    def survival_rate(self) -> float:
        """Fraction of seeds where the bird was still flying at the tick cap."""
        return sum(not r.crashed for r in self.results) / len(self.results)

    def to_dict(self, agent_name: str) -> dict:
        return {
            "agent": agent_name,
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "mean_score": self.mean_score,
            "std_score": self.std_score,
            "median_score": self.median_score,
            "min_score": self.min_score,
            "max_score": self.max_score,
            "mean_ticks": self.mean_ticks,
            "pipes_per_kilotick": self.pipes_per_kilotick,
            "survival_rate": self.survival_rate,
            "reason_counts": self.reason_counts,
            "best_score": self.best_score,
            "total_time": self.total_time,
            "results": [
                {
                    "seed": r.seed,
                    "final_score": r.final_score,
                    "ticks": r.ticks,
                    "termination_reason": r.termination_reason,
                    "first_pipe_tick": r.first_pipe_tick,
                    "elapsed_time": r.elapsed_time,
                }
                for r in self.results
            ],
        }

    def report(self) -> str:
        reasons = ", ".join(f"{k}={v}" for k, v in sorted(self.reason_counts.items()))
        lines = [
            "=" * 50,
            "EVALUATION SUMMARY",
            "=" * 50,
            f"Seeds flown:      {len(self.results)}",
            f"Pipes cleared:    mean {self.mean_score:.2f} (std {self.std_score:.2f}), "
            f"median {self.median_score:.1f}, range {self.min_score}..{self.max_score}",
            f"Ticks survived:   mean {self.mean_ticks:.1f}",
            f"Pipes / 1k ticks: {self.pipes_per_kilotick:.2f}",
            f"Reached tick cap: {self.survival_rate:.0%}",
            f"Ended by:         {reasons}",
        ]
        if self.best_score is not None:
            lines.append(f"Best score ever:  {self.best_score}")
        lines.append(f"Total time:       {self.total_time:.2f}s")
        lines.append("=" * 50)
        return "\n".join(lines)


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Load the evaluation seed bank.

    Args:
        path: Path to seed_bank.json. Uses the bundled bank if None.

    Returns:
        List of seeds.
    """
    if path is None:
        path = os.path.join(os.path.dirname(__file__), "seed_bank.json")

    with open(path, "r") as f:
        return json.load(f)["seeds"]


def load_agent(agent_path: str) -> AgentFn:
    """
    Import an agent and return its act function.

    The module (a directory holding agent.py, or the file itself) must
    define a FlappyAgent class with an act method, or a module-level act.
    When the act function is bound to an agent with a reset(seed) method,
    the harness calls it before every seed.
    """
    agent_path = Path(agent_path)
    agent_file = agent_path / "agent.py" if agent_path.is_dir() else agent_path

    if not agent_file.exists():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    module_spec = importlib.util.spec_from_file_location("agent_module", agent_file)
    if module_spec is None or module_spec.loader is None:
        raise ImportError(f"Failed to load agent module from {agent_file}")

    module = importlib.util.module_from_spec(module_spec)
    sys.modules["agent_module"] = module
    module_spec.loader.exec_module(module)

    if hasattr(module, "FlappyAgent"):
        agent = module.FlappyAgent()
        if not callable(getattr(agent, "act", None)):
            raise AttributeError("FlappyAgent class must have an 'act' method")
        return agent.act

    if callable(getattr(module, "act", None)):
        return module.act

    raise AttributeError(
        "Agent module must have either 'FlappyAgent' class with 'act' method "
        "or standalone 'act' function"
    )


def _reset_agent(agent_fn: AgentFn, seed: int) -> None:
    owner = getattr(agent_fn, "__self__", None)
    reset = getattr(owner, "reset", None)
    if callable(reset):
        reset(seed=seed)


def fly_seed(
    agent_fn: AgentFn,
    seed: int,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    replay_dir: Optional[str] = None,
    agent_name: str = "agent",
    verbose: bool = False
) -> EvalResult:
    """
    Fly one episode on one seed.

    Args:
        agent_fn: Agent's act function (obs) -> 0/1.
        seed: Seed of the gap sequence.
        config: Game configuration. Uses default if None.
        record_actions: Keep the action list on the result.
        replay_dir: Write a replay file for this seed into this directory.
        agent_name: Stored in replay metadata.
        verbose: Print a line per seed.
    """
    recorder = ReplayRecorder(FlappyEnv(config=config), agent_name=agent_name)
    _reset_agent(agent_fn, seed)

    obs, info = recorder.reset(seed=seed)
    first_pipe_tick = None
    start_time = time.time()

    done = False
    while not done:
        obs, _, terminated, truncated, info = recorder.step(int(agent_fn(obs)))
        if first_pipe_tick is None and info["delta_score"] > 0:
            first_pipe_tick = int(info["ticks"])
        done = terminated or truncated

    elapsed = time.time() - start_time
    replay = recorder.get_replay_data()
    if replay_dir is not None:
        recorder.save(directory=replay_dir)
    recorder.close()

    result = EvalResult(
        seed=seed,
        final_score=int(info["score"]),
        ticks=int(info["ticks"]),
        termination_reason=info["terminated_reason"],
        first_pipe_tick=first_pipe_tick,
        elapsed_time=elapsed,
        actions=replay["actions"] if record_actions else None
    )

    if verbose:
        print(f"  Seed {seed}: {result.final_score} pipes in {result.ticks} ticks "
              f"({result.termination_reason}), {elapsed:.2f}s")

    return result


def evaluate_agent(
    agent_fn: AgentFn,
    seeds: Optional[List[int]] = None,
    config: Optional[GameConfig] = None,
    record_actions: bool = False,
    replay_dir: Optional[str] = None,
    best_score_store: Optional[BestScoreStore] = None,
    agent_name: str = "agent",
    verbose: bool = True
) -> EvalSummary:
    """
    Fly the agent through every seed and summarize.

    Args:
        agent_fn: Agent's act function (obs) -> 0/1.
        seeds: Seeds to fly. Uses seed_bank.json if None.
        config: Game configuration. Uses default if None.
        record_actions: Keep per-seed action lists.
        replay_dir: Directory for one replay file per seed.
        best_score_store: If given, the top score of the run is merged into it.
        agent_name: Stored in replay metadata.
        verbose: Print progress and the summary report.
    """
    if seeds is None:
        seeds = load_seed_bank()
    if not seeds:
        raise ValueError("Need at least one seed to evaluate")

    if verbose:
        print(f"Evaluating on {len(seeds)} seeds...")

    total_start = time.time()
    results = [
        fly_seed(agent_fn, seed, config=config, record_actions=record_actions,
                 replay_dir=replay_dir, agent_name=agent_name, verbose=verbose)
        for seed in seeds
    ]
    summary = EvalSummary(results=results, total_time=time.time() - total_start)

    if best_score_store is not None:
        summary.best_score = record_best_score(best_score_store, summary.max_score)

    if verbose:
        print()
        print(summary.report())

    return summary


def save_results(summary: EvalSummary, agent_name: str, output_path: str) -> None:
    """Save evaluation results to JSON."""
    with open(output_path, "w") as f:
        json.dump(summary.to_dict(agent_name), f, indent=2)

    print(f"Results saved to {output_path}")


def main():
    parser = argparse.ArgumentParser(description="Evaluate a Flappy agent")
    parser.add_argument("--agent", type=str, required=True,
                        help="Path to agent directory or agent.py file")
    parser.add_argument("--seeds", type=str, default=None,
                        help="Path to seed bank JSON (uses default if not specified)")
    parser.add_argument("--preset", type=str, default=None,
                        help="Bundled tuning to fly (e.g. compact)")
    parser.add_argument("--max-ticks", type=int, default=None,
                        help="Override the tick cap (0 disables it)")
    parser.add_argument("--output", type=str, default=None,
                        help="Path to save results JSON")
    parser.add_argument("--replays", type=str, default=None,
                        help="Directory to write one replay per seed")
    parser.add_argument("--score-file", type=str, default=None,
                        help="JSON best-score file to merge the top score into")
    parser.add_argument("--quiet", action="store_true",
                        help="Reduce output verbosity")

    args = parser.parse_args()

    print(f"Loading agent from {args.agent}...")
    try:
        agent_fn = load_agent(args.agent)
    except (ImportError, AttributeError, FileNotFoundError) as e:
        print(f"Error loading agent: {e}")
        return 1

    config = load_preset(args.preset) if args.preset else load_config()
    if args.max_ticks is not None:
        config = replace(config, caps=replace(config.caps, max_ticks=args.max_ticks))

    agent_name = Path(args.agent).stem if Path(args.agent).is_file() else Path(args.agent).name
    store = JsonFileBestScoreStore(args.score_file) if args.score_file else None

    summary = evaluate_agent(
        agent_fn,
        seeds=load_seed_bank(args.seeds) if args.seeds else None,
        config=config,
        replay_dir=args.replays,
        best_score_store=store,
        agent_name=agent_name,
        verbose=not args.quiet
    )

    if args.output:
        save_results(summary, agent_name, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
