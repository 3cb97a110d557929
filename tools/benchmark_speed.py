"""
Performance Benchmark
=====================

Measures simulation and environment step throughput.

Usage:
    python -m tools.benchmark_speed [--envs N ...] [--steps S]
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import List
import numpy as np

from flappy_arena.flappy_core.config_loader import load_config
from flappy_arena.flappy_core.game import CoreGame
from flappy_arena.flappy_core.env_gym import FlappyEnv
from flappy_arena.flappy_core.vector_env import FlappyVectorEnv

# Random flapping rate; jumping every frame would just hit the ceiling
JUMP_PROBABILITY = 0.08


def benchmark_core_game(num_steps: int = 1000, seed: int = 42) -> dict:
    """
    Benchmark raw CoreGame ticks without Gym overhead.

    Returns:
        Dict with timing results.
    """
    game = CoreGame(config=load_config(), seed=seed)
    rng = np.random.default_rng(seed)

    game.start()
    start = time.perf_counter()

    for _ in range(num_steps):
        if rng.random() < JUMP_PROBABILITY:
            game.jump()
        if not game.tick().should_continue:
            game.restart()
            game.start()

    elapsed = time.perf_counter() - start

    return {
        "mode": "core_game",
        "num_envs": 1,
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_single_env(num_steps: int = 1000, seed: int = 42) -> dict:
    """
    Benchmark single Gymnasium environment performance.

    Returns:
        Dict with timing results.
    """
    env = FlappyEnv()
    rng = np.random.default_rng(seed)

    env.reset(seed=seed)
    start = time.perf_counter()

    for _ in range(num_steps):
        action = int(rng.random() < JUMP_PROBABILITY)
        _, _, terminated, truncated, _ = env.step(action)
        if terminated or truncated:
            env.reset()

    elapsed = time.perf_counter() - start
    env.close()

    return {
        "mode": "single",
        "num_envs": 1,
        "num_steps": num_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": num_steps / elapsed,
        "ms_per_step": (elapsed * 1000) / num_steps
    }


def benchmark_vector_env(num_envs: int = 16, num_steps: int = 1000, seed: int = 42) -> dict:
    """
    Benchmark vectorized environment performance.

    Returns:
        Dict with timing results.
    """
    vec_env = FlappyVectorEnv(num_envs=num_envs, seed=seed)
    rng = np.random.default_rng(seed)

    vec_env.reset()
    start = time.perf_counter()

    total_steps = 0
    for _ in range(num_steps):
        actions = (rng.random(num_envs) < JUMP_PROBABILITY).astype(np.int64)
        _, _, terminateds, truncateds, _ = vec_env.step(actions)
        total_steps += num_envs

        done = np.where(terminateds | truncateds)[0].tolist()
        if done:
            vec_env.reset(env_indices=done)

    elapsed = time.perf_counter() - start
    vec_env.close()

    return {
        "mode": "vector",
        "num_envs": num_envs,
        "num_steps": num_steps,
        "total_env_steps": total_steps,
        "elapsed_seconds": elapsed,
        "steps_per_second": total_steps / elapsed,
        "batch_steps_per_second": num_steps / elapsed,
        "ms_per_batch": (elapsed * 1000) / num_steps
    }


def run_all_benchmarks(vector_env_sizes: List[int], steps: int = 500) -> list:
    """Run comprehensive benchmarks."""
    results = []

    print("=" * 60)
    print("FLAPPY ARENA PERFORMANCE BENCHMARK")
    print("=" * 60)
    print()

    print("Benchmarking CoreGame (raw)...")
    result = benchmark_core_game(num_steps=steps)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print()

    print("Benchmarking FlappyEnv (single)...")
    result = benchmark_single_env(num_steps=steps)
    results.append(result)
    print(f"  Steps/sec: {result['steps_per_second']:.1f}")
    print(f"  ms/step:   {result['ms_per_step']:.3f}")
    print()

    for num_envs in vector_env_sizes:
        print(f"Benchmarking FlappyVectorEnv (n={num_envs})...")
        result = benchmark_vector_env(num_envs=num_envs, num_steps=steps)
        results.append(result)
        print(f"  Env steps/sec: {result['steps_per_second']:.1f}")
        print(f"  Batch steps/sec: {result['batch_steps_per_second']:.1f}")
        print(f"  ms/batch:   {result['ms_per_batch']:.3f}")
        print()

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print()
    print(f"{'Mode':<20} {'Envs':>6} {'Steps/s':>12} {'ms/step':>10}")
    print("-" * 50)

    for r in results:
        ms = r["ms_per_step"] if "ms_per_step" in r else r["ms_per_batch"]
        print(f"{r['mode']:<20} {r['num_envs']:>6} {r['steps_per_second']:>12.1f} {ms:>10.3f}")

    return results


def main():
    parser = argparse.ArgumentParser(description="Benchmark Flappy Arena performance")
    parser.add_argument("--steps", type=int, default=500, help="Steps per benchmark")
    parser.add_argument("--envs", type=int, nargs="+", default=[1, 4, 16, 64],
                        help="Vector env sizes to test")
    parser.add_argument("--quick", action="store_true", help="Quick benchmark (fewer steps)")

    args = parser.parse_args()

    steps = 100 if args.quick else args.steps
    run_all_benchmarks(vector_env_sizes=args.envs, steps=steps)

    return 0


if __name__ == "__main__":
    sys.exit(main())
