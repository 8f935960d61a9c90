#!/usr/bin/env python3
"""
Run learner code on a world document.

Builds the world, runs the code through the script host and plays the queued
actions back, once per run. Ranged object counts are redrawn for each run
from a per-run seed, so a solution has to work for every draw.

Usage:
    python scripts/run_world.py --world worlds/carrots.json --code solution.py
    python scripts/run_world.py --world worlds/maze.json --code maze.py --runs 10 --seed 7
"""

import argparse
import os
import sys

import numpy as np
from tqdm import tqdm

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from robogrid.config import RunConfig
from robogrid.builder import load_world
from robogrid.errors import BuilderScriptError, ScriptExecutionError
from robogrid.logging import TraceLogger
from robogrid.session import Session
from robogrid.utils import set_global_seed, make_rng, get_run_seed


def main():
    parser = argparse.ArgumentParser(description="Run learner code on a grid world")
    parser.add_argument("--world", type=str, required=True, help="Path to world JSON document")
    parser.add_argument("--code", type=str, required=True, help="Path to learner Python file")
    parser.add_argument("--config", type=str, default=None, help="Optional YAML run config")
    parser.add_argument("--runs", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--paced", action="store_true",
                        help="Play back at the pace set by think() instead of draining immediately")
    parser.add_argument("--log-dir", type=str, default=None, help="Write JSON run traces here")
    args = parser.parse_args()

    config = RunConfig.from_yaml(args.config) if args.config else RunConfig()
    seed = args.seed if args.seed is not None else config.builder.seed
    if seed is not None:
        set_global_seed(seed)

    with open(args.code, "r") as f:
        code = f.read()

    logger = None
    if args.log_dir is not None:
        config.logging.output_dir = args.log_dir
        logger = TraceLogger.from_config(config)

    world_name = os.path.splitext(os.path.basename(args.world))[0]

    print("=" * 60)
    print(f"World: {args.world}")
    print(f"Code: {args.code}")
    print(f"Runs: {args.runs}")
    print(f"Seed: {seed}")
    print("=" * 60)

    statuses = []
    steps = []
    for run_idx in tqdm(range(args.runs), desc=world_name, disable=args.runs == 1):
        run_seed = get_run_seed(seed, run_idx) if seed is not None else None
        try:
            world = load_world(args.world, config.builder, rng=make_rng(run_seed))
        except BuilderScriptError as e:
            print(f"\nRun {run_idx + 1}: world build failed: {e}")
            if e.statement:
                print(f"  Statement: {e.statement}")
            return 1

        session = Session(world, config=config, logger=logger, world_name=world_name)
        try:
            if args.paced:
                if not session.run(code):
                    print(f"\nRun {run_idx + 1}: {session.status}")
                    return 1
                result = session.wait()
            else:
                result = session.run_sync(code)
                if result is None:
                    print(f"\nRun {run_idx + 1}: {session.status}")
                    return 1
        except ScriptExecutionError as e:
            print(f"\nRun {run_idx + 1}: {e}")
            statuses.append("error")
            steps.append(0)
            continue

        statuses.append(result.status)
        steps.append(result.steps)
        if not result.success:
            print(f"\nRun {run_idx + 1} (seed={run_seed}): {result.status.upper()} - {result.message}")

    # Summary
    n_success = statuses.count("success")
    print("\n" + "=" * 60)
    print("RUN SUMMARY")
    print("=" * 60)
    print(f"Total Runs: {len(statuses)}")
    print(f"Successful: {n_success}")
    print(f"Failed Goal: {statuses.count('fail')}")
    print(f"Errors: {statuses.count('error')}")
    print(f"Success Rate: {n_success / max(1, len(statuses)):.1%}")
    if steps:
        print(f"Average Steps: {np.mean(steps):.1f}")
    print("=" * 60)

    return 0 if n_success == len(statuses) else 1


if __name__ == "__main__":
    sys.exit(main())
