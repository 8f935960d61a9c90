"""Seed management for reproducible worlds.

Object ranges ("2-5") and builder-script randint() draw from a numpy
Generator so a fixed seed rebuilds the same world.
"""

import random
from typing import Optional

import numpy as np


def set_global_seed(seed: int) -> int:
    """Seed the stdlib and numpy global RNGs.

    Args:
        seed: The seed value to use.

    Returns:
        The seed that was set.
    """
    random.seed(seed)
    np.random.seed(seed)
    return seed


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Create the Generator used for world construction.

    Args:
        seed: Seed, or None for fresh OS entropy.
    """
    return np.random.default_rng(seed)


def get_run_seed(base_seed: int, run_idx: int) -> int:
    """Deterministic per-run seed derived from a base seed.

    Args:
        base_seed: The seed for the whole session.
        run_idx: The index of the run (0-based).
    """
    return base_seed + run_idx
