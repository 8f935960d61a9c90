"""Utility modules for robogrid."""

from .seeds import set_global_seed, make_rng, get_run_seed

__all__ = [
    "set_global_seed",
    "make_rng",
    "get_run_seed",
]
