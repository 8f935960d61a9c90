"""World builder module for robogrid.

Builds initial worlds from JSON documents and builder scripts.
"""

from .kinds import OBJECT_KINDS, TILE_KINDS, DEFAULT_TILE, is_object_kind, normalize_tile_name
from .onload import OnloadInterpreter, apply_onload
from .loader import build_world, load_world, reveal_objects, rerandomize

__all__ = [
    "OBJECT_KINDS",
    "TILE_KINDS",
    "DEFAULT_TILE",
    "is_object_kind",
    "normalize_tile_name",
    "OnloadInterpreter",
    "apply_onload",
    "build_world",
    "load_world",
    "reveal_objects",
    "rerandomize",
]
