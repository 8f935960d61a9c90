"""Known object and background tile identifiers."""

import re
from typing import Optional

OBJECT_KINDS = frozenset([
    "token",
    "carrot",
    "apple",
    "banana",
    "leaf",
    "dandelion",
])

TILE_KINDS = frozenset([
    "grass",
    "pale_grass",
    "ice",
    "mud",
    "water",
    "gravel",
    "bricks",
])

# Tile used when a world does not fill its background
DEFAULT_TILE = "bricks"

# Misspellings found in published worlds
TILE_ALIASES = {
    "brics": "bricks",
    "brick": "bricks",
    "palegrass": "pale_grass",
    "pale_grn": "pale_grass",
}

_SEPARATORS = re.compile(r"[\s\-]+")


def is_object_kind(value) -> bool:
    return isinstance(value, str) and value in OBJECT_KINDS


def is_tile_kind(value) -> bool:
    return isinstance(value, str) and value in TILE_KINDS


def normalize_tile_name(name) -> Optional[str]:
    """Lower-case, map spaces/dashes to underscores and resolve aliases.

    Returns:
        A known tile kind, or None.
    """
    if name is None:
        return None
    norm = _SEPARATORS.sub("_", str(name).strip().lower())
    if is_tile_kind(norm):
        return norm
    alias = TILE_ALIASES.get(norm)
    return alias if is_tile_kind(alias) else None
