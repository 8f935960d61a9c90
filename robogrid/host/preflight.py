"""Preflight checks on learner code.

Catches the most common beginner mistake before anything runs: naming a
primitive without calling it (``move`` instead of ``move()``).
"""

import re
from typing import List, Tuple

PRIMITIVE_NAMES = [
    "move",
    "turn_left",
    "put",
    "take",
    "wall_in_front",
    "wall_on_right",
    "object_here",
    "at_goal",
    "done",
    "build_wall",
]

_QUOTED = re.compile(r"(['\"]).*?\1")
_BARE_PATTERNS = [(name, re.compile(rf"\b{name}\b(?!\s*\()")) for name in PRIMITIVE_NAMES]


def validate_script_actions(code: str) -> Tuple[bool, List[str]]:
    """Find primitives used without parentheses.

    Comments and simple quoted strings are ignored.

    Args:
        code: Learner source code.

    Returns:
        Tuple of (ok, errors) where each error reads like
        'Line 3: "move" should be "move()"'.
    """
    errors = []
    for i, raw in enumerate(code.split("\n")):
        without_comment = raw.split("#")[0]
        stripped = _QUOTED.sub("", without_comment)
        for name, pattern in _BARE_PATTERNS:
            if pattern.search(stripped):
                errors.append(f'Line {i + 1}: "{name}" should be "{name}()"')
    return len(errors) == 0, errors
