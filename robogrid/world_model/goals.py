"""Task goal representation.

A goal is a declarative success condition over final object placement, walls
and the robot position. Every field is optional; an absent field (or an
absent goal) is vacuously satisfied.
"""

import copy
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .state import WALL_TEXT_TO_DIR, World, coord_key, normalize_orientation, parse_coord


@dataclass
class Goal:
    """Explicit representation of a world goal.

    Example:
        Goal(
            objects={"9,1": {"carrot": "all"}, "10,1": {}},
            walls={"7,3": ["east", "north"]},
            position={"x": 5, "y": 5, "orientation": "N"},
        )

    - objects: "x,y" -> {kind: count | "all"}; {} means the cell must be empty
    - walls: "x,y" -> wall directions that must exist
    - position: exact final position, orientation optional
    - possible_final_positions: [x, y] or [x, y, orientation] entries
    """

    objects: Optional[Dict[str, Dict[str, Any]]] = None
    walls: Optional[Dict[str, List[str]]] = None
    position: Optional[Dict[str, Any]] = None
    possible_final_positions: Optional[List[List[Any]]] = None

    def is_satisfied(self, world: World) -> bool:
        """Check if goal is satisfied by the given world."""
        return evaluate_goal(world, self)

    def copy(self) -> "Goal":
        return Goal(
            objects=copy.deepcopy(self.objects),
            walls=copy.deepcopy(self.walls),
            position=copy.deepcopy(self.position),
            possible_final_positions=copy.deepcopy(self.possible_final_positions),
        )

    def to_dict(self) -> dict:
        """Serialize, omitting absent fields."""
        d = {}
        if self.objects is not None:
            d["objects"] = copy.deepcopy(self.objects)
        if self.walls is not None:
            d["walls"] = copy.deepcopy(self.walls)
        if self.position is not None:
            d["position"] = copy.deepcopy(self.position)
        if self.possible_final_positions is not None:
            d["possible_final_positions"] = copy.deepcopy(self.possible_final_positions)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Goal":
        goal = parse_goal(d)
        return goal if goal is not None else cls()


def _warn(msg: str, *args):
    print(f"[Goal] {msg}", *args)


def _clean_objects(raw_objects: Dict[Any, Any]) -> Dict[str, Dict[str, Any]]:
    """Requirement values that are not mappings are read as {} (cell must be empty)."""
    out: Dict[str, Dict[str, Any]] = {}
    for coord, req in raw_objects.items():
        if isinstance(req, dict):
            out[str(coord)] = copy.deepcopy(req)
        else:
            _warn(f"Object requirement at {coord} is not a mapping, treated as empty:", req)
            out[str(coord)] = {}
    return out


def _clean_walls(raw_walls: Dict[Any, Any]) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for coord, dirs in raw_walls.items():
        if not isinstance(dirs, list):
            _warn(f"Wall requirement at {coord} is not a list, skipped:", dirs)
            continue
        out[str(coord)] = [d for d in dirs if isinstance(d, str)]
    return out


def parse_goal(raw: Any) -> Optional[Goal]:
    """Leniently parse a goal block from a world document.

    Fields of the wrong shape are dropped, and an object requirement that is
    not a mapping becomes {}. Anything that is not a mapping yields None,
    which means "always satisfied".
    """
    if not raw or not isinstance(raw, dict):
        return None
    goal = Goal()
    if isinstance(raw.get("objects"), dict):
        goal.objects = _clean_objects(raw["objects"])
    if isinstance(raw.get("walls"), dict):
        goal.walls = _clean_walls(raw["walls"])
    if isinstance(raw.get("possible_final_positions"), list):
        goal.possible_final_positions = copy.deepcopy(raw["possible_final_positions"])
    if isinstance(raw.get("position"), dict):
        goal.position = copy.deepcopy(raw["position"])
    return goal


def merge_goals(a: Optional[Goal], b: Optional[Goal]) -> Optional[Goal]:
    """Combine two goals; ``b`` wins on per-kind/per-key conflicts.

    Object requirements merge per coordinate, wall lists are unioned,
    position dicts are overlaid and final-position lists concatenated.
    """
    if a is None and b is None:
        return None
    if a is None:
        return b.copy()
    if b is None:
        return a.copy()

    out = Goal()
    if a.objects is not None or b.objects is not None:
        out.objects = copy.deepcopy(a.objects or {})
        for coord, req in (b.objects or {}).items():
            prev = out.objects.get(coord)
            merged = dict(prev) if isinstance(prev, dict) else {}
            if isinstance(req, dict):
                merged.update(req)
            out.objects[coord] = merged
    if a.walls is not None or b.walls is not None:
        out.walls = copy.deepcopy(a.walls or {})
        for coord, dirs in (b.walls or {}).items():
            prev = list(out.walls.get(coord) or [])
            for d in dirs or []:
                if d not in prev:
                    prev.append(d)
            out.walls[coord] = prev
    if a.position is not None or b.position is not None:
        out.position = {**(a.position or {}), **(b.position or {})}
    if a.possible_final_positions is not None or b.possible_final_positions is not None:
        out.possible_final_positions = (
            copy.deepcopy(a.possible_final_positions or [])
            + copy.deepcopy(b.possible_final_positions or [])
        )
    return out


# ----------------------------------------------------------------------
# Evaluation
# ----------------------------------------------------------------------

_DIGITS = re.compile(r"^\d+$")


def _observed_snapshot(world: World) -> Dict[str, Dict[str, int]]:
    """coord -> kind -> positive count."""
    observed: Dict[str, Dict[str, int]] = {}
    for o in world.objects:
        if o.count <= 0:
            continue
        kinds = observed.setdefault(coord_key(o.x, o.y), {})
        kinds[o.kind] = kinds.get(o.kind, 0) + o.count
    return observed


def _expected_snapshot(goal_objects: Dict[str, Dict[str, Any]], world: World) -> Dict[str, Dict[str, float]]:
    """coord -> kind -> required count. Unresolvable requirements become NaN."""
    totals = world.total_by_kind()
    expected: Dict[str, Dict[str, float]] = {}
    for coord, req in goal_objects.items():
        # {} is an emptiness requirement, checked separately
        if not req:
            continue
        kinds: Dict[str, float] = {}
        for kind, val in req.items():
            if isinstance(val, bool):
                kinds[kind] = math.nan
            elif isinstance(val, (int, float)):
                kinds[kind] = val
            elif isinstance(val, str):
                v = val.strip().lower()
                if _DIGITS.match(v):
                    kinds[kind] = int(v)
                elif v == "all":
                    kinds[kind] = totals.get(kind, 0)
                else:
                    kinds[kind] = math.nan
            else:
                kinds[kind] = math.nan
        expected[coord] = kinds
    return expected


def _check_objects(world: World, goal_objects: Dict[str, Dict[str, Any]]) -> Tuple[bool, str]:
    goal_objects = {k: (v if isinstance(v, dict) else {}) for k, v in goal_objects.items()}
    observed = _observed_snapshot(world)
    expected = _expected_snapshot(goal_objects, world)

    # Occupied cells must be named by the goal, and not as {}
    for coord in observed:
        if coord not in goal_objects:
            return False, f"Unexpected objects at {coord}"
        if not goal_objects[coord]:
            return False, f"{coord} should be empty"

    for coord, required in expected.items():
        have_kinds = observed.get(coord, {})
        for kind in have_kinds:
            if kind not in required:
                return False, f"Unexpected '{kind}' at {coord}"
        for kind, need in required.items():
            have = have_kinds.get(kind, 0)
            if not math.isfinite(need) or have != need:
                return False, f"Expected {goal_objects[coord][kind]} '{kind}' at {coord}, found {have}"

    for coord, req in goal_objects.items():
        if not req and sum(observed.get(coord, {}).values()) > 0:
            return False, f"{coord} should be empty"

    return True, "OK"


def _check_walls(world: World, goal_walls: Dict[str, List[str]]) -> Tuple[bool, str]:
    for key, dirs in goal_walls.items():
        xy = parse_coord(key)
        if xy is None:
            continue
        for d in dirs or []:
            wall_dir = WALL_TEXT_TO_DIR.get(str(d).lower())
            if wall_dir is None:
                continue
            if not world.has_wall_at(xy[0], xy[1], wall_dir):
                return False, f"Missing {d} wall at {key}"
    return True, "OK"


def _as_number(v: Any) -> Optional[float]:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    if not math.isfinite(v):
        return None
    return v


def _check_position(world: World, position: Dict[str, Any]) -> Tuple[bool, str]:
    robot = world.robot
    gx = _as_number(position.get("x"))
    gy = _as_number(position.get("y"))
    if gx is not None and gy is not None:
        if robot.x != math.floor(gx) or robot.y != math.floor(gy):
            return False, f"Robot at ({robot.x},{robot.y}), expected ({math.floor(gx)},{math.floor(gy)})"
    if position.get("orientation") is not None:
        want = normalize_orientation(position["orientation"])
        if want is not None and robot.dir != want:
            return False, f"Robot facing {robot.dir}, expected {want}"
    return True, "OK"


def _check_final_positions(world: World, positions: List[List[Any]]) -> Tuple[bool, str]:
    robot = world.robot
    for pos in positions:
        if not isinstance(pos, (list, tuple)) or len(pos) < 2:
            continue
        x, y = _as_number(pos[0]), _as_number(pos[1])
        if x is None or y is None:
            continue
        if robot.x != math.floor(x) or robot.y != math.floor(y):
            continue
        if len(pos) < 3 or pos[2] is None:
            return True, "OK"
        want = normalize_orientation(pos[2])
        if want is None or robot.dir == want:
            return True, "OK"
    return False, f"Robot at ({robot.x},{robot.y},{robot.dir}) is not an accepted final position"


def check_goal(world: World, goal: Optional[Goal]) -> Tuple[bool, str]:
    """Check every clause of ``goal`` against ``world``.

    Args:
        world: World to check (not modified).
        goal: Goal, or None for "always satisfied".

    Returns:
        Tuple of (satisfied: bool, reason: str) where reason names the first
        violated clause.
    """
    if goal is None:
        return True, "OK"

    if goal.objects is not None:
        ok, reason = _check_objects(world, goal.objects)
        if not ok:
            return False, reason

    if goal.walls is not None:
        ok, reason = _check_walls(world, goal.walls)
        if not ok:
            return False, reason

    if goal.position is not None:
        ok, reason = _check_position(world, goal.position)
        if not ok:
            return False, reason

    if goal.possible_final_positions:
        ok, reason = _check_final_positions(world, goal.possible_final_positions)
        if not ok:
            return False, reason

    return True, "OK"


def evaluate_goal(world: World, goal: Optional[Goal]) -> bool:
    """Pure check: True if ``world`` satisfies ``goal``."""
    return check_goal(world, goal)[0]
