"""World document loader.

Turns a JSON world document into an initial World:

    {
        "rows": 8, "cols": 10,
        "robots": [{"x": 1, "y": 1, "_orientation": 0, "objects": {"token": 0}}],
        "walls": {"2,1": ["east"]},
        "objects": {"3,1": {"carrot": 2, "apple": "1-4"}},
        "goal": {"objects": {"9,1": {"carrot": "all"}}},
        "tiles": {"1,1": ["grass"]},
        "onload": ["RUR.add_wall('north', 4, 4)"],
        "description": "Collect all the carrots."
    }

Malformed entries are skipped with a warning; only a failing builder script
aborts the build.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from .kinds import is_object_kind, normalize_tile_name
from .onload import apply_onload
from ..config import BuilderConfig
from ..utils.seeds import make_rng
from ..world_model.goals import Goal, merge_goals, parse_goal
from ..world_model.state import (
    ObjectStack,
    RobotPose,
    WALL_TEXT_TO_DIR,
    World,
    coord_key,
    normalize_orientation,
    parse_coord,
)

_RANGE = re.compile(r"^(\d+)\s*-\s*(\d+)$")
_DIGITS = re.compile(r"^\d+$")


def _warn(msg: str, *args):
    print(f"[World Loader] {msg}", *args)


def _draw(rng: np.random.Generator, lo: int, hi: int) -> int:
    return int(rng.integers(lo, hi + 1))


def _parse_robot(data: Dict[str, Any]) -> RobotPose:
    robots = data.get("robots") or []
    r0 = robots[0] if robots and isinstance(robots[0], dict) else {}

    orientation = r0.get("_orientation")
    if orientation is None:
        orientation = r0.get("orientation")
    token = (r0.get("objects") or {}).get("token", 0)

    return RobotPose(
        x=int(r0.get("x", 1)),
        y=int(r0.get("y", 1)),
        dir=normalize_orientation(orientation) or "E",
        token=int(token),
        inventory=[],
    )


def _parse_walls(world: World, raw_walls: Any):
    if not isinstance(raw_walls, dict):
        return
    for key, dirs in raw_walls.items():
        xy = parse_coord(key)
        if xy is None:
            _warn("Bad wall coordinate skipped:", key)
            continue
        for text in dirs or []:
            d = WALL_TEXT_TO_DIR.get(str(text).lower())
            if d is None:
                _warn("Unknown wall direction skipped:", text)
                continue
            world.add_wall(xy[0], xy[1], d)


def _parse_objects(world: World, raw_objects: Any, rng: np.random.Generator) -> Optional[Goal]:
    """Fill world.objects. Returns a goal built from {number, goal: true} entries."""
    if not isinstance(raw_objects, dict):
        return None

    goal_objects: Dict[str, Dict[str, Any]] = {}
    for key, kinds in raw_objects.items():
        xy = parse_coord(key)
        if xy is None or not isinstance(kinds, dict):
            _warn("Bad object entry skipped:", key)
            continue
        x, y = xy
        for kind, val in kinds.items():
            if not is_object_kind(kind):
                _warn("Unknown object kind skipped:", kind)
                continue

            count = 0
            value_range = None
            hidden = False
            if isinstance(val, bool):
                pass
            elif isinstance(val, (int, float)):
                count = int(val)
            elif isinstance(val, str):
                s = val.strip()
                m = _RANGE.match(s)
                if m:
                    a, b = int(m.group(1)), int(m.group(2))
                    lo, hi = min(a, b), max(a, b)
                    value_range = (lo, hi)
                    # Drawn now, hidden until the first run reveals it
                    count = _draw(rng, lo, hi)
                    hidden = True
                elif _DIGITS.match(s):
                    count = int(s)
            elif isinstance(val, dict):
                number = val.get("number", 1)
                if isinstance(number, (int, float)) and not isinstance(number, bool):
                    count = int(number)
                if val.get("goal") is True:
                    goal_objects.setdefault(coord_key(x, y), {})[kind] = count
                    continue

            if count > 0:
                world.objects.append(
                    ObjectStack(x=x, y=y, kind=kind, count=count, range=value_range, hidden=hidden)
                )

    if not goal_objects:
        return None
    return Goal(objects=goal_objects)


def _parse_tiles(world: World, raw_tiles: Any):
    if not isinstance(raw_tiles, dict):
        return
    for coord, kinds in raw_tiles.items():
        if not isinstance(kinds, list) or not kinds:
            continue
        picked = normalize_tile_name(kinds[0])
        if picked is None:
            _warn("Unknown tile kind skipped:", kinds[0])
            continue
        world.background_tiles[coord] = picked


def _enforce_bounds(world: World):
    """Drop walls/objects outside the grid and clamp the robot into it."""
    kept_walls = [w for w in world.walls if world.in_bounds(w.x, w.y)]
    if len(kept_walls) != len(world.walls):
        _warn(f"{len(world.walls) - len(kept_walls)} out-of-grid wall(s) skipped")
    world.walls = kept_walls

    kept_objects = [o for o in world.objects if world.in_bounds(o.x, o.y)]
    if len(kept_objects) != len(world.objects):
        _warn(f"{len(world.objects) - len(kept_objects)} out-of-grid object stack(s) skipped")
    world.objects = kept_objects

    robot = world.robot
    if not world.in_bounds(robot.x, robot.y):
        _warn(f"Robot at ({robot.x},{robot.y}) moved inside the grid")
        robot.x = min(max(robot.x, 1), world.width)
        robot.y = min(max(robot.y, 1), world.height)


def build_world(
    data: Dict[str, Any],
    config: Optional[BuilderConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> World:
    """Build a World from a parsed world document.

    Args:
        data: The world document.
        config: Builder configuration (default size, seed).
        rng: Generator for ranges and randint(); defaults to one seeded
            from ``config.seed``.

    Returns:
        The initial world.

    Raises:
        BuilderScriptError: If an onload statement fails.
    """
    config = config or BuilderConfig()
    rng = rng if rng is not None else make_rng(config.seed)

    world = World(
        width=int(data.get("cols") or config.default_width),
        height=int(data.get("rows") or config.default_height),
        robot=_parse_robot(data),
        description=data.get("description"),
    )
    _parse_walls(world, data.get("walls"))
    marker_goal = _parse_objects(world, data.get("objects"), rng)
    world.goal = marker_goal

    world = apply_onload(world, data.get("onload"), rng)
    _parse_tiles(world, data.get("tiles"))
    _enforce_bounds(world)

    world.goal = merge_goals(world.goal, parse_goal(data.get("goal")))
    return world


def load_world(
    source: Union[str, Path, Dict[str, Any]],
    config: Optional[BuilderConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> World:
    """Load a world from a JSON file path or an already parsed document.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: If the file is not a JSON object.
        BuilderScriptError: If an onload statement fails.
    """
    if isinstance(source, dict):
        return build_world(source, config, rng)

    path = Path(source)
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Failed to load world: {path} is not a JSON object")
    return build_world(data, config, rng)


def reveal_objects(world: World) -> World:
    """Copy of ``world`` with every hidden count revealed."""
    w = world.copy()
    for o in w.objects:
        o.hidden = False
    return w


def rerandomize(world: World, rng: Optional[np.random.Generator] = None) -> World:
    """Copy of ``world`` with every ranged stack redrawn and hidden again.

    Stacks that draw zero are removed.
    """
    rng = rng if rng is not None else make_rng()
    w = world.copy()
    kept = []
    for o in w.objects:
        if o.range is not None:
            o.count = _draw(rng, o.range[0], o.range[1])
            o.hidden = True
        if o.count > 0:
            kept.append(o)
    w.objects = kept
    return w
