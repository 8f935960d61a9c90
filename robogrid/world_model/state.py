"""Grid world state representation.

World tracks the grid size, the robot pose, wall segments and object stacks.
It is plain data plus small query/mutation helpers; the transition rules in
``robogrid.actions`` are the only code that changes a world during a run.

Coordinates are 1-based, x grows east and y grows north.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .goals import Goal


DIRECTIONS = ("N", "E", "S", "W")

# (dx, dy) per facing, y increases northward
DIRECTION_DELTAS: Dict[str, Tuple[int, int]] = {
    "N": (0, 1),
    "E": (1, 0),
    "S": (0, -1),
    "W": (-1, 0),
}

LEFT_OF = {"N": "W", "W": "S", "S": "E", "E": "N"}
RIGHT_OF = {v: k for k, v in LEFT_OF.items()}
OPPOSITE = {"N": "S", "S": "N", "E": "W", "W": "E"}

WALL_TEXT_TO_DIR = {"north": "N", "east": "E", "south": "S", "west": "W"}
DIR_TO_WALL_TEXT = {v: k for k, v in WALL_TEXT_TO_DIR.items()}

_ORIENTATION_NAMES = {
    "N": "N", "NORTH": "N",
    "E": "E", "EAST": "E",
    "S": "S", "SOUTH": "S",
    "W": "W", "WEST": "W",
}
_ORIENTATION_CODES = {1: "N", 2: "W", 3: "S"}


def normalize_orientation(value: Any) -> Optional[str]:
    """Map an orientation code to a facing.

    Shared by the world loader (robot placement) and the goal evaluator
    (goal orientations) so both read codes the same way.

    Args:
        value: "N"/"north"/... (any case), a number, or a numeric string.

    Returns:
        One of N/E/S/W. Numbers (truncated) map 1->N, 2->W, 3->S and
        anything else to E.
        None for None, booleans and unrecognized text.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip().upper()
        if s in _ORIENTATION_NAMES:
            return _ORIENTATION_NAMES[s]
        try:
            value = float(s)
        except ValueError:
            return None
    if isinstance(value, float):
        # Fractional codes truncate toward zero ("1.5" reads as 1)
        value = int(value) if math.isfinite(value) else 0
    if isinstance(value, int):
        return _ORIENTATION_CODES.get(value, "E")
    return None


def parse_coord(key: str) -> Optional[Tuple[int, int]]:
    """Parse an "x,y" key. Returns None if either part is not an integer."""
    parts = str(key).split(",")
    if len(parts) < 2:
        return None
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return None


def coord_key(x: int, y: int) -> str:
    return f"{x},{y}"


@dataclass
class RobotPose:
    """Robot position, facing and carried items.

    ``inventory`` is FIFO: take() appends, put() removes from the front.
    """

    x: int = 1
    y: int = 1
    dir: str = "E"
    token: int = 0
    inventory: List[str] = field(default_factory=list)

    def copy(self) -> "RobotPose":
        return RobotPose(
            x=self.x,
            y=self.y,
            dir=self.dir,
            token=self.token,
            inventory=list(self.inventory),
        )

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "dir": self.dir,
            "token": self.token,
            "inventory": list(self.inventory),
        }


@dataclass
class WallSegment:
    """A wall on one edge of one cell."""

    x: int
    y: int
    dir: str
    goal_mark: bool = False

    def to_dict(self) -> dict:
        d = {"x": self.x, "y": self.y, "dir": self.dir}
        if self.goal_mark:
            d["goal_mark"] = True
        return d


@dataclass
class ObjectStack:
    """A pile of one object kind on one cell. ``count`` is always > 0."""

    x: int
    y: int
    kind: str
    count: int
    range: Optional[Tuple[int, int]] = None  # (min, max) the count was drawn from
    hidden: bool = False  # Count withheld from the observer until revealed
    goal_mark: bool = False

    def copy(self) -> "ObjectStack":
        return ObjectStack(
            x=self.x,
            y=self.y,
            kind=self.kind,
            count=self.count,
            range=tuple(self.range) if self.range is not None else None,
            hidden=self.hidden,
            goal_mark=self.goal_mark,
        )

    def to_dict(self) -> dict:
        d = {"x": self.x, "y": self.y, "kind": self.kind, "count": self.count}
        if self.range is not None:
            d["range"] = list(self.range)
        if self.hidden:
            d["hidden"] = True
        if self.goal_mark:
            d["goal_mark"] = True
        return d


@dataclass
class World:
    """Complete grid state at an instant.

    Tracks:
    - width/height: grid bounds (cells 1..width, 1..height)
    - robot: pose and inventory
    - walls: unique (x, y, dir) wall segments
    - objects: one stack per (x, y, kind)
    - goal: optional success condition
    - background_default/background_tiles: tile hints for renderers
    """

    width: int = 10
    height: int = 10
    robot: RobotPose = field(default_factory=RobotPose)
    walls: List[WallSegment] = field(default_factory=list)
    objects: List[ObjectStack] = field(default_factory=list)
    goal: Optional["Goal"] = None
    description: Optional[str] = None
    background_default: Optional[str] = None
    background_tiles: Dict[str, str] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 1 <= x <= self.width and 1 <= y <= self.height

    def has_wall_at(self, x: int, y: int, dir: str) -> bool:
        return any(w.x == x and w.y == y and w.dir == dir for w in self.walls)

    def is_blocked_by_wall(self, x: int, y: int, dir: str) -> bool:
        """Check the edge of (x, y) facing ``dir``.

        Either half of a shared edge blocks: the wall on this cell's side,
        or the opposing wall on the neighbour's side.
        """
        dx, dy = DIRECTION_DELTAS[dir]
        return self.has_wall_at(x, y, dir) or self.has_wall_at(x + dx, y + dy, OPPOSITE[dir])

    def has_right_wall(self, x: int, y: int, dir: str) -> bool:
        """Check the edge to the right of a robot at (x, y) facing ``dir``."""
        return self.is_blocked_by_wall(x, y, RIGHT_OF[dir])

    def objects_at(self, x: int, y: int) -> List[ObjectStack]:
        return [o for o in self.objects if o.x == x and o.y == y]

    def find_stack(self, x: int, y: int, kind: str) -> Optional[ObjectStack]:
        for o in self.objects:
            if o.x == x and o.y == y and o.kind == kind:
                return o
        return None

    def total_by_kind(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for o in self.objects:
            totals[o.kind] = totals.get(o.kind, 0) + o.count
        return totals

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_wall(self, x: int, y: int, dir: str) -> bool:
        """Insert a wall unless one already exists. Not mirrored.

        Returns:
            True if a wall was added.
        """
        if self.has_wall_at(x, y, dir):
            return False
        self.walls.append(WallSegment(x=x, y=y, dir=dir))
        return True

    def remove_wall(self, x: int, y: int, dir: str):
        self.walls = [w for w in self.walls if not (w.x == x and w.y == y and w.dir == dir)]

    def remove_wall_symmetric(self, x: int, y: int, dir: str):
        """Remove a wall and the matching wall the neighbour sees on the shared edge."""
        dx, dy = DIRECTION_DELTAS[dir]
        self.remove_wall(x, y, dir)
        self.remove_wall(x + dx, y + dy, OPPOSITE[dir])

    def add_objects(self, x: int, y: int, kind: str, n: int = 1):
        """Increment (or create) the stack of ``kind`` at (x, y)."""
        if n <= 0:
            return
        stack = self.find_stack(x, y, kind)
        if stack is not None:
            stack.count += n
        else:
            self.objects.append(ObjectStack(x=x, y=y, kind=kind, count=n))

    def remove_one(self, x: int, y: int, kind: str) -> bool:
        """Decrement the stack of ``kind`` at (x, y), deleting it at zero."""
        for i, o in enumerate(self.objects):
            if o.x == x and o.y == y and o.kind == kind and o.count > 0:
                o.count -= 1
                if o.count == 0:
                    del self.objects[i]
                return True
        return False

    # ------------------------------------------------------------------
    # Copy / serialization
    # ------------------------------------------------------------------

    def copy(self) -> "World":
        """Create an independent deep copy."""
        return World(
            width=self.width,
            height=self.height,
            robot=self.robot.copy(),
            walls=[WallSegment(w.x, w.y, w.dir, w.goal_mark) for w in self.walls],
            objects=[o.copy() for o in self.objects],
            goal=self.goal.copy() if self.goal is not None else None,
            description=self.description,
            background_default=self.background_default,
            background_tiles=dict(self.background_tiles),
        )

    def to_dict(self) -> dict:
        """Serialize for JSON logs."""
        return {
            "width": self.width,
            "height": self.height,
            "robot": self.robot.to_dict(),
            "walls": [w.to_dict() for w in self.walls],
            "objects": [o.to_dict() for o in self.objects],
            "goal": self.goal.to_dict() if self.goal is not None else None,
            "description": self.description,
            "background_default": self.background_default,
            "background_tiles": dict(self.background_tiles),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "World":
        """Inverse of to_dict()."""
        from .goals import Goal

        robot = d.get("robot") or {}
        return cls(
            width=d.get("width", 10),
            height=d.get("height", 10),
            robot=RobotPose(
                x=robot.get("x", 1),
                y=robot.get("y", 1),
                dir=robot.get("dir", "E"),
                token=robot.get("token", 0),
                inventory=list(robot.get("inventory", [])),
            ),
            walls=[
                WallSegment(w["x"], w["y"], w["dir"], w.get("goal_mark", False))
                for w in d.get("walls", [])
            ],
            objects=[
                ObjectStack(
                    x=o["x"],
                    y=o["y"],
                    kind=o["kind"],
                    count=o["count"],
                    range=tuple(o["range"]) if o.get("range") else None,
                    hidden=o.get("hidden", False),
                    goal_mark=o.get("goal_mark", False),
                )
                for o in d.get("objects", [])
            ],
            goal=Goal.from_dict(d["goal"]) if d.get("goal") else None,
            description=d.get("description"),
            background_default=d.get("background_default"),
            background_tiles=dict(d.get("background_tiles") or {}),
        )


def create_default_world(width: int = 10, height: int = 10) -> World:
    """Empty grid with the robot at (1, 1) facing east."""
    return World(width=width, height=height, robot=RobotPose(x=1, y=1, dir="E", token=0))
