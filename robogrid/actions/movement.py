"""Movement rules: move and turn_left."""

from typing import Any, Dict, Optional, Tuple

from .base import Action, ActionType, TransitionRule
from ..errors import EngineErrors
from ..world_model.state import DIRECTION_DELTAS, LEFT_OF, World


class MoveRule(TransitionRule):
    """Move one cell forward.

    Preconditions:
    - Destination inside [1, width] x [1, height] (checked first)
    - No wall on either half of the edge being crossed

    Facing is unchanged.
    """

    name = ActionType.MOVE

    def preconditions(self, world: World, action: Action) -> Tuple[bool, Optional[str], Dict[str, Any]]:
        robot = world.robot
        dx, dy = DIRECTION_DELTAS[robot.dir]
        nx, ny = robot.x + dx, robot.y + dy

        if not world.in_bounds(nx, ny):
            return False, EngineErrors.OUT_OF_BOUNDS, {
                "nx": nx, "ny": ny, "width": world.width, "height": world.height,
            }

        if world.is_blocked_by_wall(robot.x, robot.y, robot.dir):
            return False, EngineErrors.BLOCKED_BY_WALL, {
                "x": robot.x, "y": robot.y, "dir": robot.dir,
            }

        return True, None, {}

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        dx, dy = DIRECTION_DELTAS[world.robot.dir]
        world.robot.x += dx
        world.robot.y += dy
        return {"position": (world.robot.x, world.robot.y)}


class TurnLeftRule(TransitionRule):
    """Rotate counter-clockwise: N -> W -> S -> E -> N. Always succeeds."""

    name = ActionType.TURN_LEFT

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        world.robot.dir = LEFT_OF[world.robot.dir]
        return {"dir": world.robot.dir}
