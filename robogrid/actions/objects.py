"""Object rules: take and put.

The robot's inventory is FIFO, so objects are put down in the order they
were picked up.
"""

from typing import Any, Dict, Optional, Tuple

from .base import Action, ActionType, TransitionRule
from ..errors import EngineErrors
from ..world_model.state import World


def pick_kind_to_take(world: World, x: int, y: int) -> Optional[str]:
    """Choose which kind take() removes at (x, y).

    Goal-marked stacks come first, then ascending kind name.

    Returns:
        The kind, or None if nothing with count > 0 is here.
    """
    here = [o for o in world.objects_at(x, y) if o.count > 0]
    if not here:
        return None
    here.sort(key=lambda o: (not o.goal_mark, o.kind))
    return here[0].kind


class TakeRule(TransitionRule):
    """Pick up one object from the current cell.

    Preconditions:
    - At least one stack with count > 0 on the robot's cell

    Postconditions:
    - Chosen stack decremented (deleted at zero)
    - Kind appended to the back of the inventory
    """

    name = ActionType.TAKE

    def preconditions(self, world: World, action: Action) -> Tuple[bool, Optional[str], Dict[str, Any]]:
        robot = world.robot
        if pick_kind_to_take(world, robot.x, robot.y) is None:
            return False, EngineErrors.NO_OBJECT_HERE, {"x": robot.x, "y": robot.y}
        return True, None, {}

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        robot = world.robot
        kind = pick_kind_to_take(world, robot.x, robot.y)
        world.remove_one(robot.x, robot.y, kind)
        robot.inventory.append(kind)
        return {"kind": kind}


class PutRule(TransitionRule):
    """Put down the oldest carried object on the current cell.

    Preconditions:
    - Inventory not empty
    """

    name = ActionType.PUT

    def preconditions(self, world: World, action: Action) -> Tuple[bool, Optional[str], Dict[str, Any]]:
        robot = world.robot
        if not robot.inventory:
            return False, EngineErrors.NO_ITEM_TO_PUT, {"x": robot.x, "y": robot.y}
        return True, None, {}

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        robot = world.robot
        kind = robot.inventory.pop(0)
        world.add_objects(robot.x, robot.y, kind, 1)
        return {"kind": kind}
