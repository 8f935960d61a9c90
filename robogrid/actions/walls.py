"""Wall rule: build_wall."""

from typing import Any, Dict

from .base import Action, ActionType, TransitionRule
from ..world_model.state import World


class BuildWallRule(TransitionRule):
    """Build a wall on the edge the robot is facing.

    Idempotent: a second build on the same cell/direction is a no-op that
    still succeeds. Only the robot's own cell gets the wall; the neighbour's
    opposite edge is left alone.
    """

    name = ActionType.BUILD_WALL

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        robot = world.robot
        added = world.add_wall(robot.x, robot.y, robot.dir)
        return {"wall": (robot.x, robot.y, robot.dir), "added": added}
