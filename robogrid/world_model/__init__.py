"""World model module for robogrid.

Provides grid world state representation and goal definitions.
"""

from .state import (
    World,
    RobotPose,
    WallSegment,
    ObjectStack,
    DIRECTIONS,
    normalize_orientation,
    create_default_world,
)
from .goals import Goal, parse_goal, merge_goals, check_goal, evaluate_goal

__all__ = [
    "World",
    "RobotPose",
    "WallSegment",
    "ObjectStack",
    "DIRECTIONS",
    "normalize_orientation",
    "create_default_world",
    "Goal",
    "parse_goal",
    "merge_goals",
    "check_goal",
    "evaluate_goal",
]
