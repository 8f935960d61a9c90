"""Shadow (plan) world.

While a script runs, its actions are only queued on the engine; playback
executes them later. Sensor queries must still see the effect of every
action issued so far, so each issued action is also applied right away to a
private plan world through the same transition rules the engine uses.
"""

import math
from typing import Optional

from ..actions import Action, ActionType, apply_action
from ..engine.engine import ActionEngine
from ..world_model.state import World


class ShadowWorld:
    """Predictive mirror of the engine's committed world.

    The plan world is a copy taken at begin(); it never shares objects with
    the engine. After a done() the plan stops following, since the engine
    will drop everything queued behind it.
    """

    def __init__(self, engine: ActionEngine):
        self.engine = engine
        self.plan: Optional[World] = None
        self._finished = False
        # Stamped on every issued action; set by the host from think()
        self.pace_ms: Optional[float] = None

    @property
    def active(self) -> bool:
        return self.plan is not None

    def begin(self):
        """Snapshot the engine's committed world as the plan world."""
        self.plan = self.engine.get_state()
        self._finished = False

    def end(self):
        self.plan = None
        self._finished = False

    def issue(self, action: Action):
        """Queue ``action`` on the engine and apply it to the plan world."""
        if action.pace_ms is None and self.pace_ms is not None:
            action = action.with_pace(self.pace_ms)
        self.engine.enqueue(action)
        if self.plan is None or self._finished:
            return
        apply_action(self.plan, action, log_failures=False)
        if action.type == ActionType.DONE:
            self._finished = True

    def view(self) -> World:
        """World that sensor queries read: the plan, else the committed state."""
        if self.plan is not None:
            return self.plan
        return self.engine.get_state()

    # ------------------------------------------------------------------
    # Sensors
    # ------------------------------------------------------------------

    def wall_in_front(self) -> bool:
        w = self.view()
        robot = w.robot
        return self._record("wall_in_front", w.is_blocked_by_wall(robot.x, robot.y, robot.dir))

    def wall_on_right(self) -> bool:
        w = self.view()
        robot = w.robot
        return self._record("wall_on_right", w.has_right_wall(robot.x, robot.y, robot.dir))

    def object_here(self) -> bool:
        w = self.view()
        here = w.objects_at(w.robot.x, w.robot.y)
        return self._record("object_here", any(o.count > 0 for o in here))

    def at_goal(self) -> bool:
        """True if the goal names a position and the robot stands on it."""
        w = self.view()
        position = w.goal.position if w.goal is not None else None
        res = False
        if isinstance(position, dict):
            gx, gy = position.get("x"), position.get("y")
            if _finite(gx) and _finite(gy):
                res = w.robot.x == math.floor(gx) and w.robot.y == math.floor(gy)
        return self._record("at_goal", res)

    def _record(self, name: str, result: bool) -> bool:
        result = bool(result)
        self.issue(Action.trace(f"{name}() -> {result}"))
        return result


def _finite(v) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)
