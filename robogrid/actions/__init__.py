"""Actions module for robogrid.

Provides the Action value type and the transition rules shared by the
action engine and the shadow (plan) world.
"""

from .base import Action, ActionType, ActionResult, TransitionRule
from .movement import MoveRule, TurnLeftRule
from .objects import TakeRule, PutRule, pick_kind_to_take
from .walls import BuildWallRule
from .control import DoneRule, TraceRule
from ..errors import EngineErrors, log_engine_error

__all__ = [
    "Action",
    "ActionType",
    "ActionResult",
    "TransitionRule",
    "MoveRule",
    "TurnLeftRule",
    "TakeRule",
    "PutRule",
    "BuildWallRule",
    "DoneRule",
    "TraceRule",
    "pick_kind_to_take",
    "RULE_REGISTRY",
    "get_rule",
    "apply_action",
]


# Rule registry for lookup by action type
RULE_REGISTRY = {
    ActionType.MOVE: MoveRule(),
    ActionType.TURN_LEFT: TurnLeftRule(),
    ActionType.TAKE: TakeRule(),
    ActionType.PUT: PutRule(),
    ActionType.BUILD_WALL: BuildWallRule(),
    ActionType.DONE: DoneRule(),
    ActionType.TRACE: TraceRule(),
}


def get_rule(name: str) -> TransitionRule:
    """Get the transition rule for an action type.

    Raises:
        KeyError: If the action type is not known.
    """
    if name not in RULE_REGISTRY:
        raise KeyError(f"Unknown action: {name}. Available: {list(RULE_REGISTRY.keys())}")
    return RULE_REGISTRY[name]


def apply_action(world, action: Action, log_failures: bool = True) -> ActionResult:
    """Apply ``action`` to ``world`` in place.

    Unknown action types fail with ``unknown_action`` instead of raising.
    """
    rule = RULE_REGISTRY.get(getattr(action, "type", None))
    if rule is None:
        if log_failures:
            log_engine_error(EngineErrors.UNKNOWN_ACTION, {"action": repr(action)})
        return ActionResult(success=False, info={"reason": EngineErrors.UNKNOWN_ACTION})
    return rule.run(world, action, log_failures=log_failures)
