"""Control rules: done and trace. Neither touches the world."""

from typing import Any, Dict

from .base import Action, ActionType, TransitionRule
from ..world_model.state import World


class DoneRule(TransitionRule):
    """End the run. The engine drops every pending action when it sees clear_queue."""

    name = ActionType.DONE

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        return {"clear_queue": True}


class TraceRule(TransitionRule):
    """Record a sensor query in the event log."""

    name = ActionType.TRACE

    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        return {"message": action.message}
