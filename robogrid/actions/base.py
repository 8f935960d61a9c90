"""Base classes for actions.

Defines the Action value, the ActionResult structure and the TransitionRule
interface. Every action type has exactly one rule; the engine and the
shadow world both apply actions through these rules so their behaviour can
never drift apart.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, NamedTuple, Optional, Tuple

from ..errors import log_engine_error
from ..world_model.state import World


class ActionType:
    """Action type tags."""

    MOVE = "move"
    TURN_LEFT = "turn_left"
    TAKE = "take"
    PUT = "put"
    BUILD_WALL = "build_wall"
    DONE = "done"
    TRACE = "trace"

    ALL = (MOVE, TURN_LEFT, TAKE, PUT, BUILD_WALL, DONE, TRACE)


@dataclass(frozen=True)
class Action:
    """One atomic, queued robot command. Immutable once created."""

    type: str
    message: Optional[str] = None  # Only used by trace actions
    # Playback interval in ms set by think() when queued; not part of identity
    pace_ms: Optional[float] = field(default=None, compare=False)

    @classmethod
    def move(cls) -> "Action":
        return cls(ActionType.MOVE)

    @classmethod
    def turn_left(cls) -> "Action":
        return cls(ActionType.TURN_LEFT)

    @classmethod
    def take(cls) -> "Action":
        return cls(ActionType.TAKE)

    @classmethod
    def put(cls) -> "Action":
        return cls(ActionType.PUT)

    @classmethod
    def build_wall(cls) -> "Action":
        return cls(ActionType.BUILD_WALL)

    @classmethod
    def done(cls) -> "Action":
        return cls(ActionType.DONE)

    @classmethod
    def trace(cls, message: str) -> "Action":
        return cls(ActionType.TRACE, message=message)

    def with_pace(self, pace_ms: Optional[float]) -> "Action":
        return replace(self, pace_ms=pace_ms)

    def to_dict(self) -> dict:
        d = {"type": self.type}
        if self.message is not None:
            d["message"] = self.message
        if self.pace_ms is not None:
            d["pace_ms"] = self.pace_ms
        return d


class ActionResult(NamedTuple):
    """Structured result from applying an action.

    Attributes:
        success: Whether the transition was applied.
        info: Rule-specific details.

    Common info keys:
        - "reason": str - Reason code if failed (see EngineErrors)
        - "kind": str - Object kind taken or put
        - "clear_queue": bool - Set by done(); the engine drops pending actions
    """
    success: bool
    info: Dict[str, Any]

    @property
    def reason(self) -> Optional[str]:
        return self.info.get("reason")


class TransitionRule(ABC):
    """Base class for transition rules.

    Rules are deterministic, total functions of (world, action):
    1. Check preconditions against the current world
    2. On success, mutate the world in place
    3. Return a structured ActionResult

    A failed rule leaves the world untouched.

    Subclasses must implement:
    - name: Action type handled
    - preconditions(): Check if the action can apply
    - apply(): Mutate the world
    """

    name: str = "base"

    def preconditions(self, world: World, action: Action) -> Tuple[bool, Optional[str], Dict[str, Any]]:
        """Check if the action can apply.

        Returns:
            Tuple of (can_apply, reason_code, meta for the error log).
        """
        return True, None, {}

    @abstractmethod
    def apply(self, world: World, action: Action) -> Dict[str, Any]:
        """Mutate ``world`` in place. Only called when preconditions hold.

        Returns:
            Info dictionary for the ActionResult.
        """
        pass

    def run(self, world: World, action: Action, log_failures: bool = True) -> ActionResult:
        """Full rule application with precondition check.

        Args:
            world: World to transition (modified in place on success).
            action: The action being applied.
            log_failures: Print failed transitions. The shadow world turns
                this off since its failures are only predictions.
        """
        ok, reason, meta = self.preconditions(world, action)
        if not ok:
            if log_failures:
                log_engine_error(reason, meta)
            return ActionResult(success=False, info={"reason": reason})

        info = self.apply(world, action) or {}
        return ActionResult(success=True, info=info)
