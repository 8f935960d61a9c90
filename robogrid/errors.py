"""Error codes and exceptions.

Expected domain failures (walls, bounds, empty hands) are reported as reason
codes on trace events and never raised. Exceptions below are for faults in
host scripts and misuse of the engine.
"""

from typing import Any, Dict, Optional


class EngineErrors:
    """Reason codes surfaced on failed steps."""

    OUT_OF_BOUNDS = "out_of_bounds"
    BLOCKED_BY_WALL = "blocked_by_wall"
    NO_OBJECT_HERE = "no_object_here"
    NO_TOKEN_TO_PUT = "no_token_to_put"
    NO_ITEM_TO_PUT = "no_item_to_put"
    UNKNOWN_ACTION = "unknown_action"


REASON_MESSAGES = {
    EngineErrors.OUT_OF_BOUNDS: "The robot cannot leave the grid.",
    EngineErrors.BLOCKED_BY_WALL: "The robot ran into a wall.",
    EngineErrors.NO_OBJECT_HERE: "There is nothing here to take.",
    EngineErrors.NO_TOKEN_TO_PUT: "The robot has no token to put down.",
    EngineErrors.NO_ITEM_TO_PUT: "The robot is not carrying anything to put down.",
    EngineErrors.UNKNOWN_ACTION: "Unknown action.",
}


def reason_to_message(reason: Optional[str]) -> str:
    """Human-readable message for a reason code."""
    if reason is None:
        return "Unknown error."
    return REASON_MESSAGES.get(reason, f"Error: {reason}")


def log_engine_error(code: str, meta: Optional[Dict[str, Any]] = None):
    """Report a failed transition. Failures are results, not exceptions."""
    print(f"[EngineError] {code} {meta or {}}")


class RobogridError(Exception):
    """Base class for robogrid exceptions."""


class EngineReentryError(RobogridError):
    """Raised when a subscriber calls step() while an event is being emitted."""


class ScriptExecutionError(RobogridError):
    """Raised when learner code raises while being run by the script host."""


class BuilderScriptError(RobogridError):
    """Raised when a builder-script statement cannot be executed."""

    def __init__(self, message: str, statement: Optional[str] = None, line: Optional[int] = None):
        self.statement = statement
        self.line = line
        if line is not None:
            message = f"Line {line}: {message}"
        super().__init__(message)
