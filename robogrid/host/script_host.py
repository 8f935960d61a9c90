"""Script host.

Runs learner code against a fixed primitive API. Action primitives queue
real actions on the engine and update the shadow world; sensors answer
from the shadow world immediately.
"""

import builtins
import math
from typing import Any, Callable, Dict, Optional

from ..actions import Action
from ..config import EngineConfig
from ..engine.engine import ActionEngine
from ..errors import ScriptExecutionError
from .shadow import ShadowWorld


class ScriptHost:
    """Bridge between learner code and the action engine.

    Usage:
        host = ScriptHost(engine)
        host.run_user_code("move()\\nif not wall_in_front():\\n    move()")
        pace = host.pace_ms   # pace stamped on the next issued action
    """

    def __init__(self, engine: ActionEngine, config: Optional[EngineConfig] = None):
        self.engine = engine
        self.config = config or EngineConfig()
        self.shadow = ShadowWorld(engine)
        self.pace_ms = self.config.default_pace_ms

    @property
    def pace_ms(self) -> float:
        """Pace stamped on actions issued from now on."""
        return self.shadow.pace_ms

    @pace_ms.setter
    def pace_ms(self, value: float):
        self.shadow.pace_ms = value

    # ------------------------------------------------------------------
    # Primitive API
    # ------------------------------------------------------------------

    def move(self):
        self.shadow.issue(Action.move())

    def turn_left(self):
        self.shadow.issue(Action.turn_left())

    def take(self):
        self.shadow.issue(Action.take())

    def put(self):
        self.shadow.issue(Action.put())

    def build_wall(self):
        self.shadow.issue(Action.build_wall())

    def done(self):
        self.shadow.issue(Action.done())

    def think(self, ms: Any):
        """Set the playback pace for actions issued after this call.

        Actions already queued keep the pace they were issued with. Bad
        values (non-numeric, negative, infinite) fall back to the configured
        fallback pace.
        """
        try:
            n = float(ms) * self.config.pace_multiplier
        except (TypeError, ValueError):
            n = math.nan
        self.pace_ms = n if math.isfinite(n) and n >= 0 else self.config.fallback_pace_ms

    def wall_in_front(self) -> bool:
        return self.shadow.wall_in_front()

    def wall_on_right(self) -> bool:
        return self.shadow.wall_on_right()

    def object_here(self) -> bool:
        return self.shadow.object_here()

    def at_goal(self) -> bool:
        return self.shadow.at_goal()

    def primitives(self) -> Dict[str, Callable]:
        """Functions visible to learner code."""
        return {
            "move": self.move,
            "turn_left": self.turn_left,
            "take": self.take,
            "put": self.put,
            "build_wall": self.build_wall,
            "done": self.done,
            "think": self.think,
            "wall_in_front": self.wall_in_front,
            "wall_on_right": self.wall_on_right,
            "object_here": self.object_here,
            "at_goal": self.at_goal,
        }

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run_user_code(self, code: str, filename: str = "<learner>"):
        """Execute learner code to completion, queueing its actions.

        The plan world is re-seeded from the engine's committed state and
        the pace is reset to the default before the code runs.

        Raises:
            ScriptExecutionError: If the code fails to compile or raises.
                Actions queued before the fault stay queued.
        """
        self.pace_ms = self.config.default_pace_ms
        self.shadow.begin()

        namespace: Dict[str, Any] = {"__builtins__": builtins, "__name__": "__learner__"}
        namespace.update(self.primitives())

        try:
            compiled = compile(code, filename, "exec")
            exec(compiled, namespace)
        except Exception as e:
            print(f"[ScriptHost] Learner code error: {e!r}")
            raise ScriptExecutionError(f"{type(e).__name__}: {e}") from e
        finally:
            self.shadow.end()
