"""Run session.

Ties a world, the action engine, the script host and playback together
into the run / next / prev / reset controls a front end drives.
"""

from typing import Optional

from .config import RunConfig
from .engine.engine import ActionEngine, TraceEvent
from .engine.playback import Playback, PlaybackResult
from .errors import ScriptExecutionError, reason_to_message
from .builder.loader import rerandomize, reveal_objects
from .host.preflight import validate_script_actions
from .host.script_host import ScriptHost
from .logging.trace_logger import TraceLogger
from .utils.seeds import make_rng
from .world_model.state import World

DEFAULT_STATUS = "Move the robot freely."


class Session:
    """One world plus the machinery to run learner code on it.

    Usage:
        session = Session(world)
        result = session.run_sync("move()\\nturn_left()\\nmove()")
        print(result.status)        # "success" / "fail" / "error"

        session.run(code)           # paced playback in the background
        session.wait()
    """

    def __init__(
        self,
        world: World,
        config: Optional[RunConfig] = None,
        logger: Optional[TraceLogger] = None,
        world_name: str = "world",
    ):
        self.config = config or RunConfig()
        self.world = world.copy()
        self.world_name = world_name
        # Original world with its ranges; reset() redraws from it
        self._template = world.copy()
        self.rng = make_rng(self.config.builder.seed)
        self.logger = logger

        self.engine = ActionEngine(self.world)
        self.host = ScriptHost(self.engine, self.config.engine)
        self.playback = Playback(self.engine, self.config.engine, on_finish=self._on_finish)

        self.status = self.world.description or DEFAULT_STATUS
        self.status_kind = "info"  # info / running / error
        self.current_step = 0
        self.run_idx = 0

        self.engine.subscribe(self._on_event)
        if self.logger is not None:
            self.logger.attach(self.engine)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def prepare(self, code: str) -> bool:
        """Reset to the revealed world and run learner code to fill the queue.

        Returns:
            False if preflight rejected the code (status explains why).

        Raises:
            ScriptExecutionError: If the learner code raises.
        """
        ok, errors = validate_script_actions(code)
        if not ok:
            print(f"[Preflight] Invalid API usage: {' | '.join(errors)}")
            self._set_status(errors[0] if errors else "Invalid code.", "error")
            return False

        self._set_status("Running...", "running")
        self.current_step = 0
        self.playback.reset(reveal_objects(self.world))

        if self.logger is not None:
            self.logger.start_run(self.world_name, run_idx=self.run_idx, code=code)
        self.run_idx += 1

        try:
            self.host.run_user_code(code)
        except ScriptExecutionError as e:
            self._set_status(f"Python error: {e}", "error")
            if self.logger is not None:
                self.logger.end_run(success=False, failure_reason=str(e))
            raise
        return True

    def run(self, code: str) -> bool:
        """Prepare and start paced playback in the background."""
        if not self.prepare(code):
            return False
        self.playback.start()
        return True

    def run_sync(self, code: str) -> Optional[PlaybackResult]:
        """Prepare and drain the queue immediately. None if preflight failed."""
        if not self.prepare(code):
            return None
        result = self.playback.run_to_completion()
        self._on_finish(result)
        return result

    def wait(self, timeout: Optional[float] = None) -> Optional[PlaybackResult]:
        return self.playback.wait(timeout)

    def next(self, code: str) -> Optional[TraceEvent]:
        """Execute one action; on the very first step, run the code first."""
        event = self.playback.next()
        if event is None and self.current_step == 0:
            if not self.prepare(code):
                return None
            event = self.playback.next()
        return event

    def prev(self) -> Optional[World]:
        world = self.playback.prev()
        if world is not None:
            self.current_step = max(0, self.current_step - 1)
        return world

    def reset(self):
        """Return to the idle state with every ranged count redrawn."""
        self._load(rerandomize(self._template, self.rng))

    def change_world(self, world: World):
        """Switch to ``world`` and return to the idle state."""
        self._template = world.copy()
        self._load(self._template)

    def _load(self, world: World):
        self.world = world.copy()
        self.playback.reset(self.world)
        self.current_step = 0
        self._set_status(self.world.description or DEFAULT_STATUS, "info")

    def get_state(self) -> World:
        return self.engine.get_state()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_event(self, event: TraceEvent):
        self.current_step += 1
        if not event.ok:
            self._set_status(reason_to_message(event.reason), "error")

    def _on_finish(self, result: PlaybackResult):
        if result.status == "error":
            self._set_status(result.message, "error")
        else:
            self._set_status(result.status, "info")
        if self.logger is not None:
            self.logger.log_world_state(self.engine.get_state())
            self.logger.end_run(
                success=result.success,
                failure_reason=None if result.success else result.message,
            )

    def _set_status(self, status: str, kind: str):
        self.status = status
        self.status_kind = kind
