"""
Paced playback of the action engine queue.

Runs a timer loop in a background thread that steps the engine, waiting
before each action for the pace it was queued with. Script execution never
waits on playback; playback only consumes what the script has already queued.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .engine import ActionEngine, TraceEvent
from ..config import EngineConfig
from ..errors import reason_to_message
from ..world_model.goals import check_goal


@dataclass
class PlaybackResult:
    """Outcome of draining the queue.

    status is one of:
        "success"   - queue exhausted and the goal holds
        "fail"      - queue exhausted and the goal does not hold
        "error"     - stopped at a failed event or an exception
    """
    status: str
    steps: int
    message: str = ""
    failed_event: Optional[TraceEvent] = None

    @property
    def success(self) -> bool:
        return self.status == "success"


class Playback:
    """
    Timer-driven consumer of an ActionEngine.

    Usage:
        playback = Playback(engine, on_finish=print)
        playback.start(pace_ms=50)   # returns immediately
        playback.wait()

        playback.cancel()            # no further step fires after this returns
    """

    def __init__(
        self,
        engine: ActionEngine,
        config: Optional[EngineConfig] = None,
        on_finish: Optional[Callable[[PlaybackResult], None]] = None,
    ):
        """
        Initialize playback.

        Args:
            engine: Engine whose queue is drained.
            config: Engine configuration (interval floor, stop-on-failure).
            on_finish: Called with the PlaybackResult when a timed run ends
                on its own (not when cancelled).
        """
        self.engine = engine
        self.config = config or EngineConfig()
        self.on_finish = on_finish
        self.last_result: Optional[PlaybackResult] = None

        # Serializes every engine access from the timer thread and callers
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Timed playback
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, pace_ms: Optional[float] = None):
        """Start stepping in the background.

        Args:
            pace_ms: Interval for queued actions that carry no pace of
                their own. Defaults to the configured default pace.
        """
        self.cancel()
        if pace_ms is None:
            pace_ms = self.config.default_pace_ms

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._playback_loop,
            args=(self._stop_event, float(pace_ms)),
            daemon=True,
        )
        self._thread.start()

    def cancel(self):
        """Stop the timer. Safe to call when not running."""
        with self._lock:
            self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None

    def wait(self, timeout: Optional[float] = None) -> Optional[PlaybackResult]:
        """Block until the timed run ends. Returns its result."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout)
        return self.last_result

    def _playback_loop(self, stop_event: threading.Event, default_pace_ms: float):
        """Main loop running in the background thread.

        Each wait uses the pace stamped on the next queued action, falling
        back to ``default_pace_ms`` for unstamped actions.
        """
        while not stop_event.wait(self._next_interval(default_pace_ms)):
            with self._lock:
                # cancel() sets the flag under the same lock
                if stop_event.is_set():
                    return
                try:
                    result = self._check_event(self.engine.step())
                except Exception as e:
                    print(f"[Playback] Error: {e}")
                    result = PlaybackResult(
                        status="error",
                        steps=self.engine.step_count,
                        message=f"{type(e).__name__}: {e}",
                    )
                if result is None:
                    continue
                self.last_result = result
                stop_event.set()

            if self.on_finish is not None:
                try:
                    self.on_finish(result)
                except Exception as e:
                    print(f"[Playback] on_finish error: {e}")
            return

    # ------------------------------------------------------------------
    # Manual stepping
    # ------------------------------------------------------------------

    def next(self) -> Optional[TraceEvent]:
        """Cancel any timed run and execute exactly one action."""
        self.cancel()
        with self._lock:
            return self.engine.step()

    def prev(self):
        """Cancel any timed run and undo one step. Returns the restored world or None."""
        self.cancel()
        with self._lock:
            return self.engine.step_prev()

    def reset(self, world=None):
        """Cancel any timed run and reset the engine (queue and history dropped)."""
        self.cancel()
        with self._lock:
            self.engine.reset(world)
            self.last_result = None

    def run_to_completion(self) -> PlaybackResult:
        """Drain the queue synchronously, without pacing."""
        self.cancel()
        with self._lock:
            while True:
                result = self._check_event(self.engine.step())
                if result is not None:
                    self.last_result = result
                    return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_interval(self, default_pace_ms: float) -> float:
        """Seconds to wait before stepping the head of the queue."""
        with self._lock:
            pending = self.engine.pending
        pace = default_pace_ms
        if pending and pending[0].pace_ms is not None:
            pace = pending[0].pace_ms
        return max(self.config.min_interval_ms, pace) / 1000.0

    def _check_event(self, event: Optional[TraceEvent]) -> Optional[PlaybackResult]:
        """Decide whether the run is over after ``event``. None means keep going."""
        if event is None:
            return self.evaluate()
        if not event.ok and self.config.stop_on_failure:
            return PlaybackResult(
                status="error",
                steps=self.engine.step_count,
                message=reason_to_message(event.reason),
                failed_event=event,
            )
        return None

    def evaluate(self) -> PlaybackResult:
        """Check the committed world against its goal."""
        final_state = self.engine.get_state()
        ok, reason = check_goal(final_state, final_state.goal)
        return PlaybackResult(
            status="success" if ok else "fail",
            steps=self.engine.step_count,
            message="success" if ok else reason,
        )
