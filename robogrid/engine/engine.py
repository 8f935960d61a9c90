"""Action engine.

Owns the committed world, the pending action queue and the history of
executed events. The committed world is only ever mutated by step(); every
read from outside gets a deep copy.
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Tuple

from ..actions import Action, ActionResult, apply_action
from ..errors import EngineReentryError
from ..world_model.state import World


@dataclass
class TraceEvent:
    """Record of one attempted action.

    Attributes:
        step: Monotonic step counter (1-based).
        action: The action that was attempted.
        before: Deep copy of the world before the transition.
        after: Deep copy after the transition, only if ok.
        ok: Whether the transition succeeded.
        reason: Reason code if it failed.
    """

    step: int
    action: Action
    before: World
    after: Optional[World]
    ok: bool
    reason: Optional[str] = None

    @property
    def state(self) -> World:
        """World to display after this event."""
        return self.after if self.ok and self.after is not None else self.before

    def to_dict(self, include_snapshots: bool = True) -> dict:
        d = {
            "step": self.step,
            "action": self.action.to_dict(),
            "ok": self.ok,
            "reason": self.reason,
        }
        if include_snapshots:
            d["before"] = self.before.to_dict()
            d["after"] = self.after.to_dict() if self.after is not None else None
        return d


Listener = Callable[[TraceEvent], None]


class ActionEngine:
    """Queue-driven executor for robot actions.

    Usage:
        engine = ActionEngine(world)
        unsubscribe = engine.subscribe(print)

        engine.enqueue(Action.move())
        engine.enqueue(Action.turn_left())

        event = engine.step()       # TraceEvent, or None when the queue is empty
        restored = engine.step_prev()  # undo by snapshot restore
    """

    def __init__(self, initial_world: World):
        """Initialize engine.

        Args:
            initial_world: World to start from. Copied; later reset() calls
                without an argument return to this world.
        """
        self._initial = initial_world.copy()
        self._world = initial_world.copy()
        self._queue: Deque[Action] = deque()
        self._executed: List[TraceEvent] = []
        self._listeners: List[Listener] = []
        self._step_counter = 0
        self._emitting = False

    # ------------------------------------------------------------------
    # Queue
    # ------------------------------------------------------------------

    def enqueue(self, action: Action):
        """Append to the pending queue. No validation happens here."""
        self._queue.append(action)

    def step(self) -> Optional[TraceEvent]:
        """Execute the next pending action.

        Returns:
            The produced TraceEvent, or None if the queue was empty.

        Raises:
            EngineReentryError: If called from inside a subscriber.
        """
        if self._emitting:
            raise EngineReentryError("step() called from an event listener")

        if not self._queue:
            return None
        action = self._queue.popleft()

        before = self._world.copy()
        result: ActionResult = apply_action(self._world, action)
        if result.success and result.info.get("clear_queue"):
            self._queue.clear()
        after = self._world.copy() if result.success else None

        self._step_counter += 1
        event = TraceEvent(
            step=self._step_counter,
            action=action,
            before=before,
            after=after,
            ok=result.success,
            reason=result.reason,
        )
        self._executed.append(event)
        self._emit(event)
        return event

    def step_prev(self) -> Optional[World]:
        """Undo the most recent event by restoring its ``before`` snapshot.

        The undone action goes back to the front of the queue so it can be
        redone.

        Returns:
            Copy of the restored world, or None if there is no history.
        """
        if not self._executed:
            return None
        last = self._executed.pop()
        self._world = last.before.copy()
        self._queue.appendleft(last.action)
        self._step_counter = max(0, self._step_counter - 1)
        return self._world.copy()

    def reset(self, world: Optional[World] = None):
        """Replace the committed world and clear queue and history.

        Args:
            world: New world (copied). Defaults to the engine's original.
        """
        self._world = (world if world is not None else self._initial).copy()
        self._step_counter = 0
        self._queue.clear()
        self._executed.clear()

    def get_state(self) -> World:
        """Deep copy of the committed world."""
        return self._world.copy()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for every produced event.

        Listeners run synchronously, in registration order, inside step().

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: TraceEvent):
        self._emitting = True
        try:
            for listener in list(self._listeners):
                listener(event)
        finally:
            self._emitting = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def pending(self) -> Tuple[Action, ...]:
        return tuple(self._queue)

    @property
    def history(self) -> Tuple[TraceEvent, ...]:
        return tuple(self._executed)

    @property
    def step_count(self) -> int:
        return self._step_counter

    @property
    def is_idle(self) -> bool:
        """True when there is nothing left to step."""
        return not self._queue
