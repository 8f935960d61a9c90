"""Run logging for debugging and replay analysis.

Logs complete run traces: every engine event, optional world snapshots and
the final outcome.
"""

import json
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..config import RunConfig
from ..engine.engine import ActionEngine, TraceEvent
from ..world_model.state import World


@dataclass
class RunLog:
    """Complete run record.

    Captures everything needed to:
    1. Replay a learner's run step by step
    2. Debug failed actions
    3. Compare runs of the same world
    """

    # Run metadata
    world_name: str
    run_idx: int
    timestamp: str
    seed: Optional[int] = None

    # Configuration
    config: Dict[str, Any] = field(default_factory=dict)
    code: str = ""

    # Execution trace
    events: List[Dict[str, Any]] = field(default_factory=list)
    world_state_trace: List[Dict[str, Any]] = field(default_factory=list)

    # Outcome
    success: bool = False
    failure_reason: Optional[str] = None
    total_steps: int = 0
    failed_steps: int = 0
    total_time: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class TraceLogger:
    """Logger for run traces.

    Usage:
        logger = TraceLogger("logs/run_001")
        logger.start_run(world_name="carrots", run_idx=0, code=source)
        logger.attach(engine)

        # Events are recorded while playback steps the engine.

        logger.end_run(success=True)
    """

    def __init__(
        self,
        output_dir: str,
        config: Optional[RunConfig] = None,
        include_snapshots: bool = True,
        save_traces: bool = True,
    ):
        """Initialize logger.

        Args:
            output_dir: Directory to save run logs.
            config: Run configuration to log.
            include_snapshots: Whether to store before/after worlds per event.
            save_traces: Whether end_run() writes the log to disk.
        """
        self.output_dir = Path(output_dir)
        self.config = config
        self.include_snapshots = include_snapshots
        self.save_traces = save_traces

        self.current_run: Optional[RunLog] = None
        self._run_start_time: float = 0.0
        self._unsubscribe: Optional[Callable[[], None]] = None

    @classmethod
    def from_config(cls, config: RunConfig) -> "TraceLogger":
        return cls(
            output_dir=config.logging.output_dir,
            config=config,
            include_snapshots=config.logging.include_snapshots,
            save_traces=config.logging.save_traces,
        )

    def start_run(
        self,
        world_name: str,
        run_idx: int = 0,
        seed: Optional[int] = None,
        code: str = "",
    ):
        """Start logging a new run.

        Args:
            world_name: Name of the world document.
            run_idx: Index of the run in this session.
            seed: Seed used to build the world.
            code: Learner source code.
        """
        self._run_start_time = time.time()
        self.current_run = RunLog(
            world_name=world_name,
            run_idx=run_idx,
            timestamp=datetime.now().isoformat(),
            seed=seed,
            config=self.config.to_dict() if self.config else {},
            code=code,
        )

    def attach(self, engine: ActionEngine):
        """Subscribe to ``engine``; replaces any previous subscription."""
        self.detach()
        self._unsubscribe = engine.subscribe(self.log_event)

    def detach(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def log_event(self, event: TraceEvent):
        """Log one engine event.

        Args:
            event: Event produced by ActionEngine.step().
        """
        if self.current_run is None:
            return

        record = event.to_dict(include_snapshots=self.include_snapshots)
        record["timestamp"] = time.time() - self._run_start_time
        self.current_run.events.append(record)
        self.current_run.total_steps = event.step
        if not event.ok:
            self.current_run.failed_steps += 1

    def log_world_state(self, world: World):
        """Log world state snapshot.

        Args:
            world: World to record.
        """
        if self.current_run is None:
            return

        self.current_run.world_state_trace.append({
            "state": world.to_dict(),
            "timestamp": time.time() - self._run_start_time,
        })

    def end_run(
        self,
        success: bool,
        failure_reason: Optional[str] = None,
    ) -> str:
        """End run and save log.

        Args:
            success: Whether the run met its goal.
            failure_reason: Reason for failure if any.

        Returns:
            Path to saved log file, or "" if nothing was written.
        """
        if self.current_run is None:
            return ""

        self.current_run.success = success
        self.current_run.failure_reason = failure_reason
        self.current_run.total_time = time.time() - self._run_start_time

        filepath = ""
        if self.save_traces:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            filename = f"run_{self.current_run.run_idx:04d}_{self.current_run.timestamp.replace(':', '-')}.json"
            path = self.output_dir / filename
            with open(path, "w") as f:
                json.dump(self.current_run.to_dict(), f, indent=2)
            filepath = str(path)

        self.current_run = None
        return filepath
