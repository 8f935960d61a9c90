"""Centralized configuration for the robogrid system.

All configuration dataclasses for the engine, the world builder and logging.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional

import yaml


@dataclass
class EngineConfig:
    """Configuration for action playback."""

    # Pacing (think(ms) is scaled by pace_multiplier)
    default_pace_ms: float = 1.0
    pace_multiplier: float = 5.0
    fallback_pace_ms: float = 10.0  # Used when think() gets a bad value
    min_interval_ms: float = 1.0

    # Playback stops at the first failed event
    stop_on_failure: bool = True


@dataclass
class BuilderConfig:
    """Configuration for world construction."""

    default_width: int = 10
    default_height: int = 10

    # Seed for "lo-hi" object ranges (None = nondeterministic)
    seed: Optional[int] = None


@dataclass
class LoggingConfig:
    """Configuration for trace logging."""

    output_dir: str = "logs"
    save_traces: bool = True
    include_snapshots: bool = True  # Store before/after worlds per event


@dataclass
class RunConfig:
    """Top-level configuration for a run."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    builder: BuilderConfig = field(default_factory=BuilderConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "RunConfig":
        """Create from dictionary."""
        d = dict(d)
        engine = EngineConfig(**d.pop("engine", {}))
        builder = BuilderConfig(**d.pop("builder", {}))
        logging = LoggingConfig(**d.pop("logging", {}))
        return cls(engine=engine, builder=builder, logging=logging, **d)

    @classmethod
    def from_yaml(cls, path: str) -> "RunConfig":
        """Load from a YAML file. Missing sections keep their defaults."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)
