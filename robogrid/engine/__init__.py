"""
Action engine and paced playback.
"""

from .engine import ActionEngine, TraceEvent
from .playback import Playback, PlaybackResult

__all__ = [
    "ActionEngine",
    "TraceEvent",
    "Playback",
    "PlaybackResult",
]
