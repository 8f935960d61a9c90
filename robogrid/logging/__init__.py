"""Logging module for robogrid.

Provides run trace logging.
"""

from .trace_logger import RunLog, TraceLogger

__all__ = [
    "RunLog",
    "TraceLogger",
]
