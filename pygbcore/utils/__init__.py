"""Utility helpers for the Game Boy CPU core."""

from .debug import debug_enabled, debug_log, reset_debug_categories
from .trace import TraceEntry, TraceRecorder

__all__ = [
    "debug_enabled",
    "debug_log",
    "reset_debug_categories",
    "TraceEntry",
    "TraceRecorder",
]
