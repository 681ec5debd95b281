"""Machine assembly helpers."""

from __future__ import annotations

from .machine import Machine, MachineConfig, RunResult, create_machine

__all__ = [
    "MachineConfig",
    "Machine",
    "RunResult",
    "create_machine",
]
