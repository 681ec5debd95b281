"""Game Boy class CPU core.

Subpackages:

* ``bus``: byte stores, permissioned views and the 16-bit address decoder.
* ``cpu``: register file, instruction table and execution engine.
* ``loader``: ROM image helpers for drivers.
* ``system``: machine assembly and the headless run loop used by ``run.py``.
* ``utils``: debug logging and the execution trace buffer.
"""

from __future__ import annotations

from . import bus, cpu, loader, system, utils

__all__: list[str] = [
    "bus",
    "cpu",
    "loader",
    "system",
    "utils",
]
