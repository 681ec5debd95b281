"""CPU package: register file, instruction table and execution engine."""

from .core import (
    CPU,
    CPU_FAULTS,
    CPUError,
    CPUStatus,
    PcOutOfRangeError,
    RomTooLargeError,
    UnknownOpcodeError,
)
from .registers import Flag, Register, RegisterFile
from . import opcodes

__all__ = [
    "CPU",
    "CPU_FAULTS",
    "CPUError",
    "CPUStatus",
    "Flag",
    "PcOutOfRangeError",
    "Register",
    "RegisterFile",
    "RomTooLargeError",
    "UnknownOpcodeError",
    "opcodes",
]
