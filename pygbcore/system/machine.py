"""Machine assembly and the headless run loop."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional

from pygbcore.cpu import CPU, CPU_FAULTS, Register
from pygbcore.utils import TraceRecorder, debug_enabled, debug_log


@dataclass
class MachineConfig:
    """Runtime configuration for a machine."""

    rom_image: Optional[bytes] = None
    max_steps: Optional[int] = None
    trace_capacity: int = 0
    start_pc: Optional[int] = None


@dataclass
class RunResult:
    """Outcome of :meth:`Machine.run`."""

    steps: int
    cycles: int
    fault: Optional[Exception] = None

    @property
    def faulted(self) -> bool:
        return self.fault is not None


@dataclass
class Machine:
    """Owns the CPU and serialises access to it."""

    cpu: CPU
    config: MachineConfig
    trace: TraceRecorder | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    def step(self) -> int:
        with self.lock:
            return self.cpu.step()

    def run(self, max_steps: int | None = None) -> RunResult:
        """Step until the budget runs out or the CPU faults.

        With no budget from either the argument or the config the loop runs
        until a fault.
        """

        budget = max_steps if max_steps is not None else self.config.max_steps
        steps = 0
        cycles = 0
        while budget is None or steps < budget:
            try:
                cycles += self.step()
            except CPU_FAULTS as exc:
                debug_log("cpu", "halted after %d steps: %s", steps, exc)
                if self.trace is not None and debug_enabled("trace"):
                    self.trace.dump("trace")
                return RunResult(steps, cycles, exc)
            steps += 1
        return RunResult(steps, cycles)

    def describe_registers(self) -> str:
        state = self.cpu.registers.dump()
        parts = [f"{name}={value:04X}" for name, value in state.items() if name != Register.IME.value]
        parts.append(f"IME={state[Register.IME.value]}")
        parts.append(f"flags={self.cpu.registers.describe_flags()}")
        return " ".join(parts)


def create_machine(config: MachineConfig) -> Machine:
    """Instantiate a machine with the requested configuration."""

    trace = TraceRecorder(config.trace_capacity) if config.trace_capacity > 0 else None
    cpu = CPU(config.rom_image or b"", trace=trace)
    if config.start_pc is not None:
        cpu.set16(Register.PC, config.start_pc)
    return Machine(cpu=cpu, config=config, trace=trace)
