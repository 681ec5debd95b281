"""Tests for machine assembly and the headless run loop."""

from __future__ import annotations

import threading

from pygbcore.bus import MemoryFault
from pygbcore.cpu import Register
from pygbcore.system import MachineConfig, create_machine


def make_rom(code: bytes, at: int = 0x0100) -> bytes:
    rom = bytearray(0x8000)
    rom[at : at + len(code)] = code
    return bytes(rom)


def test_run_stops_at_step_budget() -> None:
    # JR -2 spins forever at the entry point.
    machine = create_machine(MachineConfig(rom_image=make_rom(bytes([0x18, 0xFE])), max_steps=10))

    result = machine.run()

    assert result.steps == 10
    assert result.cycles == 120
    assert result.faulted is False
    assert machine.cpu.get16(Register.PC) == 0x0100


def test_run_argument_overrides_config_budget() -> None:
    machine = create_machine(MachineConfig(rom_image=make_rom(bytes([0x18, 0xFE])), max_steps=10))

    assert machine.run(3).steps == 3


def test_run_captures_fault() -> None:
    # JP 0x8000 lands in unmapped video memory.
    machine = create_machine(MachineConfig(rom_image=make_rom(bytes([0x00, 0xC3, 0x00, 0x80])), trace_capacity=4))

    result = machine.run()

    assert result.steps == 2
    assert isinstance(result.fault, MemoryFault)
    assert machine.cpu.faulted
    assert machine.trace is not None
    assert machine.trace.last_entry().faulted is True


def test_start_pc_override_and_register_description() -> None:
    machine = create_machine(MachineConfig(rom_image=make_rom(b""), start_pc=0x0150))

    text = machine.describe_registers()

    assert machine.cpu.get16(Register.PC) == 0x0150
    assert "AF=01B0" in text
    assert "PC=0150" in text
    assert "IME=0" in text
    assert "flags=Z-HC" in text


def test_machine_without_rom_uses_blank_image() -> None:
    machine = create_machine(MachineConfig())

    assert machine.trace is None
    assert machine.step() == 4


def test_steps_are_serialised_across_threads() -> None:
    machine = create_machine(MachineConfig(rom_image=make_rom(bytes([0x18, 0xFE]))))

    workers = [threading.Thread(target=machine.run, args=(50,)) for _ in range(4)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert machine.cpu.step_count == 200
    assert machine.cpu.get16(Register.PC) == 0x0100
