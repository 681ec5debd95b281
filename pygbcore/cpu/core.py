"""Fetch-decode-execute engine for the Game Boy CPU core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from pygbcore.bus import (
    HRAM_REGION,
    IE_REGION,
    IO_REGION,
    ROM_REGION,
    WRAM_REGION,
    AddressDecoder,
    ByteStore,
    StorageError,
    StorageView,
)
from pygbcore.utils import TraceRecorder, debug_enabled, debug_log

from .opcodes import CB_PREFIX, OPCODE_TABLE, FrozenInstructionTable, Instruction
from .registers import Flag, Register, RegisterFile


ROM_SIZE = 0x8000
HIGH_PAGE = 0xFF00


class CPUError(Exception):
    """Base error for CPU-related failures."""


class UnknownOpcodeError(CPUError):
    """Raised when no descriptor matches the fetched opcode."""

    def __init__(self, address: int, opcode: int, prefixed: bool = False) -> None:
        self.address = address
        self.opcode = opcode
        self.prefixed = prefixed
        code = f"CB {opcode:02X}" if prefixed else f"{opcode:02X}"
        super().__init__(f"unknown opcode {code} at {address:#06x}")


class PcOutOfRangeError(CPUError):
    """Raised when the computed next PC leaves the 16-bit address space."""

    def __init__(self, pc: int) -> None:
        self.pc = pc
        super().__init__(f"next pc {pc:#x} outside 0x0000-0xffff")


class RomTooLargeError(CPUError):
    """Raised when a ROM image does not fit the fixed ROM window."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"ROM image of {size} bytes exceeds {ROM_SIZE} bytes")


# Everything a step can fail with.
CPU_FAULTS = (CPUError, StorageError)


class CPUStatus(Enum):
    RUNNING = "running"
    FAULTED = "faulted"


@dataclass
class CPU:
    """Game Boy class CPU with its memory regions.

    ``step`` executes exactly one instruction. Any fault leaves the register
    file and memory as they were before the step, moves the CPU to
    ``FAULTED`` and is raised to the caller; further calls to ``step`` raise
    the same fault again.
    """

    rom_image: bytes = b""
    instruction_table: FrozenInstructionTable = field(default=OPCODE_TABLE)
    trace: TraceRecorder | None = None

    registers: RegisterFile = field(init=False)
    decoder: AddressDecoder = field(init=False)
    rom: StorageView = field(init=False)
    wram: StorageView = field(init=False)
    io: StorageView = field(init=False)
    hram: StorageView = field(init=False)
    ie: StorageView = field(init=False)

    status: CPUStatus = field(default=CPUStatus.RUNNING, init=False)
    fault: Exception | None = field(default=None, init=False)
    cycle_count: int = field(default=0, init=False)
    step_count: int = field(default=0, init=False)
    _writes: list[tuple[int, int]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.rom_image) > ROM_SIZE:
            raise RomTooLargeError(len(self.rom_image))
        rom_store = ByteStore(ROM_SIZE, self.rom_image)

        self.registers = RegisterFile()
        self.rom = StorageView(rom_store)
        self.wram = StorageView(ByteStore(WRAM_REGION.length()))
        self.io = StorageView(ByteStore(IO_REGION.length()))
        self.hram = StorageView(ByteStore(HRAM_REGION.length()))
        self.ie = StorageView(ByteStore(IE_REGION.length()))

        self.decoder = AddressDecoder()
        self.decoder.map_region(ROM_REGION, self.rom)
        self.decoder.map_region(WRAM_REGION, self.wram)
        self.decoder.map_region(IO_REGION, self.io)
        self.decoder.map_region(HRAM_REGION, self.hram)
        self.decoder.map_region(IE_REGION, self.ie)

        self._branch_taken = False
        self.reset()

    def reset(self) -> None:
        """Load post-boot register state and clear any fault."""

        self.registers.reset()
        self.status = CPUStatus.RUNNING
        self.fault = None
        self.cycle_count = 0
        self.step_count = 0
        self._writes.clear()

    @property
    def faulted(self) -> bool:
        return self.status is CPUStatus.FAULTED

    def step(self) -> int:
        """Execute a single instruction and return its cycle count."""

        if self.fault is not None:
            raise self.fault

        snapshot = self.registers.snapshot()
        before = self.registers.dump() if self.trace is not None else None
        pc = self.registers.get16(Register.PC)
        instruction: Instruction | None = None
        self._writes.clear()
        self._branch_taken = False
        try:
            instruction = self.decode(pc)
            if debug_enabled("cpu"):
                debug_log("cpu", "pc=%04x %s", pc, instruction.display())
            handler = self._handler(instruction)
            offset = handler(instruction, pc)
            next_pc = self.registers.get16(Register.PC) + offset
            if not 0 <= next_pc <= 0xFFFF:
                raise PcOutOfRangeError(next_pc)
            self.registers.set16(Register.PC, next_pc)
        except CPU_FAULTS as exc:
            self.registers.restore(snapshot)
            self._undo_writes()
            self.status = CPUStatus.FAULTED
            self.fault = exc
            if before is not None and self.trace is not None:
                self.trace.record_step(
                    before,
                    None if instruction is None else instruction.opcode,
                    0,
                    mnemonic="" if instruction is None else instruction.mnemonic,
                    faulted=True,
                    note=type(exc).__name__,
                )
            if debug_enabled("cpu"):
                debug_log("cpu", "fault pc=%04x %s", pc, exc)
            raise

        cycles = instruction.cycles
        if self._branch_taken:
            cycles += instruction.extra_cycles
        self.cycle_count += cycles
        self.step_count += 1
        if before is not None and self.trace is not None:
            self.trace.record_step(before, instruction.opcode, cycles, mnemonic=instruction.mnemonic)
        return cycles

    def _undo_writes(self) -> None:
        for address, old in reversed(self._writes):
            self.decoder.write8(address, old)
        self._writes.clear()

    def run(self, max_steps: int) -> int:
        """Step ``max_steps`` times; a fault propagates out of the loop."""

        for _ in range(max_steps):
            self.step()
        return max_steps

    def decode(self, pc: int) -> Instruction:
        opcode = self.read8(pc)
        prefixed = opcode == CB_PREFIX
        if prefixed:
            opcode = self.read8(pc + 1)
        instruction = self.instruction_table.lookup(opcode, prefixed)
        if instruction is None:
            raise UnknownOpcodeError(pc, opcode, prefixed)
        return instruction

    def _handler(self, instruction: Instruction) -> Callable[[Instruction, int], int]:
        handler = getattr(self, instruction.handler, None)
        if handler is None:
            raise CPUError(f"handler '{instruction.handler}' not implemented")
        return handler

    # ------------------------------------------------------------------
    # Named locations

    def get8(self, name: Register | str) -> int:
        return self.registers.get8(name)

    def set8(self, name: Register | str, value: int) -> None:
        self.registers.set8(name, value)

    def get16(self, name: Register | str) -> int:
        return self.registers.get16(name)

    def set16(self, name: Register | str, value: int) -> None:
        self.registers.set16(name, value)

    def get_flag(self, flag: Flag) -> bool:
        return self.registers.get_flag(flag)

    def set_flag(self, flag: Flag, enabled: bool) -> None:
        self.registers.set_flag(flag, enabled)

    # ------------------------------------------------------------------
    # Memory helpers

    def read8(self, address: int) -> int:
        return self.decoder.read8(address)

    def write8(self, address: int, value: int) -> None:
        old = self.decoder.read8(address)
        self.decoder.write8(address, value)
        self._writes.append((address, old))

    def read16(self, address: int) -> int:
        return self.decoder.read16(address)

    def write16(self, address: int, value: int) -> None:
        old = self.decoder.read16(address)
        self.decoder.write16(address, value)
        self._writes.append((address, old & 0xFF))
        self._writes.append((address + 1, old >> 8))

    def _imm8(self, instruction: Instruction, pc: int) -> int:
        return self.read8(pc + instruction.opcode_length)

    def _imm16(self, instruction: Instruction, pc: int) -> int:
        return self.read16(pc + instruction.opcode_length)

    # ------------------------------------------------------------------
    # Stack helpers

    def push(self, value: int) -> None:
        sp = self.get16(Register.SP) - 2
        self.write16(sp, value & 0xFFFF)
        self.set16(Register.SP, sp)

    def pop(self) -> int:
        sp = self.get16(Register.SP)
        value = self.read16(sp)
        self.set16(Register.SP, sp + 2)
        return value

    # ------------------------------------------------------------------
    # Instruction handlers: each returns the PC offset for the step.

    def op_nop(self, instruction: Instruction, _: int) -> int:
        return instruction.length

    def op_ld_r16_d16(self, instruction: Instruction, pc: int) -> int:
        self.set16(instruction.target, self._imm16(instruction, pc))
        return instruction.length

    def op_ld_r8_d8(self, instruction: Instruction, pc: int) -> int:
        self.set8(instruction.target, self._imm8(instruction, pc))
        return instruction.length

    def op_ld_r8_r8(self, instruction: Instruction, _: int) -> int:
        self.set8(instruction.target, self.get8(instruction.source))
        return instruction.length

    def op_ld_hl_d8(self, instruction: Instruction, pc: int) -> int:
        value = self._imm8(instruction, pc)
        self.write8(self.get16(Register.HL), value)
        return instruction.length

    def op_ldh_a8_a(self, instruction: Instruction, pc: int) -> int:
        address = HIGH_PAGE | self._imm8(instruction, pc)
        self.write8(address, self.get8(Register.A))
        return instruction.length

    def op_ldh_a_a8(self, instruction: Instruction, pc: int) -> int:
        address = HIGH_PAGE | self._imm8(instruction, pc)
        self.set8(Register.A, self.read8(address))
        return instruction.length

    def op_ld_a16_a(self, instruction: Instruction, pc: int) -> int:
        self.write8(self._imm16(instruction, pc), self.get8(Register.A))
        return instruction.length

    def op_push(self, instruction: Instruction, _: int) -> int:
        self.push(self.get16(instruction.source))
        return instruction.length

    def op_pop(self, instruction: Instruction, _: int) -> int:
        value = self.pop()
        if instruction.target == Register.AF:
            # The low nibble of F does not exist in hardware.
            value &= 0xFFF0
        self.set16(instruction.target, value)
        return instruction.length

    def op_xor_r8(self, instruction: Instruction, _: int) -> int:
        result = self.get8(Register.A) ^ self.get8(instruction.source)
        self.set8(Register.A, result)
        self.set8(Register.F, 0)
        self.set_flag(Flag.ZERO, result == 0)
        return instruction.length

    def op_and_d8(self, instruction: Instruction, pc: int) -> int:
        result = self.get8(Register.A) & self._imm8(instruction, pc)
        self.set8(Register.A, result)
        self.set8(Register.F, 0)
        self.set_flag(Flag.ZERO, result == 0)
        self.set_flag(Flag.HALF_CARRY, True)
        return instruction.length

    def op_cp_d8(self, instruction: Instruction, pc: int) -> int:
        self.set_flag(Flag.ZERO, self.get8(Register.A) == self._imm8(instruction, pc))
        return instruction.length

    def op_jr(self, instruction: Instruction, pc: int) -> int:
        displacement = self._imm8(instruction, pc)
        if displacement & 0x80:
            displacement -= 0x100
        condition = instruction.condition
        if condition is not None:
            if self.get_flag(condition.flag) != condition.expected:
                return instruction.length
            self._branch_taken = True
        return instruction.length + displacement

    def op_jp_a16(self, instruction: Instruction, pc: int) -> int:
        self.set16(Register.PC, self._imm16(instruction, pc))
        return 0

    def op_call_a16(self, instruction: Instruction, pc: int) -> int:
        target = self._imm16(instruction, pc)
        self.push(pc + instruction.length)
        self.set16(Register.PC, target)
        return 0

    def op_ret(self, _: Instruction, __: int) -> int:
        self.set16(Register.PC, self.pop())
        return 0

    def op_di(self, instruction: Instruction, _: int) -> int:
        self.set8(Register.IME, 0)
        return instruction.length

    def op_ei(self, instruction: Instruction, _: int) -> int:
        self.set8(Register.IME, 1)
        return instruction.length

    def op_res_bit(self, instruction: Instruction, _: int) -> int:
        mask = 1 << instruction.bit
        self.set8(instruction.target, self.get8(instruction.target) & ~mask & 0xFF)
        return instruction.length

    def op_set_bit(self, instruction: Instruction, _: int) -> int:
        mask = 1 << instruction.bit
        self.set8(instruction.target, self.get8(instruction.target) | mask)
        return instruction.length
