"""Opcode metadata for the Game Boy CPU core.

Descriptors are grouped by instruction family and combined into one table at
import time. 0xCB-prefixed opcodes live in their own namespace: their
composite opcode is ``0x100 | second_byte`` so ``CB 87`` never collides with
the primary ``87``.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum, auto
from typing import Final, Iterable, Iterator, List, Sequence

from .registers import Flag


CB_PREFIX: Final[int] = 0xCB
PREFIX_BASE: Final[int] = 0x100


class Operand(Enum):
    """Operand shapes understood by the decoder."""

    NONE = auto()
    IMM8 = auto()
    IMM16 = auto()
    REGISTER = auto()

    @property
    def width(self) -> int:
        if self is Operand.IMM8:
            return 1
        if self is Operand.IMM16:
            return 2
        return 0


class Condition(Enum):
    """Branch conditions as (flag, required state)."""

    NZ = (Flag.ZERO, False)
    Z = (Flag.ZERO, True)
    NC = (Flag.CARRY, False)
    C = (Flag.CARRY, True)

    @property
    def flag(self) -> Flag:
        return self.value[0]

    @property
    def expected(self) -> bool:
        return self.value[1]


@dataclass(frozen=True)
class Instruction:
    """Metadata describing a single opcode."""

    opcode: int
    mnemonic: str
    handler: str
    operand1: Operand = Operand.NONE
    operand2: Operand = Operand.NONE
    cycles: int = 4
    extra_cycles: int = 0
    target: str | None = None
    source: str | None = None
    bit: int | None = None
    condition: Condition | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.opcode < PREFIX_BASE * 2:
            raise ValueError(f"opcode out of range: {self.opcode:#x}")
        if self.cycles <= 0:
            raise ValueError("cycles must be positive")
        if self.bit is not None and not 0 <= self.bit <= 7:
            raise ValueError(f"bit index out of range: {self.bit}")

    @property
    def is_prefixed(self) -> bool:
        return self.opcode >= PREFIX_BASE

    @property
    def opcode_length(self) -> int:
        return 2 if self.is_prefixed else 1

    @property
    def length(self) -> int:
        return self.opcode_length + self.operand1.width + self.operand2.width

    @property
    def code(self) -> bytes:
        if self.is_prefixed:
            return bytes((CB_PREFIX, self.opcode & 0xFF))
        return bytes((self.opcode,))

    def display(self) -> str:
        return f"{self.code.hex(' ').upper():<5} {self.mnemonic}"


class InstructionTable:
    """Mutable builder; instruction groups register their descriptors here."""

    def __init__(self) -> None:
        self._instructions: dict[int, Instruction] = {}

    def register(self, instruction: Instruction) -> None:
        opcode = instruction.opcode
        existing = self._instructions.get(opcode)
        if existing is not None:
            raise ValueError(f"opcode {opcode:#05x} already registered as {existing.mnemonic}")
        self._instructions[opcode] = instruction

    def register_all(self, instructions: Iterable[Instruction]) -> None:
        for instruction in instructions:
            self.register(instruction)

    def freeze(self) -> "FrozenInstructionTable":
        return FrozenInstructionTable(self._instructions.values())


class FrozenInstructionTable:
    """Immutable, opcode-sorted table searched with binary search."""

    def __init__(self, instructions: Iterable[Instruction]) -> None:
        ordered = sorted(instructions, key=lambda instruction: instruction.opcode)
        self._instructions: tuple[Instruction, ...] = tuple(ordered)
        self._keys: tuple[int, ...] = tuple(instruction.opcode for instruction in ordered)

    def __len__(self) -> int:
        return len(self._instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._instructions)

    def lookup(self, opcode: int, prefixed: bool = False) -> Instruction | None:
        if not 0 <= opcode <= 0xFF:
            raise ValueError(f"opcode byte out of range: {opcode:#x}")
        key = opcode | (PREFIX_BASE if prefixed else 0)
        index = bisect_left(self._keys, key)
        if index < len(self._keys) and self._keys[index] == key:
            return self._instructions[index]
        return None


def build_instruction_table(*groups: Iterable[Instruction]) -> FrozenInstructionTable:
    """Combine instruction groups into a frozen lookup table."""

    table = InstructionTable()
    for group in groups:
        table.register_all(group)
    return table.freeze()


# Operand encoding order used by the LD r,r' block and the CB bit operations.
# Index 6 is (HL), which these groups do not cover.
R8_ENCODING: Final[Sequence[str | None]] = ("B", "C", "D", "E", "H", "L", None, "A")


def _ld_r8_r8_block() -> List[Instruction]:
    block: List[Instruction] = []
    for target_index, target in enumerate(R8_ENCODING):
        for source_index, source in enumerate(R8_ENCODING):
            if target is None or source is None:
                continue
            block.append(
                Instruction(
                    0x40 + target_index * 8 + source_index,
                    f"LD {target},{source}",
                    "op_ld_r8_r8",
                    Operand.REGISTER,
                    Operand.REGISTER,
                    cycles=4,
                    target=target,
                    source=source,
                )
            )
    return block


def _bit_block(base: int, mnemonic: str, handler: str) -> List[Instruction]:
    block: List[Instruction] = []
    for bit in range(8):
        for register_index, register in enumerate(R8_ENCODING):
            if register is None:
                continue
            block.append(
                Instruction(
                    PREFIX_BASE | (base + bit * 8 + register_index),
                    f"{mnemonic} {bit},{register}",
                    handler,
                    Operand.REGISTER,
                    cycles=8,
                    target=register,
                    bit=bit,
                )
            )
    return block


LOAD_INSTRUCTIONS: Sequence[Instruction] = (
    # 16-bit immediates
    Instruction(0x01, "LD BC,d16", "op_ld_r16_d16", Operand.REGISTER, Operand.IMM16, 12, target="BC"),
    Instruction(0x11, "LD DE,d16", "op_ld_r16_d16", Operand.REGISTER, Operand.IMM16, 12, target="DE"),
    Instruction(0x21, "LD HL,d16", "op_ld_r16_d16", Operand.REGISTER, Operand.IMM16, 12, target="HL"),
    Instruction(0x31, "LD SP,d16", "op_ld_r16_d16", Operand.REGISTER, Operand.IMM16, 12, target="SP"),
    # 8-bit immediates
    Instruction(0x06, "LD B,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="B"),
    Instruction(0x0E, "LD C,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="C"),
    Instruction(0x16, "LD D,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="D"),
    Instruction(0x1E, "LD E,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="E"),
    Instruction(0x26, "LD H,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="H"),
    Instruction(0x2E, "LD L,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="L"),
    Instruction(0x3E, "LD A,d8", "op_ld_r8_d8", Operand.REGISTER, Operand.IMM8, 8, target="A"),
    Instruction(0x36, "LD (HL),d8", "op_ld_hl_d8", Operand.REGISTER, Operand.IMM8, 12),
    # Memory transfers through the accumulator
    Instruction(0xE0, "LDH (a8),A", "op_ldh_a8_a", Operand.IMM8, Operand.REGISTER, 12),
    Instruction(0xF0, "LDH A,(a8)", "op_ldh_a_a8", Operand.REGISTER, Operand.IMM8, 12),
    Instruction(0xEA, "LD (a16),A", "op_ld_a16_a", Operand.IMM16, Operand.REGISTER, 16),
    # Stack
    Instruction(0xC1, "POP BC", "op_pop", Operand.REGISTER, cycles=12, target="BC"),
    Instruction(0xD1, "POP DE", "op_pop", Operand.REGISTER, cycles=12, target="DE"),
    Instruction(0xE1, "POP HL", "op_pop", Operand.REGISTER, cycles=12, target="HL"),
    Instruction(0xF1, "POP AF", "op_pop", Operand.REGISTER, cycles=12, target="AF"),
    Instruction(0xC5, "PUSH BC", "op_push", Operand.REGISTER, cycles=16, source="BC"),
    Instruction(0xD5, "PUSH DE", "op_push", Operand.REGISTER, cycles=16, source="DE"),
    Instruction(0xE5, "PUSH HL", "op_push", Operand.REGISTER, cycles=16, source="HL"),
    Instruction(0xF5, "PUSH AF", "op_push", Operand.REGISTER, cycles=16, source="AF"),
    *_ld_r8_r8_block(),
)

ARITHMETIC_INSTRUCTIONS: Sequence[Instruction] = (
    Instruction(0xA8, "XOR A,B", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="B"),
    Instruction(0xA9, "XOR A,C", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="C"),
    Instruction(0xAA, "XOR A,D", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="D"),
    Instruction(0xAB, "XOR A,E", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="E"),
    Instruction(0xAC, "XOR A,H", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="H"),
    Instruction(0xAD, "XOR A,L", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="L"),
    Instruction(0xAF, "XOR A,A", "op_xor_r8", Operand.REGISTER, Operand.REGISTER, source="A"),
    Instruction(0xE6, "AND d8", "op_and_d8", Operand.IMM8, cycles=8),
    Instruction(0xFE, "CP d8", "op_cp_d8", Operand.IMM8, cycles=8),
)

CONTROL_INSTRUCTIONS: Sequence[Instruction] = (
    Instruction(0x00, "NOP", "op_nop"),
    Instruction(0x18, "JR r8", "op_jr", Operand.IMM8, cycles=12),
    Instruction(0x20, "JR NZ,r8", "op_jr", Operand.IMM8, cycles=8, extra_cycles=4, condition=Condition.NZ),
    Instruction(0x28, "JR Z,r8", "op_jr", Operand.IMM8, cycles=8, extra_cycles=4, condition=Condition.Z),
    Instruction(0x30, "JR NC,r8", "op_jr", Operand.IMM8, cycles=8, extra_cycles=4, condition=Condition.NC),
    Instruction(0x38, "JR C,r8", "op_jr", Operand.IMM8, cycles=8, extra_cycles=4, condition=Condition.C),
    Instruction(0xC3, "JP a16", "op_jp_a16", Operand.IMM16, cycles=16),
    Instruction(0xC9, "RET", "op_ret", cycles=16),
    Instruction(0xCD, "CALL a16", "op_call_a16", Operand.IMM16, cycles=24),
    Instruction(0xF3, "DI", "op_di"),
    Instruction(0xFB, "EI", "op_ei"),
)

BIT_INSTRUCTIONS: Sequence[Instruction] = (
    *_bit_block(0x80, "RES", "op_res_bit"),
    *_bit_block(0xC0, "SET", "op_set_bit"),
)


OPCODE_TABLE: FrozenInstructionTable = build_instruction_table(
    LOAD_INSTRUCTIONS,
    ARITHMETIC_INSTRUCTIONS,
    CONTROL_INSTRUCTIONS,
    BIT_INSTRUCTIONS,
)
