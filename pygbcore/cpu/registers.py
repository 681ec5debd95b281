"""Register file and flag register for the Game Boy CPU core.

All twelve register bytes live in one :class:`ByteStore`. Every 8-bit register
and every 16-bit pair is a :class:`StorageView` over that store, so writing
``B`` is immediately visible through ``BC`` and vice versa. The 8-bit views
forbid 16-bit access and the pair views forbid 8-bit access.

Byte layout (little-endian pairs, low register first)::

    0 F   1 A   2 C   3 B   4 E   5 D   6 L   7 H   8-9 SP   10-11 PC
"""

from __future__ import annotations

from enum import Enum
from typing import Dict

from pygbcore.bus import AccessMode, ByteStore, StorageView


REGISTER_FILE_SIZE = 12


class Register(str, Enum):
    """Named CPU locations reachable through the register file."""

    F = "F"
    A = "A"
    C = "C"
    B = "B"
    E = "E"
    D = "D"
    L = "L"
    H = "H"
    AF = "AF"
    BC = "BC"
    DE = "DE"
    HL = "HL"
    SP = "SP"
    PC = "PC"
    IME = "IME"


class Flag(Enum):
    """Named flags and their bit positions within ``F``."""

    ZERO = 4
    HALF_CARRY = 5
    SUBTRACTION = 6
    CARRY = 7

    @property
    def mask(self) -> int:
        return 1 << self.value


REGISTER_OFFSETS_8: Dict[Register, int] = {
    Register.F: 0,
    Register.A: 1,
    Register.C: 2,
    Register.B: 3,
    Register.E: 4,
    Register.D: 5,
    Register.L: 6,
    Register.H: 7,
}

REGISTER_OFFSETS_16: Dict[Register, int] = {
    Register.AF: 0,
    Register.BC: 2,
    Register.DE: 4,
    Register.HL: 6,
    Register.SP: 8,
    Register.PC: 10,
}

# Register state left behind by the boot ROM.
POST_BOOT_VALUES: Dict[Register, int] = {
    Register.AF: 0x01B0,
    Register.BC: 0x0013,
    Register.DE: 0x00D8,
    Register.HL: 0x014D,
    Register.SP: 0xFFFE,
    Register.PC: 0x0100,
}


class RegisterFile:
    """Aliased 8/16-bit views over the CPU's register bytes plus the IME flag."""

    def __init__(self) -> None:
        self._store = ByteStore(REGISTER_FILE_SIZE)
        self._ime_store = ByteStore(1)
        whole = StorageView(self._store)
        bytes8 = whole.duplicate(AccessMode.READ_WRITE, AccessMode.NONE)
        pairs = whole.duplicate(AccessMode.NONE, AccessMode.READ_WRITE)

        self._views: Dict[Register, StorageView] = {}
        for name, offset in REGISTER_OFFSETS_8.items():
            self._views[name] = bytes8.subview(offset, 1)
        for name, offset in REGISTER_OFFSETS_16.items():
            self._views[name] = pairs.subview(offset, 2)
        self._views[Register.IME] = StorageView(
            self._ime_store, mode8=AccessMode.READ_WRITE, mode16=AccessMode.NONE
        )

    def view(self, name: Register | str) -> StorageView:
        return self._views[Register(name)]

    def get8(self, name: Register | str) -> int:
        return self.view(name).read8(0)

    def set8(self, name: Register | str, value: int) -> None:
        self.view(name).write8(0, value)

    def get16(self, name: Register | str) -> int:
        return self.view(name).read16(0)

    def set16(self, name: Register | str, value: int) -> None:
        self.view(name).write16(0, value)

    def get_flag(self, flag: Flag) -> bool:
        return (self.get8(Register.F) & flag.mask) != 0

    def set_flag(self, flag: Flag, enabled: bool) -> None:
        flags = self.get8(Register.F) & ~flag.mask
        if enabled:
            flags |= flag.mask
        self.set8(Register.F, flags & 0xFF)

    def reset(self) -> None:
        """Load the post-boot-ROM register values and clear IME."""

        for name, value in POST_BOOT_VALUES.items():
            self.set16(name, value)
        self.set8(Register.IME, 0)

    def snapshot(self) -> bytes:
        return self._store.snapshot() + self._ime_store.snapshot()

    def restore(self, data: bytes) -> None:
        if len(data) != REGISTER_FILE_SIZE + 1:
            raise ValueError(f"register snapshot must be {REGISTER_FILE_SIZE + 1} bytes")
        self._store.restore(data[:REGISTER_FILE_SIZE])
        self._ime_store.restore(data[REGISTER_FILE_SIZE:])

    def dump(self) -> Dict[str, int]:
        state = {name.value: self.get16(name) for name in REGISTER_OFFSETS_16}
        state[Register.IME.value] = self.get8(Register.IME)
        return state

    def describe_flags(self) -> str:
        """Return ``ZHNC``-style flag letters, ``-`` for cleared flags."""

        letters = (
            (Flag.ZERO, "Z"),
            (Flag.SUBTRACTION, "N"),
            (Flag.HALF_CARRY, "H"),
            (Flag.CARRY, "C"),
        )
        return "".join(letter if self.get_flag(flag) else "-" for flag, letter in letters)
