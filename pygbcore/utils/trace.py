"""Lightweight execution trace buffer for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence

from .debug import debug_log


@dataclass
class TraceEntry:
    pc: int
    opcode: int | None
    mnemonic: str
    cycles: int
    af: int
    bc: int
    de: int
    hl: int
    sp: int
    ime: int
    faulted: bool
    note: str = ""


class TraceRecorder:
    """Ring buffer that stores recent register snapshots, one per step."""

    def __init__(self, capacity: int = 256) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._entries: List[TraceEntry | None] = [None] * capacity
        self._index = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    def record_step(
        self,
        registers: Mapping[str, int],
        opcode: int | None,
        cycles: int,
        *,
        mnemonic: str = "",
        faulted: bool = False,
        note: str = "",
    ) -> None:
        """Record the state observed at the start of a step.

        ``registers`` is the mapping produced by ``RegisterFile.dump()``;
        ``opcode`` is ``None`` when the fetch itself failed.
        """

        entry = TraceEntry(
            pc=registers.get("PC", 0) & 0xFFFF,
            opcode=None if opcode is None else opcode & 0x1FF,
            mnemonic=mnemonic,
            cycles=cycles,
            af=registers.get("AF", 0) & 0xFFFF,
            bc=registers.get("BC", 0) & 0xFFFF,
            de=registers.get("DE", 0) & 0xFFFF,
            hl=registers.get("HL", 0) & 0xFFFF,
            sp=registers.get("SP", 0) & 0xFFFF,
            ime=registers.get("IME", 0) & 0xFF,
            faulted=faulted,
            note=note,
        )
        self._append(entry)

    def entries(self, limit: int | None = None) -> Iterable[TraceEntry]:
        count = self._size if limit is None else min(self._size, max(limit, 0))
        for offset in range(count):
            index = (self._index - count + offset) % self._capacity
            entry = self._entries[index]
            if entry is not None:
                yield entry

    def last_entry(self) -> TraceEntry | None:
        if self._size == 0:
            return None
        index = (self._index - 1) % self._capacity
        return self._entries[index]

    def clear(self) -> None:
        self._entries = [None] * self._capacity
        self._index = 0
        self._size = 0

    def format_entries(self, limit: int | None = None) -> Sequence[str]:
        lines: list[str] = []
        for entry in self.entries(limit):
            if entry.opcode is None:
                opcode = "----"
            elif entry.opcode >= 0x100:
                opcode = f"CB{entry.opcode & 0xFF:02X}"
            else:
                opcode = f"{entry.opcode:02X}  "
            mnemonic = entry.mnemonic or "?"
            flags: list[str] = []
            if entry.faulted:
                flags.append("FAULT")
            if entry.note:
                flags.append(entry.note)
            flag_repr = ",".join(flags) if flags else "-"
            line = (
                f"pc={entry.pc:04X} opcode={opcode} {mnemonic:<12} cycles={entry.cycles:02d} "
                f"AF={entry.af:04X} BC={entry.bc:04X} DE={entry.de:04X} HL={entry.hl:04X} "
                f"SP={entry.sp:04X} IME={entry.ime:d} flags={flag_repr}"
            )
            lines.append(line)
        return lines

    def dump(self, category: str, limit: int | None = None) -> None:
        for line in self.format_entries(limit):
            debug_log(category, line)

    def _append(self, entry: TraceEntry) -> None:
        self._entries[self._index] = entry
        self._index = (self._index + 1) % self._capacity
        if self._size < self._capacity:
            self._size += 1
