"""Byte stores and permissioned views for the Game Boy CPU core.

A :class:`ByteStore` owns raw bytes. A :class:`StorageView` is a cheap window
onto a store (base offset plus an optional length) that gates 8-bit and
16-bit accesses separately. Several views may share one store, which is how
the register file exposes ``BC`` and its halves ``B``/``C`` over the same two
bytes.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class StorageError(Exception):
    """Base error for byte store and view failures."""


class AccessViolation(StorageError):
    """Raised when a view's access mode forbids the requested width or direction."""


class MemoryFault(StorageError):
    """Raised when an address (or either byte of a 16-bit access) is out of range."""


class AccessMode(Enum):
    """Permission attached to one access width of a view."""

    NONE = "none"
    READ_ONLY = "r"
    READ_WRITE = "rw"

    @property
    def readable(self) -> bool:
        return self is not AccessMode.NONE

    @property
    def writable(self) -> bool:
        return self is AccessMode.READ_WRITE


class ByteStore:
    """Resizable, bounds-checked byte buffer shared by any number of views."""

    def __init__(self, size: int = 0, data: bytes | bytearray | None = None) -> None:
        if size < 0:
            raise ValueError("store size must be non-negative")
        self._data = bytearray(data) if data is not None else bytearray(size)
        if data is not None and size > len(self._data):
            self.resize(size)

    def __len__(self) -> int:
        return len(self._data)

    def resize(self, size: int) -> None:
        if size < 0:
            raise ValueError("store size must be non-negative")
        if size > len(self._data):
            self._data.extend(bytes(size - len(self._data)))
        else:
            del self._data[size:]

    def load(self, index: int) -> int:
        if not 0 <= index < len(self._data):
            raise MemoryFault(f"index {index:#06x} outside store of {len(self._data)} bytes")
        return self._data[index]

    def store(self, index: int, value: int) -> None:
        if not 0 <= index < len(self._data):
            raise MemoryFault(f"index {index:#06x} outside store of {len(self._data)} bytes")
        self._data[index] = value & 0xFF

    def snapshot(self) -> bytes:
        return bytes(self._data)

    def restore(self, data: bytes) -> None:
        self._data[:] = data


@dataclass(frozen=True)
class StorageView:
    """Typed, permissioned window onto a :class:`ByteStore`.

    ``length`` of ``None`` means the view extends to the end of the store, so a
    store that is later resized stays fully addressable.
    """

    store: ByteStore
    base: int = 0
    length: int | None = None
    mode8: AccessMode = AccessMode.READ_WRITE
    mode16: AccessMode = AccessMode.READ_WRITE

    def __post_init__(self) -> None:
        if self.base < 0:
            raise ValueError("view base must be non-negative")
        if self.length is not None and self.length < 0:
            raise ValueError("view length must be non-negative")

    def size(self) -> int:
        if self.length is not None:
            return self.length
        return max(len(self.store) - self.base, 0)

    def duplicate(self, mode8: AccessMode, mode16: AccessMode) -> "StorageView":
        """Return a view over the same bytes with different access modes."""

        return replace(self, mode8=mode8, mode16=mode16)

    def subview(self, start: int, length: int | None = None) -> "StorageView":
        """Return a narrower view starting ``start`` bytes into this one."""

        size = self.size()
        if not 0 <= start <= size:
            raise MemoryFault(f"subview start {start:#06x} outside view of {size} bytes")
        remaining = size - start
        if length is None:
            length = remaining
        elif length > remaining:
            raise MemoryFault(f"subview {start:#06x}+{length} exceeds view of {size} bytes")
        return replace(self, base=self.base + start, length=length)

    def read8(self, address: int) -> int:
        if not self.mode8.readable:
            raise AccessViolation("8-bit reads are not permitted on this view")
        return self.store.load(self._index(address))

    def write8(self, address: int, value: int) -> None:
        if not self.mode8.writable:
            raise AccessViolation("8-bit writes are not permitted on this view")
        self.store.store(self._index(address), value & 0xFF)

    def read16(self, address: int) -> int:
        if not self.mode16.readable:
            raise AccessViolation("16-bit reads are not permitted on this view")
        low = self.store.load(self._index(address))
        high = self.store.load(self._index(address + 1))
        return (high << 8) | low

    def write16(self, address: int, value: int) -> None:
        if not self.mode16.writable:
            raise AccessViolation("16-bit writes are not permitted on this view")
        low_index = self._index(address)
        high_index = self._index(address + 1)
        self.store.store(low_index, value & 0xFF)
        self.store.store(high_index, (value >> 8) & 0xFF)

    def _index(self, address: int) -> int:
        if not 0 <= address < self.size():
            raise MemoryFault(f"offset {address:#06x} outside view of {self.size()} bytes")
        return self.base + address
