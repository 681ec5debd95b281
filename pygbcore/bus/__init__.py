"""Byte stores, storage views and address decoding for the CPU core."""

from .memory_map import (
    HRAM_REGION,
    IE_REGION,
    IO_REGION,
    ROM_REGION,
    STANDARD_REGIONS,
    WRAM_REGION,
    AddressDecoder,
    Region,
)
from .storage import AccessMode, AccessViolation, ByteStore, MemoryFault, StorageError, StorageView

__all__ = [
    "AccessMode",
    "AccessViolation",
    "AddressDecoder",
    "ByteStore",
    "MemoryFault",
    "Region",
    "StorageError",
    "StorageView",
    "STANDARD_REGIONS",
    "ROM_REGION",
    "WRAM_REGION",
    "IO_REGION",
    "HRAM_REGION",
    "IE_REGION",
]
