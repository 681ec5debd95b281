"""16-bit address decoding for the Game Boy CPU core.

The decoder maps each address onto exactly one backing :class:`StorageView`
and a region-relative offset. Addresses outside every mapped region are a
:class:`MemoryFault`; there is no open-bus fallback.
"""

from __future__ import annotations

from bisect import bisect_right, insort
from dataclasses import dataclass
from typing import Iterator

from pygbcore.utils import debug_enabled, debug_log

from .storage import MemoryFault, StorageView


ADDRESS_SPACE_END = 0xFFFF


@dataclass(frozen=True, order=True)
class Region:
    """Named, inclusive address range within the 16-bit space."""

    start: int
    end: int
    name: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end <= ADDRESS_SPACE_END:
            raise ValueError(f"invalid region {self.start:#06x}-{self.end:#06x}")

    def length(self) -> int:
        return self.end - self.start + 1

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end


ROM_REGION = Region(0x0000, 0x7FFF, "ROM")
WRAM_REGION = Region(0xC000, 0xDFFF, "WRAM")
IO_REGION = Region(0xFF00, 0xFF4B, "IO")
HRAM_REGION = Region(0xFF80, 0xFFFE, "HRAM")
IE_REGION = Region(0xFFFF, 0xFFFF, "IE")

STANDARD_REGIONS: tuple[Region, ...] = (
    ROM_REGION,
    WRAM_REGION,
    IO_REGION,
    HRAM_REGION,
    IE_REGION,
)


class AddressDecoder:
    """Dispatches 16-bit addresses to region views."""

    def __init__(self) -> None:
        self._regions: list[Region] = []
        self._starts: list[int] = []
        self._views: dict[Region, StorageView] = {}

    def map_region(self, region: Region, view: StorageView) -> None:
        for existing in self._regions:
            if region.start <= existing.end and existing.start <= region.end:
                raise ValueError(
                    f"region {region.name} {region.start:#06x}-{region.end:#06x} "
                    f"overlaps {existing.name} {existing.start:#06x}-{existing.end:#06x}"
                )
        if view.size() != region.length():
            raise ValueError(
                f"view of {view.size()} bytes cannot back region {region.name} "
                f"of {region.length()} bytes"
            )
        insort(self._regions, region)
        self._starts = [mapped.start for mapped in self._regions]
        self._views[region] = view
        if debug_enabled("bus"):
            debug_log("bus", "mapped %s %04x-%04x", region.name, region.start, region.end)

    def regions(self) -> Iterator[Region]:
        return iter(tuple(self._regions))

    def view_for(self, region: Region) -> StorageView:
        return self._views[region]

    def region_for(self, address: int) -> Region:
        if not 0 <= address <= ADDRESS_SPACE_END:
            raise MemoryFault(f"address {address:#x} outside the 16-bit address space")
        index = bisect_right(self._starts, address) - 1
        if index >= 0:
            region = self._regions[index]
            if region.contains(address):
                return region
        if debug_enabled("bus"):
            debug_log("bus", "unmapped access addr=%04x", address)
        raise MemoryFault(f"address {address:#06x} not mapped")

    def decode(self, address: int) -> tuple[StorageView, int]:
        region = self.region_for(address)
        return self._views[region], address - region.start

    def read8(self, address: int) -> int:
        view, offset = self.decode(address)
        return view.read8(offset)

    def write8(self, address: int, value: int) -> None:
        view, offset = self.decode(address)
        view.write8(offset, value)

    def read16(self, address: int) -> int:
        view, offset = self.decode(address)
        return view.read16(offset)

    def write16(self, address: int, value: int) -> None:
        view, offset = self.decode(address)
        view.write16(offset, value)
