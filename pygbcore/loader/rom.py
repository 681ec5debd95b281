"""ROM image loading for drivers of the CPU core.

The core only accepts a byte sequence; reading it from disk and inspecting
the cartridge header happen here.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from pygbcore.utils import debug_log


class RomLoadError(RuntimeError):
    """Raised when a ROM image cannot be read."""


TITLE_START = 0x0134
TITLE_END = 0x0144


def load_rom(stream: BinaryIO) -> bytes:
    """Read a complete ROM image from ``stream``."""

    try:
        data = stream.read()
    except OSError as exc:
        raise RomLoadError(f"failed to read ROM image: {exc}") from exc
    if data is None:
        raise RomLoadError("ROM stream returned no data")
    image = bytes(data)
    debug_log("loader", "read %d bytes title=%r", len(image), cartridge_title(image))
    return image


def load_rom_from_path(path: Path) -> bytes:
    """Load a ROM image from the filesystem."""

    try:
        with path.open("rb") as handle:
            return load_rom(handle)
    except OSError as exc:
        raise RomLoadError(f"cannot open ROM file {path}: {exc}") from exc


def cartridge_title(image: bytes) -> str:
    """Return the ASCII title stored in the cartridge header, if present."""

    if len(image) < TITLE_END:
        return ""
    raw = image[TITLE_START:TITLE_END].split(b"\x00", 1)[0]
    return raw.decode("ascii", errors="replace").strip()
