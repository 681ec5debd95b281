"""Loaders for ROM images."""

from __future__ import annotations

from .rom import RomLoadError, cartridge_title, load_rom, load_rom_from_path

__all__ = [
    "RomLoadError",
    "cartridge_title",
    "load_rom",
    "load_rom_from_path",
]
