"""Tests for ROM image loading helpers."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from pygbcore.loader import RomLoadError, cartridge_title, load_rom, load_rom_from_path


def make_image(title: bytes = b"TETRIS") -> bytes:
    image = bytearray(0x8000)
    image[0x0134 : 0x0134 + len(title)] = title
    return bytes(image)


def test_load_rom_reads_stream() -> None:
    image = make_image()

    assert load_rom(io.BytesIO(image)) == image


def test_load_rom_from_path(tmp_path: Path) -> None:
    path = tmp_path / "game.gb"
    path.write_bytes(make_image(b"POKEMON RED"))

    image = load_rom_from_path(path)

    assert len(image) == 0x8000
    assert cartridge_title(image) == "POKEMON RED"


def test_missing_file_raises_load_error(tmp_path: Path) -> None:
    with pytest.raises(RomLoadError):
        load_rom_from_path(tmp_path / "missing.gb")


def test_title_of_short_image_is_empty() -> None:
    assert cartridge_title(b"\x00" * 0x100) == ""


def test_title_uses_full_field_without_terminator() -> None:
    assert cartridge_title(make_image(b"ABCDEFGHIJKLMNOP")) == "ABCDEFGHIJKLMNOP"
