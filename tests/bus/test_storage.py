"""Tests for byte stores and permissioned storage views."""

import pytest

from pygbcore.bus import AccessMode, AccessViolation, ByteStore, MemoryFault, StorageView


def test_byte_store_bounds_checked() -> None:
    store = ByteStore(4)

    store.store(3, 0x1FF)

    assert store.load(3) == 0xFF
    with pytest.raises(MemoryFault):
        store.load(4)
    with pytest.raises(MemoryFault):
        store.store(-1, 0)


def test_byte_store_pads_initial_data() -> None:
    store = ByteStore(8, b"\x01\x02")

    assert len(store) == 8
    assert store.snapshot() == b"\x01\x02" + bytes(6)


def test_byte_store_resize_keeps_views_in_bounds() -> None:
    store = ByteStore(2)
    view = StorageView(store)

    store.resize(4)
    view.write8(3, 0x42)
    assert view.size() == 4

    store.resize(1)
    with pytest.raises(MemoryFault):
        view.read8(3)


def test_write16_is_little_endian() -> None:
    view = StorageView(ByteStore(4))

    view.write16(1, 0xBEEF)

    assert view.read8(1) == 0xEF
    assert view.read8(2) == 0xBE
    assert view.read16(1) == 0xBEEF


def test_16bit_access_checks_second_byte() -> None:
    view = StorageView(ByteStore(4))

    with pytest.raises(MemoryFault):
        view.read16(3)
    with pytest.raises(MemoryFault):
        view.write16(3, 0x1234)
    # Nothing was written by the rejected access.
    assert view.read8(3) == 0x00


def test_access_mode_none_rejects_width() -> None:
    store = ByteStore(2)
    bytes_only = StorageView(store, mode8=AccessMode.READ_WRITE, mode16=AccessMode.NONE)
    words_only = StorageView(store, mode8=AccessMode.NONE, mode16=AccessMode.READ_WRITE)

    with pytest.raises(AccessViolation):
        bytes_only.read16(0)
    with pytest.raises(AccessViolation):
        bytes_only.write16(0, 0x1234)
    with pytest.raises(AccessViolation):
        words_only.read8(0)
    with pytest.raises(AccessViolation):
        words_only.write8(0, 0x12)


def test_read_only_mode_rejects_writes() -> None:
    view = StorageView(ByteStore(2, b"\x34\x12"), mode8=AccessMode.READ_ONLY, mode16=AccessMode.READ_ONLY)

    assert view.read8(0) == 0x34
    assert view.read16(0) == 0x1234
    with pytest.raises(AccessViolation):
        view.write8(0, 0)
    with pytest.raises(AccessViolation):
        view.write16(0, 0)


def test_duplicate_shares_bytes_with_new_modes() -> None:
    original = StorageView(ByteStore(2))
    words = original.duplicate(AccessMode.NONE, AccessMode.READ_WRITE)

    original.write8(0, 0xCD)
    original.write8(1, 0xAB)

    assert words.read16(0) == 0xABCD
    assert words.store is original.store
    with pytest.raises(AccessViolation):
        words.read8(0)


def test_subview_narrows_range_and_keeps_modes() -> None:
    store = ByteStore(8)
    parent = StorageView(store, mode8=AccessMode.READ_WRITE, mode16=AccessMode.NONE)
    child = parent.subview(2, 2)

    child.write8(1, 0x77)

    assert store.load(3) == 0x77
    assert child.size() == 2
    assert child.mode16 is AccessMode.NONE
    with pytest.raises(MemoryFault):
        child.read8(2)


def test_subview_rejects_range_past_parent() -> None:
    parent = StorageView(ByteStore(4))

    with pytest.raises(MemoryFault):
        parent.subview(3, 2)
    with pytest.raises(MemoryFault):
        parent.subview(5)
