"""Baseline tests ensuring the package layout loads correctly."""

import pygbcore


def test_package_exports() -> None:
    for name in ("bus", "cpu", "loader", "system", "utils"):
        assert hasattr(pygbcore, name), f"missing submodule: {name}"


def test_bus_exports() -> None:
    from pygbcore import bus

    for name in ("ByteStore", "StorageView", "AddressDecoder", "AccessMode", "MemoryFault", "AccessViolation"):
        assert hasattr(bus, name), f"bus missing symbol: {name}"


def test_cpu_exports() -> None:
    from pygbcore import cpu

    for name in ("CPU", "RegisterFile", "Flag", "Register", "UnknownOpcodeError", "PcOutOfRangeError", "RomTooLargeError"):
        assert hasattr(cpu, name), f"cpu missing symbol: {name}"
