"""Tests for the aliased register file and flag register."""

import pytest

from pygbcore.bus import AccessViolation
from pygbcore.cpu import Flag, Register, RegisterFile


PAIRS = [
    (Register.AF, Register.A, Register.F),
    (Register.BC, Register.B, Register.C),
    (Register.DE, Register.D, Register.E),
    (Register.HL, Register.H, Register.L),
]


def test_post_boot_values() -> None:
    regs = RegisterFile()
    regs.reset()

    assert regs.get16(Register.AF) == 0x01B0
    assert regs.get16(Register.BC) == 0x0013
    assert regs.get16(Register.DE) == 0x00D8
    assert regs.get16(Register.HL) == 0x014D
    assert regs.get16(Register.SP) == 0xFFFE
    assert regs.get16(Register.PC) == 0x0100
    assert regs.get8(Register.IME) == 0


def test_halves_alias_pair() -> None:
    regs = RegisterFile()

    regs.set8(Register.B, 0x12)
    regs.set8(Register.C, 0x34)
    assert regs.get16(Register.BC) == 0x1234

    regs.set16(Register.HL, 0xABCD)
    assert regs.get8(Register.H) == 0xAB
    assert regs.get8(Register.L) == 0xCD


@pytest.mark.parametrize(("pair", "high", "low"), PAIRS)
def test_every_pair_aliases_its_halves(pair: Register, high: Register, low: Register) -> None:
    regs = RegisterFile()

    regs.set16(pair, 0x5AA5)
    assert regs.get8(high) == 0x5A
    assert regs.get8(low) == 0xA5

    regs.set8(high, 0x01)
    assert regs.get16(pair) == 0x01A5


def test_pairs_do_not_overlap() -> None:
    regs = RegisterFile()

    regs.set16(Register.SP, 0xFFFF)
    regs.set16(Register.PC, 0xFFFF)

    for pair, _, _ in PAIRS:
        assert regs.get16(pair) == 0


def test_wrong_width_is_an_access_violation() -> None:
    regs = RegisterFile()

    with pytest.raises(AccessViolation):
        regs.get8(Register.AF)
    with pytest.raises(AccessViolation):
        regs.set16(Register.A, 0x1234)
    with pytest.raises(AccessViolation):
        regs.get16(Register.IME)


def test_names_accept_strings() -> None:
    regs = RegisterFile()

    regs.set16("DE", 0x0102)

    assert regs.get8("D") == 0x01
    with pytest.raises(ValueError):
        regs.get8("Q")


def test_flag_bit_positions() -> None:
    assert Flag.ZERO.mask == 0x10
    assert Flag.HALF_CARRY.mask == 0x20
    assert Flag.SUBTRACTION.mask == 0x40
    assert Flag.CARRY.mask == 0x80


def test_flags_are_isolated() -> None:
    regs = RegisterFile()

    regs.set_flag(Flag.ZERO, True)
    regs.set_flag(Flag.CARRY, True)

    assert regs.get_flag(Flag.ZERO) is True
    assert regs.get_flag(Flag.CARRY) is True
    assert regs.get_flag(Flag.SUBTRACTION) is False
    assert regs.get_flag(Flag.HALF_CARRY) is False


def test_clearing_a_flag_leaves_other_bits() -> None:
    regs = RegisterFile()
    regs.set8(Register.F, 0xFF)

    regs.set_flag(Flag.HALF_CARRY, False)

    assert regs.get8(Register.F) == 0xDF
    regs.set_flag(Flag.HALF_CARRY, True)
    assert regs.get8(Register.F) == 0xFF


def test_flags_visible_through_af() -> None:
    regs = RegisterFile()
    regs.set8(Register.A, 0x01)

    regs.set_flag(Flag.CARRY, True)

    assert regs.get16(Register.AF) == 0x0180


def test_snapshot_restore_round_trip() -> None:
    regs = RegisterFile()
    regs.reset()
    saved = regs.snapshot()

    regs.set16(Register.PC, 0x4000)
    regs.set8(Register.IME, 1)
    regs.restore(saved)

    assert regs.get16(Register.PC) == 0x0100
    assert regs.get8(Register.IME) == 0


def test_dump_and_flag_description() -> None:
    regs = RegisterFile()
    regs.reset()

    state = regs.dump()

    assert state == {
        "AF": 0x01B0,
        "BC": 0x0013,
        "DE": 0x00D8,
        "HL": 0x014D,
        "SP": 0xFFFE,
        "PC": 0x0100,
        "IME": 0,
    }
    # F=0xB0: Zero, HalfCarry and Carry set.
    assert regs.describe_flags() == "Z-HC"
