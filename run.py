"""Command-line entry point for the headless Game Boy CPU core.

Loads a ROM image, steps the CPU until the step budget is spent or the CPU
faults, and reports the final register state. Set ``PYGBCORE_DEBUG`` (for
example ``cpu,trace``) for per-step logging.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pygbcore.cpu import RomTooLargeError
from pygbcore.loader import RomLoadError, cartridge_title, load_rom_from_path
from pygbcore.system import MachineConfig, create_machine


def _address(value: str) -> int:
    try:
        address = int(value, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid address: {value}") from exc
    if not 0 <= address <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"address out of range: {value}")
    return address


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="run.py",
        description="Game Boy CPU core (headless)",
    )
    parser.add_argument(
        "--rom",
        type=Path,
        required=True,
        help="Path to the ROM image (at most 32 KiB)",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Stop after this many instructions (default: run until a fault)",
    )
    parser.add_argument(
        "--trace",
        type=int,
        default=0,
        metavar="N",
        help="Keep the last N steps for the fault report (default: off)",
    )
    parser.add_argument(
        "--pc",
        type=_address,
        default=None,
        help="Override the post-boot program counter (e.g. 0x0150)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not args.rom.exists():
        parser.error(f"ROM file not found: {args.rom}")
    if args.steps is not None and args.steps < 0:
        parser.error("--steps must be non-negative")
    if args.trace < 0:
        parser.error("--trace must be non-negative")

    try:
        image = load_rom_from_path(args.rom)
    except RomLoadError as exc:
        parser.exit(1, f"run.py: {exc}\n")

    config = MachineConfig(
        rom_image=image,
        max_steps=args.steps,
        trace_capacity=args.trace,
        start_pc=args.pc,
    )
    try:
        machine = create_machine(config)
    except RomTooLargeError as exc:
        parser.exit(1, f"run.py: {exc}\n")

    title = cartridge_title(image)
    if title:
        print(f"Loaded {title!r} ({len(image)} bytes)")

    result = machine.run()
    if result.fault is not None:
        print(f"run.py: fault after {result.steps} steps: {result.fault}", file=sys.stderr)
        print(machine.describe_registers(), file=sys.stderr)
        if machine.trace is not None:
            for line in machine.trace.format_entries():
                print(line, file=sys.stderr)
        return 1

    print(f"Executed {result.steps} steps ({result.cycles} cycles)")
    print(machine.describe_registers())
    return 0


if __name__ == "__main__":
    sys.exit(main())
