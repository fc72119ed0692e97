"""
CHIP-8 interpreter -- command-line entry point.

Parses command-line arguments, creates the machine from a ROM file, and
launches the pygame display window.

Usage examples::

    # Run a ROM with the legacy quirk set
    chip8emu roms/pong.ch8

    # Super-CHIP style shifts and index handling, bigger window
    chip8emu roms/game.ch8 --shift-vy --jump-x --scale 20

    # Faster CPU, reproducible random numbers
    chip8emu roms/game.ch8 --cpu-hz 1000 --seed 42

    # Print ROM metadata without launching
    chip8emu roms/game.ch8 --info
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from chip8emu.core.errors import EmulatorFault
from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import CPU_HZ, TIMER_HZ, Quirks
from chip8emu.platform.window import Window
from chip8emu.shell.services.machine_factory import MachineFactory
from chip8emu.shell.services.rom_loader import RomLoader

logger = logging.getLogger(__name__)

SCALE: int = 16


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chip8emu",
        description="CHIP-8 interpreter.  Load a ROM file and run it in a pygame window.",
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.ch8)",
    )

    # Display / timing
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=SCALE,
        help=f"Display scale factor (1-32).  Default: {SCALE}.",
    )
    parser.add_argument(
        "--cpu-hz",
        type=float,
        default=CPU_HZ,
        metavar="HZ",
        help=f"Emulated instructions per second.  Default: {CPU_HZ}.",
    )
    parser.add_argument(
        "--timer-hz",
        type=float,
        default=TIMER_HZ,
        metavar="HZ",
        help=f"Delay/sound timer rate.  Default: {TIMER_HZ}.",
    )

    # Quirks
    quirks = parser.add_argument_group("quirks")
    quirks.add_argument(
        "--shift-vy",
        action="store_true",
        default=False,
        help="8XY6/8XYE shift VY into VX instead of shifting VX.",
    )
    quirks.add_argument(
        "--jump-x",
        action="store_true",
        default=False,
        help="BNNN jumps to XNN + VX instead of NNN + V0.",
    )
    quirks.add_argument(
        "--increment-i",
        action="store_true",
        default=False,
        help="FX55/FX65 advance I past the last register transferred.",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the CXNN random number generator.",
    )
    parser.add_argument(
        "--dump-memory",
        default=None,
        metavar="PATH",
        help="Write the raw 4096-byte memory image to PATH on exit.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print ROM metadata and exit without launching the emulator.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a ROM."""
    try:
        info = RomLoader.describe(rom_path)
    except EmulatorFault as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("CHIP-8 ROM Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)
    return 0


def _dump_memory(machine: Chip8Machine, path: str) -> bool:
    """Write the raw 4 KB memory image to *path*.  Returns success."""
    try:
        with open(path, "wb") as fh:
            fh.write(machine.memory.image())
    except OSError as exc:
        logger.error("Could not write memory image to %s: %s", path, exc)
        print(f"Error: could not write memory image: {exc}", file=sys.stderr)
        return False
    logger.info("Memory image written to %s", path)
    return True


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("chip8emu.main")

    # Validate the ROM path early.
    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: ROM file not found: {rom_path}", file=sys.stderr)
        return 1

    # Info-only mode.
    if args.info:
        return _print_rom_info(rom_path)

    quirks = Quirks(
        shift_uses_vy=args.shift_vy,
        jump_uses_x_offset=args.jump_x,
        store_load_increments_index=args.increment_i,
    )

    # Create the emulated machine.
    try:
        machine = MachineFactory.create(
            rom_path=rom_path,
            quirks=quirks,
            cpu_hz=args.cpu_hz,
            timer_hz=args.timer_hz,
            seed=args.seed,
        )
    except EmulatorFault as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Launch the window.
    logger.info("Starting emulation ...")
    status = 0
    try:
        window = Window(machine, scale=args.scale)
        window.run()
    except EmulatorFault as exc:
        logger.exception("Fatal interpreter fault")
        print(f"Fatal error: {exc}", file=sys.stderr)
        status = 1
    finally:
        if args.dump_memory and not _dump_memory(machine, args.dump_memory):
            status = 1

    if status == 0:
        logger.info("Exited cleanly")
    return status


if __name__ == "__main__":
    sys.exit(main())
