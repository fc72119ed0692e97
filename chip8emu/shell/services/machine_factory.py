"""
Machine creation factory.

Builds a ready-to-run :class:`~chip8emu.core.machine.Chip8Machine` from a
ROM file path plus the session configuration (quirks, clock rates, seed).

Typical usage::

    machine = MachineFactory.create("pong.ch8")
    machine = MachineFactory.create("pong.ch8", quirks=Quirks(shift_uses_vy=True))
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import CPU_HZ, TIMER_HZ, Quirks
from chip8emu.shell.services.rom_loader import RomLoader

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create a CHIP-8 machine from a ROM file."""

    @staticmethod
    def create(
        rom_path: str,
        quirks: Optional[Quirks] = None,
        cpu_hz: float = CPU_HZ,
        timer_hz: float = TIMER_HZ,
        seed: Optional[int] = None,
    ) -> Chip8Machine:
        """Build and return a machine with the ROM at *rom_path* loaded.

        Parameters
        ----------
        rom_path:
            Filesystem path to the program image.
        quirks:
            Compatibility toggles; legacy behaviour when ``None``.
        cpu_hz:
            Emulated instruction rate.
        timer_hz:
            Delay/sound timer rate.
        seed:
            Seed for the ``CXNN`` random generator.  ``None`` seeds from
            OS entropy.

        Raises
        ------
        LoadFailure
            If the ROM cannot be read, does not fit, or the font table
            cannot be written.
        ValueError
            If a clock rate is not positive.
        """
        data = RomLoader.read(rom_path)

        machine = Chip8Machine(
            quirks=quirks,
            cpu_hz=cpu_hz,
            timer_hz=timer_hz,
            rng=np.random.default_rng(seed),
        )
        machine.load_rom(data)

        logger.info("Created %r from %s", machine, rom_path)
        return machine
