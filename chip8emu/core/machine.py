"""
Chip8Machine -- the explicit VM context.

A machine owns every piece of emulated state:

* **Memory** -- the 4 KB address space, font at ``0x50``.
* **RegisterFile** -- V0..VF, I and PC.
* **CallStack** -- sixteen return addresses.
* **DisplayBuffer** -- the 64x32 framebuffer.
* **TimerUnit** -- delay and sound timers.
* **KeyState** -- the double-buffered 16-key vector.
* **Chip8CPU** -- the decode/execute engine.
* **ClockScheduler** -- turns host elapsed time into CPU steps and timer ticks.

Host loops drive the machine through :meth:`Chip8Machine.run_frame`, which
captures the key state once, runs every due CPU step, then every due timer
tick.  Any :class:`~chip8emu.core.errors.EmulatorFault` raised along the
way halts the machine and propagates to the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from chip8emu.core.call_stack import CallStack
from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.display import DisplayBuffer
from chip8emu.core.errors import EmulatorFault, LoadFailure
from chip8emu.core.fontset import FONTSET
from chip8emu.core.keypad import KeyState
from chip8emu.core.memory import Memory
from chip8emu.core.registers import RegisterFile
from chip8emu.core.scheduler import ClockScheduler
from chip8emu.core.timers import TimerUnit
from chip8emu.core.types import (
    CPU_HZ,
    FONTSET_START,
    MAX_ROM_SIZE,
    PROGRAM_START,
    TIMER_HZ,
    Quirks,
)

logger = logging.getLogger(__name__)


class Chip8Machine:
    """A complete CHIP-8 virtual machine.

    Parameters
    ----------
    quirks:
        Compatibility toggles.  Defaults to legacy behaviour.
    cpu_hz:
        Emulated instruction rate in Hz.
    timer_hz:
        Delay/sound timer rate in Hz.
    rng:
        Random generator for ``CXNN``.  A fresh unseeded generator is used
        when omitted.
    """

    def __init__(
        self,
        quirks: Optional[Quirks] = None,
        cpu_hz: float = CPU_HZ,
        timer_hz: float = TIMER_HZ,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.quirks: Quirks = quirks if quirks is not None else Quirks()

        self.memory: Memory = Memory()
        self.registers: RegisterFile = RegisterFile()
        self.stack: CallStack = CallStack()
        self.display: DisplayBuffer = DisplayBuffer()
        self.timers: TimerUnit = TimerUnit()
        self.keys: KeyState = KeyState()
        self.scheduler: ClockScheduler = ClockScheduler(cpu_hz, timer_hz)
        self.cpu: Chip8CPU = Chip8CPU(self, self.quirks, rng)

        # Machine run-state.
        self.machine_halt: bool = False
        self.fault: Optional[EmulatorFault] = None
        self.frame_number: int = 0
        self.rom_size: int = 0

        logger.info(
            "Chip8Machine: cpu=%g Hz, timers=%g Hz, quirks=%s",
            self.scheduler.cpu_hz,
            self.scheduler.timer_hz,
            self.quirks.describe(),
        )

        self.reset()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to the power-on state and load the font.

        Called by the constructor.  Memory is wiped, so any ROM must be
        loaded again afterwards.

        Raises:
            LoadFailure: If the font table cannot be written.
        """
        self.memory.clear()
        self.registers.reset()
        self.stack.reset()
        self.display.clear()
        self.timers.reset()
        self.keys.clear_all_input()
        self.scheduler.reset()
        self.cpu.reset()

        self.machine_halt = False
        self.fault = None
        self.frame_number = 0
        self.rom_size = 0

        self.load_fontset()

    def load_fontset(self) -> None:
        if not self.memory.write_block(FONTSET_START, FONTSET):
            raise LoadFailure(f"Could not write font table at 0x{FONTSET_START:03X}")

    def load_rom(self, data: bytes) -> None:
        """Copy a program image into memory at ``0x200``.

        Raises:
            LoadFailure: If the image does not fit in program space.
        """
        if len(data) > MAX_ROM_SIZE:
            raise LoadFailure(f"ROM too big ({len(data)} bytes, max {MAX_ROM_SIZE})")
        if not self.memory.write_block(PROGRAM_START, data):
            raise LoadFailure(f"Could not write ROM at 0x{PROGRAM_START:03X}")
        self.rom_size = len(data)
        logger.info("Loaded %d-byte ROM at 0x%03X", len(data), PROGRAM_START)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def step(self) -> None:
        """Execute a single CPU step, halting the machine on a fault."""
        try:
            self.cpu.step()
        except EmulatorFault as exc:
            self._halt(exc)
            raise

    def tick_timers(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            self.timers.tick()

    def run_frame(self, elapsed: float) -> int:
        """Advance the machine by *elapsed* seconds of host time.

        Key state is captured once up front.  All due CPU steps run in
        program order before any due timer ticks.

        Returns:
            The number of CPU steps executed.

        Raises:
            EmulatorFault: On an unrecoverable interpreter fault.  The
                machine is halted and :attr:`fault` records the cause.
        """
        if self.machine_halt:
            return 0

        self.keys.capture()
        cpu_steps, timer_ticks = self.scheduler.advance(elapsed)

        for _ in range(cpu_steps):
            self.step()
        self.tick_timers(timer_ticks)

        self.frame_number += 1
        return cpu_steps

    def _halt(self, fault: EmulatorFault) -> None:
        self.machine_halt = True
        self.fault = fault
        logger.error("Machine halted: %s", fault)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"pc=0x{self.registers.pc:03X}, "
            f"i=0x{self.registers.i:03X}, "
            f"sp={self.stack.depth}, "
            f"frame={self.frame_number}, "
            f"halted={self.machine_halt})"
        )
