# CHIP-8 interpreter core
"""
Interpreter engine: memory, registers, call stack, display buffer, timers,
key state, the decode/execute engine and the clock scheduler.

Use :class:`~chip8emu.core.machine.Chip8Machine` to get a fully-wired VM.
"""

from chip8emu.core.errors import (
    EmulatorFault,
    FetchOutOfBounds,
    LoadFailure,
    StackOverflow,
    StackUnderflow,
)
from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import FaultKind, Quirks

__all__ = [
    "Chip8Machine",
    "Quirks",
    "FaultKind",
    "EmulatorFault",
    "StackOverflow",
    "StackUnderflow",
    "FetchOutOfBounds",
    "LoadFailure",
]
