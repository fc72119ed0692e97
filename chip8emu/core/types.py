"""
Core constants and type definitions for the CHIP-8 interpreter.

Machine geometry, default clock rates, fault kinds and the quirk
configuration record.
"""

from dataclasses import dataclass
from enum import IntEnum


# Memory map
MEMORY_SIZE: int = 4096
PROGRAM_START: int = 0x200
FONTSET_START: int = 0x50
MAX_ROM_SIZE: int = MEMORY_SIZE - PROGRAM_START

# Register file / stack / keypad
NUM_REGISTERS: int = 16
STACK_SIZE: int = 16
NUM_KEYS: int = 16

# Display
DISPLAY_WIDTH: int = 64
DISPLAY_HEIGHT: int = 32

# Reference clock rates (Hz)
CPU_HZ: int = 500
TIMER_HZ: int = 60

# Index register addressable range (12 bits)
INDEX_LIMIT: int = 0x0FFF


class FaultKind(IntEnum):
    StackOverflow = 1
    StackUnderflow = 2
    FetchOutOfBounds = 3
    LoadFailure = 4


@dataclass(frozen=True)
class Quirks:
    """Compatibility toggles, fixed for the lifetime of a session.

    All three default to ``False``, the legacy COSMAC VIP behaviour.

    Attributes
    ----------
    shift_uses_vy:
        ``8XY6`` / ``8XYE`` shift ``VY`` into ``VX`` instead of shifting
        ``VX`` in place.
    jump_uses_x_offset:
        ``BNNN`` jumps to ``XNN + VX`` instead of ``NNN + V0``.
    store_load_increments_index:
        ``FX55`` / ``FX65`` leave ``I`` pointing one past the last register
        transferred.
    """

    shift_uses_vy: bool = False
    jump_uses_x_offset: bool = False
    store_load_increments_index: bool = False

    def describe(self) -> str:
        enabled = [name for name, on in (
            ("shift_uses_vy", self.shift_uses_vy),
            ("jump_uses_x_offset", self.jump_uses_x_offset),
            ("store_load_increments_index", self.store_load_increments_index),
        ) if on]
        return ", ".join(enabled) if enabled else "none (legacy)"
