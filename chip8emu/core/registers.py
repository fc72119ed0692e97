"""
Register file: sixteen 8-bit general registers V0..VF, the 16-bit index
register ``I`` and the 16-bit program counter.

``VF`` doubles as the carry / borrow / collision flag.  Values written
through :meth:`RegisterFile.set_v` wrap to 8 bits; ``I`` and ``PC`` wrap
to 16 bits.
"""

from __future__ import annotations

from chip8emu.core.types import NUM_REGISTERS, PROGRAM_START

VF: int = 0xF


class RegisterFile:
    """General, index and program-counter registers."""

    def __init__(self) -> None:
        self.v: bytearray = bytearray(NUM_REGISTERS)
        self._i: int = 0
        self._pc: int = PROGRAM_START

    def reset(self) -> None:
        self.v[:] = bytes(NUM_REGISTERS)
        self._i = 0
        self._pc = PROGRAM_START

    # ------------------------------------------------------------------
    # General registers
    # ------------------------------------------------------------------

    def set_v(self, index: int, value: int) -> None:
        self.v[index] = value & 0xFF

    def set_flag(self, value: bool) -> None:
        """Write 1 or 0 into VF."""
        self.v[VF] = 1 if value else 0

    @property
    def flag(self) -> int:
        return self.v[VF]

    # ------------------------------------------------------------------
    # Index / program counter
    # ------------------------------------------------------------------

    @property
    def i(self) -> int:
        return self._i

    @i.setter
    def i(self, value: int) -> None:
        self._i = value & 0xFFFF

    @property
    def pc(self) -> int:
        return self._pc

    @pc.setter
    def pc(self, value: int) -> None:
        self._pc = value & 0xFFFF

    def __repr__(self) -> str:
        regs = " ".join(f"V{n:X}={val:02X}" for n, val in enumerate(self.v))
        return f"RegisterFile(PC=0x{self._pc:03X} I=0x{self._i:03X} {regs})"
