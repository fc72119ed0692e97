"""
Memory -- the 4 KB flat address space of the CHIP-8.

Layout
------

==============  ==========================================
Range           Contents
==============  ==========================================
0x000 - 0x04F   unused (historically the interpreter)
0x050 - 0x09F   hexadecimal font (16 glyphs x 5 bytes)
0x0A0 - 0x1FF   unused
0x200 - 0xFFF   program image and working storage
==============  ==========================================

Reads mask the address into the 12-bit space.  Writes are bounds-checked
and report failure through their return value instead of raising, so that
loaders can decide whether a failed write is fatal.
"""

from __future__ import annotations

from chip8emu.core.types import MEMORY_SIZE


class Memory:
    """Byte-addressable 4096-byte store."""

    SIZE: int = MEMORY_SIZE
    ADDR_MASK: int = MEMORY_SIZE - 1

    def __init__(self) -> None:
        self._data: bytearray = bytearray(self.SIZE)

    def clear(self) -> None:
        """Zero the whole address space."""
        self._data[:] = bytes(self.SIZE)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def read(self, addr: int) -> int:
        return self._data[addr & self.ADDR_MASK]

    def read_block(self, start: int, length: int) -> bytes:
        """Return *length* bytes starting at *start*, wrapping at the top."""
        return bytes(self._data[(start + i) & self.ADDR_MASK] for i in range(length))

    def write(self, addr: int, value: int) -> bool:
        """Store a byte.

        Returns:
            ``False`` (leaving memory untouched) if *addr* is outside the
            address space, ``True`` otherwise.
        """
        if not 0 <= addr < self.SIZE:
            return False
        self._data[addr] = value & 0xFF
        return True

    def write_block(self, start: int, data: bytes) -> bool:
        """Copy *data* into memory starting at *start*.

        The write is all-or-nothing: if any byte would land outside the
        address space nothing is written and ``False`` is returned.
        """
        if not 0 <= start < self.SIZE or start + len(data) > self.SIZE:
            return False
        self._data[start:start + len(data)] = data
        return True

    # ------------------------------------------------------------------
    # Raw image
    # ------------------------------------------------------------------

    def image(self) -> bytes:
        """Return an immutable copy of the whole address space."""
        return bytes(self._data)

    def __len__(self) -> int:
        return self.SIZE

    def __repr__(self) -> str:
        return f"Memory(size={self.SIZE})"
