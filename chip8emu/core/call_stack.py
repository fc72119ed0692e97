"""
Call stack -- fixed-depth LIFO of subroutine return addresses.
"""

from __future__ import annotations

from chip8emu.core.errors import StackOverflow, StackUnderflow
from chip8emu.core.types import STACK_SIZE


class CallStack:
    """Sixteen-entry return-address stack.

    Pushing onto a full stack raises :class:`StackOverflow`; popping an
    empty one raises :class:`StackUnderflow`.  Both carry the program
    counter supplied by the caller so the diagnostic can name it.
    """

    def __init__(self, capacity: int = STACK_SIZE) -> None:
        self.capacity: int = capacity
        self._entries: list[int] = []

    def reset(self) -> None:
        self._entries.clear()

    def push(self, address: int, pc: int) -> None:
        if len(self._entries) >= self.capacity:
            raise StackOverflow(f"Stack overflow (sp={len(self._entries)})", pc=pc)
        self._entries.append(address & 0xFFFF)

    def pop(self, pc: int) -> int:
        if not self._entries:
            raise StackUnderflow("Stack underflow (sp=0)", pc=pc)
        return self._entries.pop()

    @property
    def depth(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        frames = ", ".join(f"0x{a:03X}" for a in self._entries)
        return f"CallStack(depth={len(self._entries)}/{self.capacity}, [{frames}])"
