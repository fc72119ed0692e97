"""
Fatal interpreter faults.

Every condition the interpreter cannot safely continue from is raised as a
subclass of :class:`EmulatorFault`.  The host loop decides whether to
terminate or report.
"""

from __future__ import annotations

from typing import Optional

from chip8emu.core.types import FaultKind


class EmulatorFault(Exception):
    """Base class for unrecoverable interpreter faults.

    Parameters
    ----------
    kind:
        The :class:`FaultKind` of this fault.
    message:
        Human-readable diagnostic.
    pc:
        Program counter at fault, if relevant.
    """

    kind: FaultKind

    def __init__(self, message: str, pc: Optional[int] = None) -> None:
        self.pc: Optional[int] = pc
        if pc is not None:
            message = f"{message} at PC=0x{pc:03X}"
        super().__init__(message)


class StackOverflow(EmulatorFault):
    kind = FaultKind.StackOverflow


class StackUnderflow(EmulatorFault):
    kind = FaultKind.StackUnderflow


class FetchOutOfBounds(EmulatorFault):
    kind = FaultKind.FetchOutOfBounds


class LoadFailure(EmulatorFault):
    kind = FaultKind.LoadFailure
