"""Small builders shared by the test modules."""

import numpy as np

from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import Quirks


def program(*words: int) -> bytes:
    """Assemble 16-bit opcodes into a big-endian program image."""
    return b"".join(w.to_bytes(2, "big") for w in words)


def make_machine(*words: int, quirks: Quirks | None = None) -> Chip8Machine:
    machine = Chip8Machine(quirks=quirks, rng=np.random.default_rng(1234))
    if words:
        machine.load_rom(program(*words))
    return machine


def run_steps(machine: Chip8Machine, count: int) -> None:
    for _ in range(count):
        machine.step()
