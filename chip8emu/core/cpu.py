"""
CHIP-8 decode/execute engine.

Every instruction is a 16-bit big-endian word.  Operand fields are taken
by nibble position:

=====  =========  ==========================================
Field  Bits       Meaning
=====  =========  ==========================================
X      8-11       register index
Y      4-7        register index
N      0-3        4-bit immediate (sprite height, ALU op)
NN     0-7        8-bit immediate
NNN    0-11       12-bit address
=====  =========  ==========================================

Dispatch is a 16-entry table keyed by the top nibble.  The ALU group
(``8XY?``), key group (``EX??``) and misc group (``FX??``) each sub-dispatch
through their own table.  ``00E0`` is matched before the generic dispatch.
Anything not found in a table is a silent no-op.

Behaviours worth knowing:

* ``VF`` is always written *after* the result register, so when ``X`` is
  ``F`` the flag value is what remains.
* ``8XY5`` / ``8XY7`` compute the no-borrow flag from the operand values
  before the subtraction.
* ``FX0A`` does not rewind ``PC``.  It puts the CPU into an *awaiting key*
  state; subsequent :meth:`Chip8CPU.step` calls poll the keypad instead of
  fetching, until a key goes from up to down and is then released.  Keys
  already held when ``FX0A`` executes do not count until they are let go
  and pressed again.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, NamedTuple, Optional

import numpy as np

from chip8emu.core.errors import FetchOutOfBounds
from chip8emu.core.fontset import GLYPH_HEIGHT
from chip8emu.core.types import FONTSET_START, INDEX_LIMIT, MEMORY_SIZE, Quirks

if TYPE_CHECKING:
    from chip8emu.core.machine import Chip8Machine

logger = logging.getLogger(__name__)


class Instruction(NamedTuple):
    """A fetched opcode split into its operand fields."""

    opcode: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @classmethod
    def decode(cls, opcode: int) -> Instruction:
        return cls(
            opcode,
            (opcode & 0x0F00) >> 8,
            (opcode & 0x00F0) >> 4,
            opcode & 0x000F,
            opcode & 0x00FF,
            opcode & 0x0FFF,
        )


Handler = Callable[[Instruction], None]


class Chip8CPU:
    """CHIP-8 interpreter core.

    Parameters
    ----------
    machine:
        Back-reference to the owning :class:`Chip8Machine`.  Memory,
        registers, stack, display, timers and keys are reached through it.
    quirks:
        Compatibility toggles, fixed for the session.
    rng:
        Source of random bytes for ``CXNN``.  Pass a seeded generator for
        reproducible runs.
    """

    CLEAR_SCREEN: int = 0x00E0
    RETURN: int = 0x00EE

    def __init__(
        self,
        machine: Chip8Machine,
        quirks: Quirks,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.m = machine
        self.quirks: Quirks = quirks
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng()

        # Key-wait state: destination register while awaiting, else None.
        self.awaiting_key_register: Optional[int] = None
        self._pending_key: Optional[int] = None
        # Keys already down when FX0A started; they must be released first.
        self._held_keys: frozenset[int] = frozenset()

        self.instructions_executed: int = 0

        self._opcode_table: list[Handler] = self._build_opcode_table()
        self._alu_table: dict[int, Handler] = self._build_alu_table()
        self._key_table: dict[int, Handler] = {
            0x9E: self.op_skip_if_key_down,
            0xA1: self.op_skip_if_key_up,
        }
        self._misc_table: dict[int, Handler] = self._build_misc_table()

    def reset(self) -> None:
        self.awaiting_key_register = None
        self._pending_key = None
        self._held_keys = frozenset()
        self.instructions_executed = 0

    @property
    def awaiting_key(self) -> bool:
        """``True`` while an ``FX0A`` is waiting for a key press/release."""
        return self.awaiting_key_register is not None

    # ------------------------------------------------------------------
    # Fetch / step
    # ------------------------------------------------------------------

    def fetch(self) -> int:
        """Read the big-endian word at ``PC`` and advance ``PC`` by two.

        Raises:
            FetchOutOfBounds: If the second byte would lie outside memory.
        """
        regs = self.m.registers
        pc = regs.pc
        if pc + 1 >= MEMORY_SIZE:
            raise FetchOutOfBounds("PC out of bounds in fetch", pc=pc)
        mem = self.m.memory
        opcode = (mem.read(pc) << 8) | mem.read(pc + 1)
        regs.pc = pc + 2
        return opcode

    def step(self) -> None:
        """Run one CPU step: poll the keypad if awaiting a key, otherwise
        fetch and execute the next instruction."""
        if self.awaiting_key_register is not None:
            self._poll_key_wait()
            return
        self.decode_and_execute(self.fetch())
        self.instructions_executed += 1

    def decode_and_execute(self, opcode: int) -> None:
        """Execute an already-fetched *opcode*."""
        if opcode == self.CLEAR_SCREEN:
            self.m.display.clear()
            return
        ins = Instruction.decode(opcode)
        self._opcode_table[opcode >> 12](ins)

    # ------------------------------------------------------------------
    # Dispatch tables
    # ------------------------------------------------------------------

    def _build_opcode_table(self) -> list[Handler]:
        return [
            self.op_system,             # 0NNN
            self.op_jump,               # 1NNN
            self.op_call,               # 2NNN
            self.op_skip_eq_imm,        # 3XNN
            self.op_skip_ne_imm,        # 4XNN
            self.op_skip_eq_reg,        # 5XY0
            self.op_load_imm,           # 6XNN
            self.op_add_imm,            # 7XNN
            self._dispatch_alu,         # 8XYN
            self.op_skip_ne_reg,        # 9XY0
            self.op_load_index,         # ANNN
            self.op_jump_offset,        # BNNN
            self.op_random,             # CXNN
            self.op_draw,               # DXYN
            self._dispatch_key,         # EX9E / EXA1
            self._dispatch_misc,        # FXNN
        ]

    def _build_alu_table(self) -> dict[int, Handler]:
        return {
            0x0: self.op_assign,
            0x1: self.op_or,
            0x2: self.op_and,
            0x3: self.op_xor,
            0x4: self.op_add,
            0x5: self.op_sub,
            0x6: self.op_shift_right,
            0x7: self.op_subn,
            0xE: self.op_shift_left,
        }

    def _build_misc_table(self) -> dict[int, Handler]:
        return {
            0x07: self.op_read_delay,
            0x0A: self.op_wait_key,
            0x15: self.op_set_delay,
            0x18: self.op_set_sound,
            0x1E: self.op_add_index,
            0x29: self.op_font_char,
            0x33: self.op_bcd,
            0x55: self.op_store,
            0x65: self.op_load,
        }

    def _dispatch_alu(self, ins: Instruction) -> None:
        handler = self._alu_table.get(ins.n)
        if handler is None:
            self._unknown(ins)
            return
        handler(ins)

    def _dispatch_key(self, ins: Instruction) -> None:
        handler = self._key_table.get(ins.nn)
        if handler is None:
            self._unknown(ins)
            return
        handler(ins)

    def _dispatch_misc(self, ins: Instruction) -> None:
        handler = self._misc_table.get(ins.nn)
        if handler is None:
            self._unknown(ins)
            return
        handler(ins)

    def _unknown(self, ins: Instruction) -> None:
        logger.debug(
            "Ignoring unknown opcode %04X at PC=0x%03X",
            ins.opcode,
            (self.m.registers.pc - 2) & 0xFFFF,
        )

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------

    def op_system(self, ins: Instruction) -> None:
        """00EE returns from a subroutine; other 0NNN calls are ignored."""
        if ins.opcode == self.RETURN:
            regs = self.m.registers
            regs.pc = self.m.stack.pop(pc=regs.pc - 2)
            return
        self._unknown(ins)

    def op_jump(self, ins: Instruction) -> None:
        self.m.registers.pc = ins.nnn

    def op_call(self, ins: Instruction) -> None:
        regs = self.m.registers
        self.m.stack.push(regs.pc, pc=regs.pc - 2)
        regs.pc = ins.nnn

    def op_jump_offset(self, ins: Instruction) -> None:
        v = self.m.registers.v
        if self.quirks.jump_uses_x_offset:
            target = ((ins.x << 8) | ins.nn) + v[ins.x]
        else:
            target = ins.nnn + v[0]
        self.m.registers.pc = target

    def _skip_if(self, condition: bool) -> None:
        if condition:
            self.m.registers.pc += 2

    def op_skip_eq_imm(self, ins: Instruction) -> None:
        self._skip_if(self.m.registers.v[ins.x] == ins.nn)

    def op_skip_ne_imm(self, ins: Instruction) -> None:
        self._skip_if(self.m.registers.v[ins.x] != ins.nn)

    def op_skip_eq_reg(self, ins: Instruction) -> None:
        v = self.m.registers.v
        self._skip_if(v[ins.x] == v[ins.y])

    def op_skip_ne_reg(self, ins: Instruction) -> None:
        v = self.m.registers.v
        self._skip_if(v[ins.x] != v[ins.y])

    # ------------------------------------------------------------------
    # Immediate loads
    # ------------------------------------------------------------------

    def op_load_imm(self, ins: Instruction) -> None:
        self.m.registers.set_v(ins.x, ins.nn)

    def op_add_imm(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.set_v(ins.x, regs.v[ins.x] + ins.nn)

    # ------------------------------------------------------------------
    # ALU (8XYN)
    # ------------------------------------------------------------------

    def op_assign(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.set_v(ins.x, regs.v[ins.y])

    def op_or(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.set_v(ins.x, regs.v[ins.x] | regs.v[ins.y])

    def op_and(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.set_v(ins.x, regs.v[ins.x] & regs.v[ins.y])

    def op_xor(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.set_v(ins.x, regs.v[ins.x] ^ regs.v[ins.y])

    def op_add(self, ins: Instruction) -> None:
        regs = self.m.registers
        total = regs.v[ins.x] + regs.v[ins.y]
        regs.set_v(ins.x, total)
        regs.set_flag(total > 0xFF)

    def op_sub(self, ins: Instruction) -> None:
        regs = self.m.registers
        vx, vy = regs.v[ins.x], regs.v[ins.y]
        regs.set_v(ins.x, vx - vy)
        regs.set_flag(vx >= vy)

    def op_subn(self, ins: Instruction) -> None:
        regs = self.m.registers
        vx, vy = regs.v[ins.x], regs.v[ins.y]
        regs.set_v(ins.x, vy - vx)
        regs.set_flag(vy >= vx)

    def op_shift_right(self, ins: Instruction) -> None:
        regs = self.m.registers
        value = regs.v[ins.y] if self.quirks.shift_uses_vy else regs.v[ins.x]
        regs.set_v(ins.x, value >> 1)
        regs.set_flag(value & 0x01)

    def op_shift_left(self, ins: Instruction) -> None:
        regs = self.m.registers
        value = regs.v[ins.y] if self.quirks.shift_uses_vy else regs.v[ins.x]
        regs.set_v(ins.x, value << 1)
        regs.set_flag(value & 0x80)

    # ------------------------------------------------------------------
    # Index register
    # ------------------------------------------------------------------

    def op_load_index(self, ins: Instruction) -> None:
        self.m.registers.i = ins.nnn

    def op_add_index(self, ins: Instruction) -> None:
        regs = self.m.registers
        total = regs.i + regs.v[ins.x]
        regs.i = total
        regs.set_flag(total > INDEX_LIMIT)

    def op_font_char(self, ins: Instruction) -> None:
        regs = self.m.registers
        regs.i = FONTSET_START + (regs.v[ins.x] & 0x0F) * GLYPH_HEIGHT

    # ------------------------------------------------------------------
    # Random / draw
    # ------------------------------------------------------------------

    def op_random(self, ins: Instruction) -> None:
        r = int(self.rng.integers(0, 256))
        self.m.registers.set_v(ins.x, r & ins.nn)

    def op_draw(self, ins: Instruction) -> None:
        regs = self.m.registers
        rows = self.m.memory.read_block(regs.i, ins.n)
        collision = self.m.display.composite_sprite(regs.v[ins.x], regs.v[ins.y], rows)
        regs.set_flag(collision)

    # ------------------------------------------------------------------
    # Keypad
    # ------------------------------------------------------------------

    def op_skip_if_key_down(self, ins: Instruction) -> None:
        key = self.m.registers.v[ins.x] & 0x0F
        self._skip_if(self.m.keys.is_down(key))

    def op_skip_if_key_up(self, ins: Instruction) -> None:
        key = self.m.registers.v[ins.x] & 0x0F
        self._skip_if(not self.m.keys.is_down(key))

    def op_wait_key(self, ins: Instruction) -> None:
        self.awaiting_key_register = ins.x
        self._pending_key = None
        self._held_keys = self.m.keys.down_keys()

    def _poll_key_wait(self) -> None:
        keys = self.m.keys
        if self._pending_key is None:
            down = keys.down_keys()
            # A held key becomes eligible again once it has been released.
            self._held_keys &= down
            fresh = down - self._held_keys
            if fresh:
                self._pending_key = min(fresh)
            return
        if keys.is_down(self._pending_key):
            return
        # Press followed by release: commit and resume.
        self.m.registers.set_v(self.awaiting_key_register, self._pending_key)
        logger.debug("Key 0x%X released, resuming", self._pending_key)
        self.awaiting_key_register = None
        self._pending_key = None
        self._held_keys = frozenset()

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def op_read_delay(self, ins: Instruction) -> None:
        self.m.registers.set_v(ins.x, self.m.timers.delay)

    def op_set_delay(self, ins: Instruction) -> None:
        self.m.timers.delay = self.m.registers.v[ins.x]

    def op_set_sound(self, ins: Instruction) -> None:
        self.m.timers.sound = self.m.registers.v[ins.x]

    # ------------------------------------------------------------------
    # Memory transfer
    # ------------------------------------------------------------------

    def op_bcd(self, ins: Instruction) -> None:
        regs = self.m.registers
        mem = self.m.memory
        value = regs.v[ins.x]
        mem.write(regs.i, value // 100)
        mem.write(regs.i + 1, (value // 10) % 10)
        mem.write(regs.i + 2, value % 10)

    def op_store(self, ins: Instruction) -> None:
        regs = self.m.registers
        mem = self.m.memory
        base = regs.i
        for j in range(ins.x + 1):
            mem.write(base + j, regs.v[j])
        if self.quirks.store_load_increments_index:
            regs.i = base + ins.x + 1

    def op_load(self, ins: Instruction) -> None:
        regs = self.m.registers
        mem = self.m.memory
        base = regs.i
        for j in range(ins.x + 1):
            regs.set_v(j, mem.read(base + j))
        if self.quirks.store_load_increments_index:
            regs.i = base + ins.x + 1

    def __repr__(self) -> str:
        return (
            f"Chip8CPU("
            f"pc=0x{self.m.registers.pc:03X}, "
            f"awaiting_key={self.awaiting_key}, "
            f"executed={self.instructions_executed})"
        )
