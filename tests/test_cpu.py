import pytest

from chip8emu.core.cpu import Instruction
from chip8emu.core.errors import FetchOutOfBounds, StackOverflow, StackUnderflow
from chip8emu.core.types import MEMORY_SIZE, Quirks

from tests.helpers import make_machine, run_steps


# ---------------------------------------------------------------------------
# Decode / fetch
# ---------------------------------------------------------------------------

def test_instruction_decode_fields() -> None:
    ins = Instruction.decode(0xD5A7)
    assert (ins.x, ins.y, ins.n, ins.nn, ins.nnn) == (0x5, 0xA, 0x7, 0xA7, 0x5A7)


def test_fetch_is_big_endian_and_advances_pc() -> None:
    m = make_machine(0x1234)
    assert m.cpu.fetch() == 0x1234
    assert m.registers.pc == 0x202


def test_fetch_past_end_of_memory_faults() -> None:
    m = make_machine()
    m.registers.pc = MEMORY_SIZE - 1
    with pytest.raises(FetchOutOfBounds) as info:
        m.step()
    assert info.value.pc == MEMORY_SIZE - 1
    assert m.machine_halt
    assert m.fault is info.value


def test_fetch_of_last_full_word_is_allowed() -> None:
    m = make_machine()
    m.memory.write_block(MEMORY_SIZE - 2, b"\x60\x07")
    m.registers.pc = MEMORY_SIZE - 2
    m.step()
    assert m.registers.v[0] == 7


# ---------------------------------------------------------------------------
# Flow control
# ---------------------------------------------------------------------------

def test_jump() -> None:
    m = make_machine(0x1ABC)
    m.step()
    assert m.registers.pc == 0xABC


def test_call_and_return() -> None:
    # 0x200: call 0x206; 0x202: V0=1; 0x204: jump self; 0x206: V1=2; 0x208: ret
    m = make_machine(0x2206, 0x6001, 0x1204, 0x6102, 0x00EE)
    run_steps(m, 3)
    assert m.registers.pc == 0x202
    assert m.registers.v[1] == 2
    assert m.stack.depth == 0
    m.step()
    assert m.registers.v[0] == 1


def test_seventeen_nested_calls_overflow() -> None:
    # A subroutine that calls itself forever.
    m = make_machine(0x2200)
    run_steps(m, 16)
    assert m.stack.depth == 16
    with pytest.raises(StackOverflow) as info:
        m.step()
    assert info.value.pc == 0x200


def test_return_without_call_underflows() -> None:
    m = make_machine(0x00EE)
    with pytest.raises(StackUnderflow) as info:
        m.step()
    assert info.value.pc == 0x200
    assert m.machine_halt


def test_machine_code_call_is_ignored() -> None:
    m = make_machine(0x0123, 0x6005)
    run_steps(m, 2)
    assert m.registers.pc == 0x204
    assert m.registers.v[0] == 5


@pytest.mark.parametrize(
    "setup, opcode, skipped",
    [
        (0x6A05, 0x3A05, True),
        (0x6A05, 0x3A06, False),
        (0x6A05, 0x4A06, True),
        (0x6A05, 0x4A05, False),
    ],
)
def test_skip_against_immediate(setup, opcode, skipped) -> None:
    m = make_machine(setup, opcode)
    run_steps(m, 2)
    assert m.registers.pc == (0x206 if skipped else 0x204)


@pytest.mark.parametrize(
    "vy, opcode, skipped",
    [
        (0x05, 0x5AB0, True),
        (0x06, 0x5AB0, False),
        (0x06, 0x9AB0, True),
        (0x05, 0x9AB0, False),
    ],
)
def test_skip_against_register(vy, opcode, skipped) -> None:
    m = make_machine(0x6A05, 0x6B00 | vy, opcode)
    run_steps(m, 3)
    assert m.registers.pc == (0x208 if skipped else 0x206)


def test_jump_with_v0_offset_legacy() -> None:
    m = make_machine(0x6010, 0x6320, 0xB300)
    run_steps(m, 3)
    assert m.registers.pc == 0x310


def test_jump_with_vx_offset_quirk() -> None:
    m = make_machine(0x6010, 0x6320, 0xB300, quirks=Quirks(jump_uses_x_offset=True))
    run_steps(m, 3)
    assert m.registers.pc == 0x320


# ---------------------------------------------------------------------------
# Immediates and ALU
# ---------------------------------------------------------------------------

def test_add_immediate_wraps_without_flag() -> None:
    m = make_machine(0x6FAA, 0x60FF, 0x7002)
    run_steps(m, 3)
    assert m.registers.v[0] == 0x01
    assert m.registers.v[0xF] == 0xAA


@pytest.mark.parametrize(
    "n, vx, vy, expected",
    [
        (0x0, 0x0F, 0xF0, 0xF0),
        (0x1, 0x0F, 0xF0, 0xFF),
        (0x2, 0x3C, 0x0F, 0x0C),
        (0x3, 0xFF, 0x0F, 0xF0),
    ],
)
def test_logic_ops(n, vx, vy, expected) -> None:
    m = make_machine(0x6100 | vx, 0x6200 | vy, 0x8120 | n)
    run_steps(m, 3)
    assert m.registers.v[1] == expected


@pytest.mark.parametrize("vx, vy", [(0, 0), (200, 55), (200, 56), (255, 255), (1, 254), (128, 128)])
def test_add_sets_carry(vx, vy) -> None:
    m = make_machine(0x6100 | vx, 0x6200 | vy, 0x8124)
    run_steps(m, 3)
    assert m.registers.v[1] == (vx + vy) % 256
    assert m.registers.v[0xF] == (1 if vx + vy > 255 else 0)


@pytest.mark.parametrize("vx, vy", [(10, 3), (3, 10), (7, 7), (0, 255), (255, 0)])
def test_sub_sets_no_borrow(vx, vy) -> None:
    m = make_machine(0x6100 | vx, 0x6200 | vy, 0x8125)
    run_steps(m, 3)
    assert m.registers.v[1] == (vx - vy) % 256
    assert m.registers.v[0xF] == (1 if vx >= vy else 0)


@pytest.mark.parametrize("vx, vy", [(10, 3), (3, 10), (7, 7)])
def test_reverse_sub_uses_pre_subtraction_values(vx, vy) -> None:
    m = make_machine(0x6100 | vx, 0x6200 | vy, 0x8127)
    run_steps(m, 3)
    assert m.registers.v[1] == (vy - vx) % 256
    assert m.registers.v[0xF] == (1 if vy >= vx else 0)


def test_flag_overwrites_result_when_x_is_vf() -> None:
    m = make_machine(0x6FFF, 0x6101, 0x8F14)
    run_steps(m, 3)
    assert m.registers.v[0xF] == 1


def test_shift_right_legacy_shifts_vx() -> None:
    m = make_machine(0x6105, 0x62F0, 0x8126)
    run_steps(m, 3)
    assert m.registers.v[1] == 0x02
    assert m.registers.v[0xF] == 1


def test_shift_right_quirk_shifts_vy() -> None:
    m = make_machine(0x6105, 0x62F0, 0x8126, quirks=Quirks(shift_uses_vy=True))
    run_steps(m, 3)
    assert m.registers.v[1] == 0x78
    assert m.registers.v[0xF] == 0


def test_shift_left_legacy_shifts_vx() -> None:
    m = make_machine(0x6181, 0x6201, 0x812E)
    run_steps(m, 3)
    assert m.registers.v[1] == 0x02
    assert m.registers.v[0xF] == 1


def test_shift_left_quirk_shifts_vy() -> None:
    m = make_machine(0x6181, 0x6201, 0x812E, quirks=Quirks(shift_uses_vy=True))
    run_steps(m, 3)
    assert m.registers.v[1] == 0x02
    assert m.registers.v[0xF] == 0


def test_unknown_alu_op_is_noop() -> None:
    m = make_machine(0x6103, 0x6205, 0x812F, 0x6007)
    run_steps(m, 4)
    assert m.registers.v[1] == 3
    assert m.registers.v[0] == 7
    assert not m.machine_halt


# ---------------------------------------------------------------------------
# Index register
# ---------------------------------------------------------------------------

def test_load_index() -> None:
    m = make_machine(0xA123)
    m.step()
    assert m.registers.i == 0x123


def test_add_index_flag_on_12_bit_overflow() -> None:
    m = make_machine(0xAFFF, 0x6001, 0xF01E)
    run_steps(m, 3)
    assert m.registers.i == 0x1000
    assert m.registers.v[0xF] == 1


def test_add_index_clears_flag_in_range() -> None:
    m = make_machine(0x6F01, 0xA100, 0x6002, 0xF01E)
    run_steps(m, 4)
    assert m.registers.i == 0x102
    assert m.registers.v[0xF] == 0


def test_font_char_address() -> None:
    m = make_machine(0x6A05, 0xFA29)
    run_steps(m, 2)
    assert m.registers.i == 0x69


def test_font_char_uses_low_nibble() -> None:
    m = make_machine(0x6A1F, 0xFA29)
    run_steps(m, 2)
    assert m.registers.i == 0x50 + 0xF * 5


# ---------------------------------------------------------------------------
# Random / draw
# ---------------------------------------------------------------------------

def test_random_is_masked() -> None:
    m = make_machine(*([0xC00F] * 32))
    for _ in range(32):
        m.step()
        assert m.registers.v[0] <= 0x0F


def test_random_with_zero_mask_is_zero() -> None:
    m = make_machine(0x60FF, 0xC000)
    run_steps(m, 2)
    assert m.registers.v[0] == 0


def test_draw_font_glyph_and_collision() -> None:
    # V0 = 0, I = glyph "0", draw 5 rows at (0, 0) twice.
    m = make_machine(0x6000, 0xF029, 0xD005, 0xD005)
    run_steps(m, 3)
    assert m.registers.v[0xF] == 0
    assert m.display.is_set(0, 0)
    assert m.display.lit_count() == 14
    m.step()
    assert m.registers.v[0xF] == 1
    assert m.display.lit_count() == 0


def test_draw_clips_at_bottom_right() -> None:
    m = make_machine(0x603E, 0x611F, 0xA300, 0xD012)
    m.memory.write_block(0x300, b"\xff\xff")
    run_steps(m, 4)
    assert sorted(m.display.lit_cells()) == [(62, 31), (63, 31)]


# ---------------------------------------------------------------------------
# Keypad
# ---------------------------------------------------------------------------

def test_skip_if_key_down() -> None:
    m = make_machine(0x6007, 0xE09E)
    m.keys.raise_input(7, True)
    m.keys.capture()
    run_steps(m, 2)
    assert m.registers.pc == 0x206


def test_skip_if_key_up() -> None:
    m = make_machine(0x6007, 0xE0A1)
    run_steps(m, 2)
    assert m.registers.pc == 0x206


def test_key_skip_uses_low_nibble_of_vx() -> None:
    m = make_machine(0x6017, 0xE09E)
    m.keys.raise_input(7, True)
    m.keys.capture()
    run_steps(m, 2)
    assert m.registers.pc == 0x206


def test_wait_key_requires_press_then_release() -> None:
    m = make_machine(0xF30A, 0x6401)
    keys = m.keys

    m.step()
    assert m.cpu.awaiting_key
    pc_while_waiting = m.registers.pc

    m.step()
    assert m.cpu.awaiting_key

    keys.raise_input(0xB, True)
    keys.capture()
    m.step()
    m.step()
    assert m.cpu.awaiting_key
    assert m.registers.pc == pc_while_waiting

    keys.raise_input(0xB, False)
    keys.capture()
    m.step()
    assert not m.cpu.awaiting_key
    assert m.registers.v[3] == 0xB

    m.step()
    assert m.registers.v[4] == 1


def test_wait_key_ignores_key_held_before_wait() -> None:
    m = make_machine(0xF30A, 0x6401)
    keys = m.keys
    keys.raise_input(5, True)
    keys.capture()

    m.step()
    m.step()
    assert m.cpu.awaiting_key

    # Letting go of the held key does not complete the wait.
    keys.raise_input(5, False)
    keys.capture()
    m.step()
    m.step()
    assert m.cpu.awaiting_key
    assert m.registers.v[3] == 0

    # A fresh press and release of the same key does.
    keys.raise_input(5, True)
    keys.capture()
    m.step()
    assert m.cpu.awaiting_key
    keys.raise_input(5, False)
    keys.capture()
    m.step()
    assert not m.cpu.awaiting_key
    assert m.registers.v[3] == 5


def test_wait_key_accepts_other_key_while_one_is_held() -> None:
    m = make_machine(0xF30A)
    keys = m.keys
    keys.raise_input(1, True)
    keys.capture()
    m.step()

    keys.raise_input(0xC, True)
    keys.capture()
    m.step()
    keys.raise_input(0xC, False)
    keys.capture()
    m.step()
    assert not m.cpu.awaiting_key
    assert m.registers.v[3] == 0xC


# ---------------------------------------------------------------------------
# Timers
# ---------------------------------------------------------------------------

def test_timer_registers() -> None:
    m = make_machine(0x6020, 0xF015, 0x6130, 0xF118, 0xF207)
    run_steps(m, 5)
    assert m.timers.delay == 0x20
    assert m.timers.sound == 0x30
    assert m.registers.v[2] == 0x20


# ---------------------------------------------------------------------------
# Memory transfer
# ---------------------------------------------------------------------------

def test_bcd() -> None:
    m = make_machine(0x637B, 0xA400, 0xF333)
    run_steps(m, 3)
    assert m.memory.read_block(0x400, 3) == bytes([1, 2, 3])


@pytest.mark.parametrize("value, digits", [(0, (0, 0, 0)), (9, (0, 0, 9)), (255, (2, 5, 5))])
def test_bcd_edges(value, digits) -> None:
    m = make_machine(0x6000 | value, 0xA400, 0xF033)
    run_steps(m, 3)
    assert tuple(m.memory.read_block(0x400, 3)) == digits


def test_store_and_load_leave_index_by_default() -> None:
    m = make_machine(0x6011, 0x6122, 0x6233, 0xA500, 0xF255, 0x6000, 0x6100, 0x6200, 0xF265)
    run_steps(m, 5)
    assert m.memory.read_block(0x500, 4) == bytes([0x11, 0x22, 0x33, 0x00])
    assert m.registers.i == 0x500
    run_steps(m, 4)
    assert tuple(m.registers.v[:3]) == (0x11, 0x22, 0x33)
    assert m.registers.i == 0x500


def test_store_and_load_increment_index_quirk() -> None:
    m = make_machine(
        0x6011, 0x6122, 0xA500, 0xF155, 0xA500, 0xF165,
        quirks=Quirks(store_load_increments_index=True),
    )
    run_steps(m, 4)
    assert m.registers.i == 0x502
    run_steps(m, 2)
    assert m.registers.i == 0x502
    assert tuple(m.registers.v[:2]) == (0x11, 0x22)


def test_store_past_end_of_memory_is_dropped() -> None:
    m = make_machine(0x6011, 0x6122, 0xAFFF, 0xF155)
    run_steps(m, 4)
    assert m.memory.read(0xFFF) == 0x11
    assert not m.machine_halt
