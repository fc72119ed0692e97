"""
KeyState -- the 16-key hexadecimal keypad, double-buffered.

Host code writes key transitions into a staging vector through
:meth:`KeyState.raise_input`.  Once per host iteration the machine calls
:meth:`KeyState.capture`, which snapshots the staging vector into the
captured vector.  The interpreter only ever reads the captured vector, so
every CPU step inside one host iteration sees the same key state.

Keypad layout (logical key codes)::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F
"""

from __future__ import annotations

from chip8emu.core.types import NUM_KEYS


class KeyState:
    """Staging and captured down/up vectors for keys ``0x0..0xF``."""

    def __init__(self) -> None:
        self._next_state: list[bool] = [False] * NUM_KEYS
        self._state: list[bool] = [False] * NUM_KEYS

    # ------------------------------------------------------------------
    # Host side (staging buffer)
    # ------------------------------------------------------------------

    def raise_input(self, key: int, down: bool) -> None:
        """Record a key press (``down=True``) or release for *key*."""
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"key must be in 0x0..0xF, got {key!r}")
        self._next_state[key] = down

    def clear_all_input(self) -> None:
        """Release every key in both buffers."""
        for k in range(NUM_KEYS):
            self._next_state[k] = False
            self._state[k] = False

    def capture(self) -> None:
        """Snapshot the staging vector for the upcoming host iteration."""
        self._state[:] = self._next_state

    # ------------------------------------------------------------------
    # Interpreter side (captured buffer)
    # ------------------------------------------------------------------

    def is_down(self, key: int) -> bool:
        return self._state[key & 0xF]

    def down_keys(self) -> frozenset[int]:
        """Return the key codes currently down."""
        return frozenset(k for k, down in enumerate(self._state) if down)

    def snapshot(self) -> tuple[bool, ...]:
        return tuple(self._state)

    def __repr__(self) -> str:
        down = ",".join(f"{k:X}" for k, d in enumerate(self._state) if d)
        return f"KeyState(down=[{down}])"
