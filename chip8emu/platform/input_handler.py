"""
Input handler.
Maps keyboard keys onto the CHIP-8 hexadecimal keypad.

Keyboard layout
---------------

The left-hand 4x4 block of a QWERTY keyboard stands in for the keypad::

    Keyboard        CHIP-8
    1 2 3 4         1 2 3 C
    Q W E R         4 5 6 D
    A S D F         7 8 9 E
    Z X C V         A 0 B F

Escape (or closing the window) requests quit.
"""

from __future__ import annotations

import logging

import pygame

from chip8emu.core.keypad import KeyState

logger = logging.getLogger(__name__)


# pygame key constant -> CHIP-8 key code
_KEY_MAP: dict[int, int] = {
    pygame.K_x: 0x0,
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_z: 0xA,
    pygame.K_c: 0xB,
    pygame.K_4: 0xC,
    pygame.K_r: 0xD,
    pygame.K_f: 0xE,
    pygame.K_v: 0xF,
}


class InputHandler:
    """Translates pygame keyboard events into keypad state.

    Parameters
    ----------
    keys:
        The machine's :class:`KeyState`; events are written into its
        staging buffer.
    """

    def __init__(self, keys: KeyState) -> None:
        self._keys = keys
        self._quit_requested: bool = False

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def poll(self) -> None:
        """Pump the pygame event queue and process all pending events.

        This should be called once at the top of each host iteration.
        """
        for event in pygame.event.get():
            self.handle_event(event)

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_ESCAPE:
                self._quit_requested = True
                return
            self._send(event.key, True)
        elif event.type == pygame.KEYUP:
            self._send(event.key, False)

    def _send(self, pygame_key: int, down: bool) -> None:
        key = _KEY_MAP.get(pygame_key)
        if key is None:
            return
        self._keys.raise_input(key, down)
