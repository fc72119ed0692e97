"""
Frame renderer.
Converts the machine's boolean DisplayBuffer into an RGB pygame Surface.

The surface has the native 64x32 resolution; the window scales it up to
the display size.  The conversion is a single numpy look-up: each pixel
indexes a two-entry colour table (background, foreground).
"""

from __future__ import annotations

import logging

import numpy as np
import pygame

from chip8emu.core.display import DisplayBuffer

logger = logging.getLogger(__name__)


BACKGROUND: tuple[int, int, int] = (0, 0, 0)
FOREGROUND: tuple[int, int, int] = (255, 255, 255)


class FrameRenderer:
    """Render a :class:`DisplayBuffer` into a reusable pygame Surface.

    Parameters
    ----------
    display:
        The framebuffer to read each frame.
    foreground:
        RGB colour for lit pixels.
    background:
        RGB colour for unlit pixels.
    """

    def __init__(
        self,
        display: DisplayBuffer,
        foreground: tuple[int, int, int] = FOREGROUND,
        background: tuple[int, int, int] = BACKGROUND,
    ) -> None:
        self._display = display
        self._lut: np.ndarray = np.array([background, foreground], dtype=np.uint8)

        self._surface: pygame.Surface = pygame.Surface((display.width, display.height))

        logger.info("FrameRenderer: %dx%d native", display.width, display.height)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def to_rgb(self) -> np.ndarray:
        """Return the framebuffer as an ``(height, width, 3)`` uint8 array."""
        return self._lut[self._display.pixels.astype(np.uint8)]

    def render(self) -> pygame.Surface:
        """Render the current framebuffer and return the surface.

        The same :class:`pygame.Surface` object is reused each frame.
        """
        rgb = self.to_rgb()
        # pygame surfarray expects (W, H, 3) -- transpose width and height.
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
        return self._surface
