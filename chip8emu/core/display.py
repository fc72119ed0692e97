"""
DisplayBuffer -- the 64x32 monochrome framebuffer.

The buffer is a numpy ``bool`` array of shape ``(height, width)`` laid out
row-major: ``pixels[y, x]``.  It persists across CPU steps and is only
changed by :meth:`DisplayBuffer.clear` and
:meth:`DisplayBuffer.composite_sprite`.

Sprite compositing
------------------

A sprite is up to 15 bytes, one per row, most significant bit leftmost.
The origin is wrapped into the screen (``x % 64``, ``y % 32``) but the
sprite itself is clipped: rows below the bottom edge and columns past the
right edge are dropped, never wrapped around.  Each set bit is XORed into
the framebuffer; if that turns a lit pixel off, a collision is reported.
"""

from __future__ import annotations

from typing import Iterator, Sequence

import numpy as np

from chip8emu.core.types import DISPLAY_HEIGHT, DISPLAY_WIDTH

SPRITE_WIDTH: int = 8


class DisplayBuffer:
    """Monochrome bitmap with XOR sprite compositing.

    Parameters
    ----------
    width:
        Pixels per row.  64 on a standard CHIP-8.
    height:
        Number of rows.  32 on a standard CHIP-8.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> None:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        if height <= 0:
            raise ValueError(f"height must be positive, got {height}")

        self.width: int = width
        self.height: int = height
        self._pixels: np.ndarray = np.zeros((height, width), dtype=np.bool_)

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Turn every pixel off."""
        self._pixels.fill(False)

    def composite_sprite(self, x: int, y: int, rows: Sequence[int]) -> bool:
        """XOR an 8-pixel-wide sprite onto the buffer.

        Args:
            x: Horizontal origin; wrapped modulo :attr:`width`.
            y: Vertical origin; wrapped modulo :attr:`height`.
            rows: One byte per sprite row, MSB is the leftmost pixel.

        Returns:
            ``True`` if any lit pixel was turned off.
        """
        x0 = x % self.width
        y0 = y % self.height

        visible_rows = min(len(rows), self.height - y0)
        visible_cols = min(SPRITE_WIDTH, self.width - x0)
        if visible_rows <= 0 or visible_cols <= 0:
            return False

        # Unpack sprite bytes into a (rows, 8) boolean mask, then clip.
        sprite = np.unpackbits(
            np.frombuffer(bytes(rows[:visible_rows]), dtype=np.uint8)
        ).reshape(visible_rows, SPRITE_WIDTH).astype(np.bool_)
        sprite = sprite[:, :visible_cols]

        region = self._pixels[y0:y0 + visible_rows, x0:x0 + visible_cols]
        collision = bool(np.any(region & sprite))
        region ^= sprite
        return collision

    # ------------------------------------------------------------------
    # Read-only access for renderers and tests
    # ------------------------------------------------------------------

    @property
    def pixels(self) -> np.ndarray:
        """A read-only view of the framebuffer, shape ``(height, width)``."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    def is_set(self, x: int, y: int) -> bool:
        return bool(self._pixels[y, x])

    def lit_cells(self) -> Iterator[tuple[int, int]]:
        """Yield ``(x, y)`` for every lit pixel in row-major order."""
        for y, x in np.argwhere(self._pixels):
            yield int(x), int(y)

    def lit_count(self) -> int:
        return int(np.count_nonzero(self._pixels))

    def __repr__(self) -> str:
        return (
            f"DisplayBuffer("
            f"width={self.width}, "
            f"height={self.height}, "
            f"lit={self.lit_count()})"
        )
