"""
ROM loading service.

CHIP-8 program images are headerless: the whole file is copied into memory
starting at ``0x200``.  The only check is that it fits in the 3584 bytes of
program space.
"""

from __future__ import annotations

import logging
import os

from chip8emu.core.errors import LoadFailure
from chip8emu.core.types import MAX_ROM_SIZE

logger = logging.getLogger(__name__)


class RomLoader:
    """Static utility for reading CHIP-8 program images from disk."""

    @staticmethod
    def read(path: str) -> bytes:
        """Read the program image at *path*.

        Raises:
            LoadFailure: If the file cannot be read or is larger than
                program space.
        """
        try:
            with open(path, "rb") as fh:
                data = fh.read()
        except OSError as exc:
            raise LoadFailure(f"Cannot open ROM {path!r}: {exc.strerror or exc}") from exc

        if len(data) > MAX_ROM_SIZE:
            raise LoadFailure(f"ROM too big ({len(data)} bytes, max {MAX_ROM_SIZE})")

        logger.debug("Read %d bytes from %s", len(data), path)
        return data

    @staticmethod
    def describe(path: str) -> dict[str, object]:
        """Return basic metadata about the ROM at *path*."""
        data = RomLoader.read(path)
        return {
            "file": os.path.basename(path),
            "size": len(data),
            "free_program_space": MAX_ROM_SIZE - len(data),
        }
