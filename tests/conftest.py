import os

# Let pygame build surfaces without a real display or sound card.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pytest

from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import PROGRAM_START

from tests.helpers import make_machine


@pytest.fixture
def machine() -> Chip8Machine:
    return make_machine()


@pytest.fixture
def start() -> int:
    return PROGRAM_START
