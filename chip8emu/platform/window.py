"""
Main application window.
Uses pygame to create a display, drive the host loop, and coordinate
input, emulation and video.

Typical usage::

    from chip8emu.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    window = Window(machine, scale=16)
    window.run()
"""

from __future__ import annotations

import logging
import time

import pygame

from chip8emu.core.machine import Chip8Machine
from chip8emu.platform.input_handler import InputHandler
from chip8emu.shell.frame_renderer import FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "CHIP-8"

# Minimum / maximum allowed display scale factors.
_MIN_SCALE: int = 1
_MAX_SCALE: int = 32

# Host frame rate.  Independent of the emulated CPU and timer rates.
_HOST_FPS: int = 60


class Window:
    """Pygame window that owns the host loop.

    Each iteration polls input, hands the elapsed time to
    :meth:`Chip8Machine.run_frame`, and draws the framebuffer.

    Parameters
    ----------
    machine:
        A machine with a ROM already loaded.
    scale:
        Integer scale factor applied to the 64x32 native resolution.
    fps:
        Host frame rate cap.
    """

    def __init__(self, machine: Chip8Machine, scale: int = 16, *, fps: int = _HOST_FPS) -> None:
        # ---- basic state -------------------------------------------------
        self._machine = machine
        self._scale: int = max(_MIN_SCALE, min(_MAX_SCALE, scale))
        self._fps: int = fps
        self._running: bool = False

        display = machine.display
        self._display_width: int = display.width * self._scale
        self._display_height: int = display.height * self._scale

        # ---- init pygame display -----------------------------------------
        if not pygame.get_init():
            pygame.init()

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
        )
        pygame.display.set_caption(_WINDOW_TITLE)

        self._clock: pygame.time.Clock = pygame.time.Clock()

        # ---- subsystems --------------------------------------------------
        self._frame_renderer: FrameRenderer = FrameRenderer(display)
        self._input: InputHandler = InputHandler(machine.keys)

        # ---- performance counters ----------------------------------------
        self._frame_count: int = 0
        self._fps_update_time: float = 0.0
        self._fps_display: float = 0.0

        logger.info(
            "Window: %dx%d native, %dx%d display (scale=%d, %d fps)",
            display.width,
            display.height,
            self._display_width,
            self._display_height,
            self._scale,
            self._fps,
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Enter the host loop.

        Blocks until the user closes the window or presses Escape.  An
        :class:`~chip8emu.core.errors.EmulatorFault` raised by the machine
        ends the loop and propagates to the caller after pygame is shut
        down.
        """
        self._running = True
        self._fps_update_time = time.monotonic()
        self._frame_count = 0
        self._clock.tick()

        logger.info("Entering main loop (target %d fps)", self._fps)

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()

    # ------------------------------------------------------------------
    # Per-frame tick
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        """Execute one iteration of the host loop."""
        # ---- timing ------------------------------------------------------
        elapsed = self._clock.tick(self._fps) / 1000.0

        # ---- input -------------------------------------------------------
        self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return

        # ---- emulation ---------------------------------------------------
        self._machine.run_frame(elapsed)

        # ---- video -------------------------------------------------------
        surface = self._frame_renderer.render()
        scaled = pygame.transform.scale(surface, self._screen.get_size())
        self._screen.blit(scaled, (0, 0))
        pygame.display.flip()

        self._update_fps()

    # ------------------------------------------------------------------
    # FPS tracking
    # ------------------------------------------------------------------

    def _update_fps(self) -> None:
        """Update the displayed FPS counter roughly once per second."""
        self._frame_count += 1
        now = time.monotonic()
        elapsed = now - self._fps_update_time
        if elapsed >= 1.0:
            self._fps_display = self._frame_count / elapsed
            self._frame_count = 0
            self._fps_update_time = now
            pygame.display.set_caption(f"{_WINDOW_TITLE}  [{self._fps_display:.1f} fps]")

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        logger.info("Shutting down")
        pygame.quit()
