"""
TimerUnit -- the delay and sound countdown timers.

Both counters are 8 bits wide and count down by one per tick until they
reach zero, where they stay.  Ticks are delivered by the clock scheduler
at the timer rate (60 Hz), independently of the CPU rate.
"""

from __future__ import annotations


class TimerUnit:
    """Delay and sound timers."""

    def __init__(self) -> None:
        self._delay: int = 0
        self._sound: int = 0

    def reset(self) -> None:
        self._delay = 0
        self._sound = 0

    def tick(self) -> None:
        """Decrement each non-zero counter by one."""
        if self._delay > 0:
            self._delay -= 1
        if self._sound > 0:
            self._sound -= 1

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int) -> None:
        self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int) -> None:
        self._sound = value & 0xFF

    @property
    def sound_active(self) -> bool:
        """``True`` while the sound timer is running."""
        return self._sound > 0

    def __repr__(self) -> str:
        return f"TimerUnit(delay={self._delay}, sound={self._sound})"
