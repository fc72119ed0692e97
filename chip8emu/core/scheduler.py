"""
ClockScheduler -- converts host elapsed time into CPU steps and timer ticks.

The host loop runs at whatever rate its display allows.  The scheduler
keeps one accumulator per schedule, measured in periods of that schedule;
each call to :meth:`advance` adds the elapsed host time to both, then
drains whole periods from each.  The fractional remainder carries over to
the next call, so over time the emulated rates converge on the configured
ones regardless of host jitter.
"""

from __future__ import annotations

from chip8emu.core.types import CPU_HZ, TIMER_HZ

# Rounding slack, in periods, when deciding whether a period is complete.
_EPSILON = 1e-9


class ClockScheduler:
    """Two independent fixed-rate schedules driven by elapsed time.

    Parameters
    ----------
    cpu_hz:
        Instructions per second (reference 500).
    timer_hz:
        Timer ticks per second (reference 60).
    """

    def __init__(self, cpu_hz: float = CPU_HZ, timer_hz: float = TIMER_HZ) -> None:
        if cpu_hz <= 0:
            raise ValueError(f"cpu_hz must be positive, got {cpu_hz}")
        if timer_hz <= 0:
            raise ValueError(f"timer_hz must be positive, got {timer_hz}")

        self.cpu_hz: float = cpu_hz
        self.timer_hz: float = timer_hz
        self.cpu_period: float = 1.0 / cpu_hz
        self.timer_period: float = 1.0 / timer_hz

        self._cpu_accumulator: float = 0.0
        self._timer_accumulator: float = 0.0

    def reset(self) -> None:
        self._cpu_accumulator = 0.0
        self._timer_accumulator = 0.0

    def advance(self, elapsed: float) -> tuple[int, int]:
        """Account for *elapsed* seconds of host time.

        Returns:
            ``(cpu_steps, timer_ticks)`` now due.
        """
        if elapsed > 0:
            self._cpu_accumulator += elapsed * self.cpu_hz
            self._timer_accumulator += elapsed * self.timer_hz

        cpu_steps = _drain(self._cpu_accumulator)
        self._cpu_accumulator -= cpu_steps

        timer_ticks = _drain(self._timer_accumulator)
        self._timer_accumulator -= timer_ticks

        return cpu_steps, timer_ticks

    @property
    def cpu_backlog(self) -> float:
        """Leftover CPU time (seconds) not yet converted into a step."""
        return max(self._cpu_accumulator, 0.0) / self.cpu_hz

    def __repr__(self) -> str:
        return f"ClockScheduler(cpu_hz={self.cpu_hz}, timer_hz={self.timer_hz})"


def _drain(accumulated: float) -> int:
    """Whole periods contained in *accumulated*, allowing for rounding."""
    whole = int(accumulated)
    if accumulated - whole >= 1.0 - _EPSILON:
        whole += 1
    return whole
