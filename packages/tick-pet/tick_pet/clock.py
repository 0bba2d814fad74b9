"""Time sources and clamped elapsed-time deltas."""

from __future__ import annotations

import logging
import math
import time

logger = logging.getLogger(__name__)


def clamp_delta(ms: float, cap: float) -> float:
    """Clamp a raw delta into ``[0, cap]``. Non-finite deltas become 0."""
    if not math.isfinite(ms) or ms < 0:
        return 0.0
    return min(ms, cap)


class Clock:
    """Real time: wall clock for calendar logic, monotonic for durations."""

    def wall_ms(self) -> int:
        return int(time.time() * 1000)

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000

    def sleep(self, ms: float) -> None:
        if ms > 0:
            time.sleep(ms / 1000)


class ManualClock(Clock):
    """Clock driven by hand. ``advance`` moves both readings together;
    ``set_wall`` moves only the wall clock, like a user changing system time.
    """

    def __init__(self, wall_ms: int = 0, monotonic_ms: float = 0.0) -> None:
        self._wall = float(wall_ms)
        self._mono = monotonic_ms

    def wall_ms(self) -> int:
        return int(self._wall)

    def monotonic_ms(self) -> float:
        return self._mono

    def sleep(self, ms: float) -> None:
        if ms > 0:
            self.advance(ms)

    def advance(self, ms: float) -> None:
        self._wall += ms
        self._mono += ms

    def set_wall(self, wall_ms: int) -> None:
        self._wall = float(wall_ms)


class SessionTimer:
    """Measures monotonic time between readings, clamped to ``cap`` ms.

    Suspend/resume or a stalled process shows up as one huge gap; the cap
    keeps a single reading from simulating that gap in full.
    """

    def __init__(self, clock: Clock, cap: float) -> None:
        if cap <= 0:
            raise ValueError("cap must be positive")
        self._clock = clock
        self._cap = cap
        self._last = clock.monotonic_ms()

    @property
    def cap(self) -> float:
        return self._cap

    def delta(self) -> float:
        now = self._clock.monotonic_ms()
        raw = now - self._last
        self._last = now
        dt = clamp_delta(raw, self._cap)
        if dt != raw:
            logger.debug("clamped session delta %.1fms to %.1fms", raw, dt)
        return dt

    def reset(self) -> None:
        self._last = self._clock.monotonic_ms()
