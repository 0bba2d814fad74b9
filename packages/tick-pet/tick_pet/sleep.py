"""Sleep window policy: is the pet asleep at a given instant?"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from tick_pet.types import SleepConfig, SleepWindowLockedError

logger = logging.getLogger(__name__)

AUTO = "auto"
CUSTOM = "custom"

AUTO_START = "22:00"
AUTO_END = "08:30"


def parse_hhmm(text: str) -> int:
    """Parse ``"HH:MM"`` into minutes after midnight."""
    try:
        hours, minutes = (int(part) for part in text.split(":"))
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time of day {text!r}, expected HH:MM") from None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time of day {text!r}, expected HH:MM")
    return hours * 60 + minutes


def in_window(minute_of_day: int, start: int, end: int) -> bool:
    """Half-open ``[start, end)`` window that wraps midnight when start > end."""
    if start > end:
        return minute_of_day >= start or minute_of_day < end
    return start <= minute_of_day < end


class SleepWindowPolicy:
    """Decides sleep from local time of day.

    Auto mode sleeps over ``[22:00, 08:30)``. Custom mode uses the configured
    start/end; once locked the configuration can no longer change.
    """

    def __init__(self, config: SleepConfig | None = None, tz: tzinfo | None = None) -> None:
        self._config = config if config is not None else SleepConfig()
        self._tz = tz
        self._window = self._resolve(self._config)

    @property
    def config(self) -> SleepConfig:
        return self._config

    @property
    def locked(self) -> bool:
        return self._config.locked

    def is_asleep(self, ts_ms: float) -> bool:
        local = datetime.fromtimestamp(ts_ms / 1000, tz=self._tz)
        start, end = self._window
        return in_window(local.hour * 60 + local.minute, start, end)

    def configure(self, start: str, end: str, lock: bool = True) -> None:
        """Switch to a custom window. Locks it by default (one-time setting)."""
        self._check_unlocked()
        parse_hhmm(start)
        parse_hhmm(end)
        self._config.mode = CUSTOM
        self._config.start = start
        self._config.end = end
        self._config.locked = lock
        self._window = self._resolve(self._config)
        logger.info("sleep window set to %s-%s (locked=%s)", start, end, lock)

    def use_auto(self) -> None:
        self._check_unlocked()
        self._config.mode = AUTO
        self._window = self._resolve(self._config)

    def lock(self) -> None:
        self._config.locked = True

    def _check_unlocked(self) -> None:
        if self._config.locked:
            raise SleepWindowLockedError("sleep window is locked")

    @staticmethod
    def _resolve(config: SleepConfig) -> tuple[int, int]:
        if config.mode == CUSTOM:
            try:
                return parse_hhmm(config.start), parse_hhmm(config.end)
            except ValueError:
                logger.warning(
                    "bad custom sleep window %r-%r, using auto window",
                    config.start, config.end,
                )
        return parse_hhmm(AUTO_START), parse_hhmm(AUTO_END)
