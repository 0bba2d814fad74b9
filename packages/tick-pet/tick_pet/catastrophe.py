"""CatastropheScheduler: plans, fires and retires time-boxed adverse windows."""
from __future__ import annotations

import bisect
import logging
import random
from typing import Callable

from tick_pet.config import OPEN, CatastropheConfig
from tick_pet.types import ActiveCatastrophe

logger = logging.getLogger(__name__)

_MINUTE = 60_000

SleepCheck = Callable[[float], bool]


def floor_minute(ts: float) -> int:
    return int(ts // _MINUTE) * _MINUTE


class CatastropheScheduler:
    """Owns the trigger schedule and the consumed set of one pet.

    ``schedule`` and ``consumed`` are held by reference, so the scheduler
    mutates the lists stored on the pet record directly.
    """

    def __init__(self, config: CatastropheConfig, schedule: list[int] | None = None,
                 consumed: set[int] | None = None) -> None:
        self._config = config
        self._schedule = schedule if schedule is not None else []
        self._schedule.sort()
        self._consumed = consumed if consumed is not None else set()
        self._active: ActiveCatastrophe | None = None
        self._last_roll_minute: int | None = None

    # --- Queries ---

    @property
    def schedule(self) -> list[int]:
        return list(self._schedule)

    @property
    def consumed(self) -> set[int]:
        return set(self._consumed)

    @property
    def active(self) -> ActiveCatastrophe | None:
        return self._active

    def pending(self) -> list[int]:
        return [t for t in self._schedule if t not in self._consumed]

    def active_at(self, now: float) -> ActiveCatastrophe | None:
        if self._active is not None and now < self._active.until:
            return self._active
        return None

    # --- Planning ---

    def seed(self, born_at: int, rng: random.Random, is_asleep: SleepCheck) -> list[int]:
        """Plan the birth schedule. Safe to call again: it only tops up.

        Returns the triggers added by this call.
        """
        cfg = self._config
        added: list[int] = []
        if not self._schedule and cfg.total > 0:
            first = self._resolve_awake(born_at + cfg.first_delay_ms, is_asleep)
            if first is not None:
                self._add(first)
                added.append(first)
            else:
                logger.debug("no awake minute near birth, skipping first catastrophe")

        lo = born_at + cfg.window_start_ms
        hi = born_at + cfg.window_end_ms - cfg.duration_ms
        attempts = 0
        while len(self._schedule) < cfg.total and attempts < cfg.pick_attempts and hi > lo:
            attempts += 1
            pick = self._resolve_awake(rng.randint(lo, hi - 1), is_asleep)
            if pick is None or pick in self._schedule:
                continue
            self._add(pick)
            added.append(pick)

        if added:
            logger.debug("planned catastrophes at %s", added)
        return added

    def extend(self, now: float, born_at: int, asleep: bool, rng: random.Random) -> int | None:
        """Open mode only: once past the planning window, roll once per awake
        minute for a new catastrophe starting at that minute."""
        cfg = self._config
        if cfg.mode != OPEN or asleep or now - born_at < cfg.window_end_ms:
            return None
        minute = floor_minute(now)
        if minute == self._last_roll_minute:
            return None
        self._last_roll_minute = minute
        if rng.random() >= cfg.open_chance or minute in self._schedule:
            return None
        self._add(minute)
        return minute

    # --- Firing ---

    def poll(self, now: float, asleep: bool, rng: random.Random) -> ActiveCatastrophe | None:
        """Fire due entries and return the window draining the pet at ``now``.

        A due entry fires only while the pet is awake; an entry whose window
        has passed is retired whether or not it fired.
        """
        if self._active is not None and now >= self._active.until:
            self._active = None
        duration = self._config.duration_ms
        for trigger in self.pending():
            if trigger > now:
                break
            if now >= trigger + duration:
                self._consumed.add(trigger)
                logger.debug("catastrophe at %d expired without firing", trigger)
                continue
            if asleep:
                continue
            self._consumed.add(trigger)
            until = trigger + duration
            if self._active is not None:
                until = max(until, self._active.until)
            self._active = ActiveCatastrophe(
                trigger=trigger, cause=rng.choice(self._config.causes), until=until
            )
            logger.info("catastrophe %r until %d", self._active.cause, until)
        if asleep:
            return None
        return self.active_at(now)

    def clear_active(self) -> None:
        self._active = None

    def mark_consumed(self, triggers: list[int]) -> None:
        self._consumed.update(triggers)

    # --- Internal ---

    def _add(self, trigger: int) -> None:
        bisect.insort(self._schedule, trigger)

    def _resolve_awake(self, ts: float, is_asleep: SleepCheck) -> int | None:
        """First awake minute at or after ``ts``, searching up to the shift limit."""
        minute = floor_minute(ts)
        limit = minute + self._config.shift_limit_ms
        while minute <= limit:
            if not is_asleep(minute):
                return minute
            minute += _MINUTE
        return None
