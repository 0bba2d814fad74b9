"""OnlineSimulationLoop - stat ticks, age ticks, pacing and lifecycle hooks."""
from __future__ import annotations

import logging
import random
from typing import Callable

from tick_pet.catastrophe import CatastropheScheduler
from tick_pet.clock import Clock, SessionTimer
from tick_pet.config import PetConfig
from tick_pet.evolution import EvolutionStager
from tick_pet.sleep import SleepWindowPolicy
from tick_pet.systems import (
    evolve,
    make_death_system,
    make_decay_system,
    make_evolution_system,
    make_illness_system,
    make_poop_system,
)
from tick_pet.types import ActiveCatastrophe, PetRecord, Stage, StepContext, System

logger = logging.getLogger(__name__)

Hook = Callable[[PetRecord], None]


class OnlineSimulationLoop:
    """Applies the simulation while a session is running.

    Two monotonic tickers drive the pet: a stat tick (decay, illness, poop,
    catastrophes, death) every ``stat_interval_ms`` and a faster age tick so
    the pet visibly ages between stat ticks. Neither reads wall-clock
    differences; the wall clock is only used to place a step in the day.
    """

    def __init__(
        self,
        record: PetRecord,
        policy: SleepWindowPolicy,
        scheduler: CatastropheScheduler,
        config: PetConfig,
        clock: Clock,
        rng: random.Random,
        stager: EvolutionStager | None = None,
        on_death: Callable[[PetRecord, StepContext, str], None] | None = None,
        on_evolve: Callable[[PetRecord, Stage], None] | None = None,
        on_catastrophe: Callable[[PetRecord, ActiveCatastrophe], None] | None = None,
    ) -> None:
        self._record = record
        self._policy = policy
        self._scheduler = scheduler
        self._config = config
        self._clock = clock
        self._rng = rng
        self._stager = stager if stager is not None else EvolutionStager(config.evolution)
        self._on_evolve = on_evolve
        self._on_catastrophe = on_catastrophe
        self._stat_timer = SessionTimer(clock, config.stat_dt_cap_ms)
        self._age_timer = SessionTimer(clock, config.age_dt_cap_ms)
        self._step_number = 0
        self._announced: int | None = None
        self._stop_requested = False
        self._running = False
        self._systems: list[System] = [
            make_decay_system(config.decay),
            make_illness_system(config.illness),
            make_death_system(on_death),
            make_poop_system(config),
            make_evolution_system(self._stager, on_evolve),
        ]
        self._start_hooks: list[Hook] = []
        self._stop_hooks: list[Hook] = []
        self._tick_hooks: list[Hook] = []

    @property
    def record(self) -> PetRecord:
        return self._record

    @property
    def step_number(self) -> int:
        return self._step_number

    @property
    def running(self) -> bool:
        return self._running

    def attach(self, record: PetRecord, policy: SleepWindowPolicy,
               scheduler: CatastropheScheduler) -> None:
        """Switch to another pet without stopping the loop.

        Safe to call from a tick hook; the next tick simulates the new record.
        """
        self._record = record
        self._policy = policy
        self._scheduler = scheduler
        self._announced = None
        self.resync()

    def add_system(self, system: System) -> None:
        self._systems.append(system)

    def on_start(self, hook: Hook) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Hook) -> None:
        self._stop_hooks.append(hook)

    def on_tick(self, hook: Hook) -> None:
        """Called after every stat tick, e.g. for debounced persistence."""
        self._tick_hooks.append(hook)

    def _request_stop(self) -> None:
        self._stop_requested = True

    def step_stats(self) -> None:
        """One stat tick using the monotonic delta since the previous one."""
        dt = self._stat_timer.delta()
        self._step_number += 1
        record = self._record
        if not record.dead:
            now = self._clock.wall_ms()
            asleep = self._policy.is_asleep(now)
            self._scheduler.extend(now, record.born_at, asleep, self._rng)
            catastrophe = self._scheduler.poll(now, asleep, self._rng)
            if catastrophe is not None and catastrophe.trigger != self._announced:
                self._announced = catastrophe.trigger
                if self._on_catastrophe is not None:
                    self._on_catastrophe(record, catastrophe)

            self._stop_requested = False
            ctx = StepContext(
                step_number=self._step_number,
                now=now,
                dt=dt,
                asleep=asleep,
                catastrophe=catastrophe,
                request_stop=self._request_stop,
                random=self._rng,
            )
            for system in self._systems:
                system(record, ctx)
                if self._stop_requested:
                    break
        for hook in self._tick_hooks:
            hook(record)

    def step_age(self) -> None:
        """One age tick. Age only accumulates while the pet is alive."""
        dt = self._age_timer.delta()
        if self._record.dead or dt <= 0:
            return
        self._record.age_ms += dt
        evolve(self._record, self._stager, self._rng, self._on_evolve)

    def resync(self) -> None:
        """Forget time spent outside the loop (e.g. in an offline replay)."""
        self._stat_timer.reset()
        self._age_timer.reset()

    def run(self, n: int) -> None:
        """Run ``n`` stat ticks, sleeping one stat interval before each."""
        for hook in self._start_hooks:
            hook(self._record)
        for _ in range(n):
            self._clock.sleep(self._config.stat_interval_ms)
            self.step_age()
            self.step_stats()
        for hook in self._stop_hooks:
            hook(self._record)

    def run_forever(self, duration_ms: float | None = None) -> None:
        """Pace both tickers against the monotonic clock until :meth:`stop`
        is called or ``duration_ms`` has passed."""
        clock = self._clock
        self._running = True
        for hook in self._start_hooks:
            hook(self._record)

        start = clock.monotonic_ms()
        next_stat = start + self._config.stat_interval_ms
        next_age = start + self._config.age_interval_ms
        try:
            while self._running:
                now = clock.monotonic_ms()
                if duration_ms is not None and now - start >= duration_ms:
                    break
                if now >= next_age:
                    self.step_age()
                    next_age = _next_deadline(next_age, self._config.age_interval_ms, now)
                if now >= next_stat:
                    self.step_stats()
                    next_stat = _next_deadline(next_stat, self._config.stat_interval_ms, now)
                wake = min(next_stat, next_age)
                if duration_ms is not None:
                    wake = min(wake, start + duration_ms)
                clock.sleep(wake - clock.monotonic_ms())
        finally:
            self._running = False
            for hook in self._stop_hooks:
                hook(self._record)

    def stop(self) -> None:
        self._running = False


def _next_deadline(deadline: float, interval: float, now: float) -> float:
    """Advance a deadline by one interval, skipping intervals missed while stalled."""
    deadline += interval
    if deadline <= now:
        deadline = now + interval
    return deadline
