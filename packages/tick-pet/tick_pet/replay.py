"""OfflineReplayEngine: minute-stepped catch-up of the time nobody was watching.

The replay works on a copy of the record and reports what changed in a
:class:`ReplayResult`; the caller decides how to apply it.
"""
from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Callable

from tick_pet.catastrophe import CatastropheScheduler
from tick_pet.clock import clamp_delta
from tick_pet.config import PetConfig
from tick_pet.evolution import EvolutionStager
from tick_pet.systems import (
    make_death_system,
    make_decay_system,
    make_evolution_system,
    make_illness_system,
)
from tick_pet.types import Needs, PetRecord, Stage, StepContext, System

logger = logging.getLogger(__name__)


def catch_up_elapsed(last_seen: int, now: int, max_seen: int, cap: float) -> float:
    """Elapsed absent time, measured against the wall-clock high-water mark.

    A clock moved backwards yields zero rather than a negative gap.
    """
    return clamp_delta(max(now, max_seen) - last_seen, cap)


@dataclass
class ReplayResult:
    needs: Needs
    sick: bool
    stage: Stage
    age_delta_ms: float
    steps: int
    consumed: list[int] = field(default_factory=list)
    scheduled: list[int] = field(default_factory=list)
    fired: list[int] = field(default_factory=list)
    dead: bool = False
    death_reason: str | None = None
    died_at: int | None = None


class OfflineReplayEngine:
    def __init__(self, config: PetConfig, is_asleep: Callable[[float], bool],
                 stager: EvolutionStager | None = None) -> None:
        self._config = config
        self._is_asleep = is_asleep
        self._stager = stager if stager is not None else EvolutionStager(config.evolution)
        self._stop_requested = False
        self._systems: list[System] = [
            make_decay_system(config.decay),
            make_illness_system(config.illness),
            make_death_system(),
            make_evolution_system(self._stager),
        ]

    def _request_stop(self) -> None:
        self._stop_requested = True

    def replay(self, record: PetRecord, start_wall: int, elapsed_ms: float,
               rng: random.Random) -> ReplayResult:
        """Replay ``elapsed_ms`` starting at ``start_wall``, one step per minute.

        Each step checks sleep at the step's wall-clock instant, fires any due
        catastrophe, then runs decay, illness and the death check. Replay stops
        at the first death. A trailing partial minute only counts toward age.
        """
        work = copy.deepcopy(record)
        scheduler = CatastropheScheduler(
            self._config.catastrophe, work.catastrophe_schedule, work.catastrophe_consumed
        )
        consumed_before = set(work.catastrophe_consumed)
        step_ms = self._config.replay_step_ms
        elapsed_ms = clamp_delta(elapsed_ms, self._config.catch_up_cap_ms)
        total_steps = int(elapsed_ms // step_ms)

        fired: list[int] = []
        steps = 0
        if not work.dead:
            for i in range(total_steps):
                now = start_wall + i * step_ms
                asleep = self._is_asleep(now)
                scheduler.extend(now, work.born_at, asleep, rng)
                catastrophe = scheduler.poll(now, asleep, rng)
                if catastrophe is not None and catastrophe.trigger not in fired:
                    fired.append(catastrophe.trigger)
                work.age_ms += step_ms
                steps += 1

                self._stop_requested = False
                ctx = StepContext(
                    step_number=steps,
                    now=now,
                    dt=step_ms,
                    asleep=asleep,
                    catastrophe=catastrophe,
                    request_stop=self._request_stop,
                    random=rng,
                )
                for system in self._systems:
                    system(work, ctx)
                    if self._stop_requested:
                        break
                if work.dead:
                    break
            if not work.dead:
                work.age_ms += elapsed_ms - steps * step_ms

        result = ReplayResult(
            needs=work.needs.clamped(),
            sick=work.sick,
            stage=work.stage,
            age_delta_ms=work.age_ms - record.age_ms,
            steps=steps,
            consumed=sorted(work.catastrophe_consumed - consumed_before),
            scheduled=sorted(set(work.catastrophe_schedule) - set(record.catastrophe_schedule)),
            fired=fired,
            dead=work.dead,
            death_reason=work.death_reason,
            died_at=work.died_at,
        )
        logger.debug(
            "replayed %d/%d steps from %d: dead=%s fired=%s",
            steps, total_steps, start_wall, result.dead, fired,
        )
        return result
