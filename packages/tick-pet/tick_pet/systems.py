"""System factories shared by the online loop and the offline replay.

A system is a plain function ``(record, ctx) -> None``. Each step the driver
runs its systems in order and stops early once one calls
``ctx.request_stop()``.
"""
from __future__ import annotations

import logging
import random
from typing import Callable

from tick_pet import illness, needs
from tick_pet.config import DecayRates, IllnessRates, PetConfig
from tick_pet.evolution import EvolutionStager
from tick_pet.types import PetRecord, Poop, Stage, StepContext, System

logger = logging.getLogger(__name__)


def _paused(record: PetRecord, ctx: StepContext) -> bool:
    return record.dead or ctx.asleep or ctx.dt <= 0


def make_decay_system(rates: DecayRates) -> System:
    def decay_system(record: PetRecord, ctx: StepContext) -> None:
        if _paused(record, ctx):
            return
        record.needs = needs.decay(
            record.needs,
            ctx.dt,
            rates,
            sick=record.sick,
            catastrophe_active=ctx.catastrophe is not None,
            dirty=len(record.poops) > 0,
        )

    return decay_system


def make_illness_system(rates: IllnessRates) -> System:
    def illness_system(record: PetRecord, ctx: StepContext) -> None:
        if _paused(record, ctx):
            return
        was_sick = record.sick
        record.sick = illness.roll(
            record.sick,
            rates,
            ctx.random,
            dt=ctx.dt,
            poop_count=len(record.poops),
            cleanliness=record.needs.cleanliness,
        )
        if record.sick != was_sick:
            logger.debug("sick=%s at %d", record.sick, ctx.now)

    return illness_system


def make_death_system(
    on_death: Callable[[PetRecord, StepContext, str], None] | None = None,
) -> System:
    """Return a system that marks the pet dead once hunger or health hits zero.

    The *on_death* callback, if provided, is invoked after the record is
    updated with ``(record, ctx, reason)``. The step is then stopped.
    """

    def death_system(record: PetRecord, ctx: StepContext) -> None:
        if record.dead:
            return
        cause = ctx.catastrophe.cause if ctx.catastrophe is not None else None
        reason = needs.death_reason(record.needs, sick=record.sick, catastrophe_cause=cause)
        if reason is None:
            return
        record.dead = True
        record.death_reason = reason
        record.died_at = int(ctx.now)
        logger.info("pet %s died: %s", record.owner, reason)
        if on_death is not None:
            on_death(record, ctx, reason)
        ctx.request_stop()

    return death_system


def make_poop_system(config: PetConfig) -> System:
    def poop_system(record: PetRecord, ctx: StepContext) -> None:
        if _paused(record, ctx):
            return
        if ctx.random.random() < config.poop_chance:
            record.add_poop(spawn_poop(config, ctx.random))

    return poop_system


def make_evolution_system(
    stager: EvolutionStager,
    on_evolve: Callable[[PetRecord, Stage], None] | None = None,
) -> System:
    def evolution_system(record: PetRecord, ctx: StepContext) -> None:
        if record.dead:
            return
        evolve(record, stager, ctx.random, on_evolve)

    return evolution_system


def evolve(record: PetRecord, stager: EvolutionStager, rng: random.Random,
           on_evolve: Callable[[PetRecord, Stage], None] | None = None) -> bool:
    """Run one evolution check against ``record.age_ms``."""
    nxt = stager.advance(record.stage, record.age_ms, rng)
    if nxt == record.stage:
        return False
    logger.info("pet %s evolved %s -> %s", record.owner, record.stage.key, nxt.key)
    record.stage = nxt
    if on_evolve is not None:
        on_evolve(record, nxt)
    return True


def spawn_poop(config: PetConfig, rng: random.Random) -> Poop:
    x = 8 + rng.random() * (config.floor_width - 16)
    return Poop(x=x, variant=rng.randrange(config.poop_variants))
