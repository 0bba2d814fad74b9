"""Needs arithmetic: decay over time, action boosts and the death verdict.

Every function here is pure: it takes the current :class:`Needs` and returns
a new, clamped instance. Nothing reads the clock.
"""
from __future__ import annotations

from tick_pet.config import ActionEffects, DecayRates, Food
from tick_pet.types import (
    COLLAPSE,
    ILLNESS,
    STARVATION,
    Needs,
    catastrophe_reason,
)


def decay(needs: Needs, dt: float, rates: DecayRates, *, sick: bool = False,
          catastrophe_active: bool = False, dirty: bool = False) -> Needs:
    """Drain each need by its per-millisecond rate times ``dt``."""
    if dt <= 0:
        return needs.clamped()
    hunger = rates.hunger_catastrophe if catastrophe_active else rates.hunger
    health = rates.health_sick if sick else rates.health
    happiness = rates.happiness_sick if sick else rates.happiness
    cleanliness = rates.cleanliness_dirty if dirty else rates.cleanliness
    return Needs(
        cleanliness=needs.cleanliness - cleanliness * dt,
        hunger=needs.hunger - hunger * dt,
        happiness=needs.happiness - happiness * dt,
        health=needs.health - health * dt,
    ).clamped()


def death_reason(needs: Needs, *, sick: bool = False,
                 catastrophe_cause: str | None = None) -> str | None:
    """Return why the pet died, or None if it is still alive.

    Priority: starvation, then the active catastrophe, then illness, then a
    generic collapse.
    """
    if needs.hunger > 0 and needs.health > 0:
        return None
    if needs.hunger <= 0:
        return STARVATION
    if catastrophe_cause is not None:
        return catastrophe_reason(catastrophe_cause)
    if sick:
        return ILLNESS
    return COLLAPSE


def feed(needs: Needs, food: Food) -> Needs:
    return Needs(
        cleanliness=needs.cleanliness,
        hunger=needs.hunger + food.hunger,
        happiness=needs.happiness + food.happiness,
        health=needs.health,
    ).clamped()


def play(needs: Needs, effects: ActionEffects) -> Needs:
    return Needs(
        cleanliness=needs.cleanliness,
        hunger=needs.hunger,
        happiness=needs.happiness + effects.play_happiness,
        health=needs.health + effects.play_health,
    ).clamped()


def clean(needs: Needs, effects: ActionEffects) -> Needs:
    return Needs(
        cleanliness=max(needs.cleanliness, effects.clean_floor),
        hunger=needs.hunger,
        happiness=needs.happiness + effects.clean_happiness,
        health=needs.health,
    ).clamped()


def heal(needs: Needs, effects: ActionEffects) -> Needs:
    return Needs(
        cleanliness=needs.cleanliness,
        hunger=needs.hunger,
        happiness=needs.happiness + effects.heal_happiness,
        health=needs.health + effects.heal_health,
    ).clamped()


def revive(needs: Needs, effects: ActionEffects) -> Needs:
    """Lift needs to the revival floors. Hunger is set, not floored."""
    return Needs(
        cleanliness=max(needs.cleanliness, effects.revive_cleanliness),
        hunger=effects.revive_hunger,
        happiness=max(needs.happiness, effects.revive_happiness),
        health=max(needs.health, effects.revive_health),
    ).clamped()
