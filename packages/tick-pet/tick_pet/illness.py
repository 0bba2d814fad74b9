"""Stochastic sick/healthy transitions."""
from __future__ import annotations

import random

from tick_pet.config import IllnessRates


def sick_chance(rates: IllnessRates, *, poop_count: int, cleanliness: float) -> float:
    """Per-second chance of falling sick."""
    dirt = min(1.0, poop_count / rates.poop_saturation) if rates.poop_saturation > 0 else 0.0
    low_clean = 1.0 - cleanliness
    return (rates.base + rates.poop_weight * dirt + rates.dirt_weight * low_clean) * rates.scale


def scale_chance(per_second: float, dt: float) -> float:
    """Chance that an event with ``per_second`` odds happens at least once in ``dt`` ms.

    One 60s step has the same odds as sixty 1s steps.
    """
    if dt <= 0 or per_second <= 0:
        return 0.0
    if per_second >= 1:
        return 1.0
    return 1.0 - (1.0 - per_second) ** (dt / 1000)


def roll(sick: bool, rates: IllnessRates, rng: random.Random, *, dt: float,
         poop_count: int, cleanliness: float) -> bool:
    """Return the sickness flag after one step of ``dt`` ms.

    Draws exactly one number from ``rng`` per call so replays stay aligned.
    """
    draw = rng.random()
    if sick:
        return not draw < scale_chance(rates.recovery, dt)
    p = sick_chance(rates, poop_count=poop_count, cleanliness=cleanliness)
    return draw < scale_chance(p, dt)
