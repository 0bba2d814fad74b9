"""Simulation parameter dataclasses."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import tzinfo

_SECOND = 1000
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR


@dataclass(frozen=True)
class DecayRates:
    """Fraction of each need lost per millisecond.

    Attributes:
        hunger: Normal hunger drain (empty in ~90 minutes).
        hunger_catastrophe: Hunger drain while a catastrophe is active.
        health: Normal health drain.
        health_sick: Health drain while sick.
        happiness: Normal happiness drain.
        happiness_sick: Happiness drain while sick.
        cleanliness: Cleanliness drain with no poop on the floor.
        cleanliness_dirty: Cleanliness drain while poop is present.
    """

    hunger: float = 1 / (90 * _MINUTE)
    hunger_catastrophe: float = 1 / _MINUTE
    health: float = 1 / (10 * _HOUR)
    health_sick: float = 1 / (7 * _MINUTE)
    happiness: float = 1 / (12 * _HOUR)
    happiness_sick: float = 1 / (8 * _MINUTE)
    cleanliness: float = 1 / (12 * _HOUR)
    cleanliness_dirty: float = 1 / (5 * _HOUR)


@dataclass(frozen=True)
class IllnessRates:
    """Per-second illness chances.

    The chance of falling sick is ``(base + poop_weight * min(1, poops /
    poop_saturation) + dirt_weight * (1 - cleanliness)) * scale``.
    """

    base: float = 0.02
    poop_weight: float = 0.3
    poop_saturation: int = 5
    dirt_weight: float = 0.2
    scale: float = 0.03
    recovery: float = 0.015


@dataclass(frozen=True)
class Food:
    hunger: float
    happiness: float


def _default_foods() -> dict[str, Food]:
    return {
        "meal": Food(hunger=0.25, happiness=0.05),
        "snack": Food(hunger=0.1, happiness=0.1),
    }


@dataclass(frozen=True)
class ActionEffects:
    foods: dict[str, Food] = field(default_factory=_default_foods)
    feed_poop_chance: float = 0.7
    feed_cooldown_ms: int = 3 * _SECOND
    play_happiness: float = 0.2
    play_health: float = 0.03
    clean_floor: float = 0.92
    clean_happiness: float = 0.02
    heal_health: float = 0.25
    heal_happiness: float = 0.05
    heal_cooldown_ms: int = _MINUTE
    revive_cleanliness: float = 0.7
    revive_hunger: float = 0.4
    revive_happiness: float = 0.5
    revive_health: float = 0.6


CAPPED = "capped"
OPEN = "open"


@dataclass(frozen=True)
class CatastropheConfig:
    """Catastrophe scheduling.

    In ``capped`` mode exactly ``total`` events are planned at birth: one
    ``first_delay_ms`` after birth and the rest inside
    ``[window_start_ms, window_end_ms)``. ``open`` mode plans the same events
    and additionally rolls ``open_chance`` each awake minute once the pet is
    older than ``window_end_ms``.
    """

    duration_ms: int = _MINUTE
    causes: tuple[str, ...] = (
        "food poisoning",
        "mysterious flu",
        "meteor dust",
        "bad RNG",
        "doom day syndrome",
    )
    first_delay_ms: int = _MINUTE
    shift_limit_ms: int = 3 * _HOUR
    total: int = 4
    window_start_ms: int = _DAY
    window_end_ms: int = 2 * _DAY
    pick_attempts: int = 2000
    mode: str = CAPPED
    open_chance: float = 0.9


def _default_adult_map() -> dict[str, str]:
    return {
        "chog_child": "Chog",
        "molandak_child": "Molandak",
        "moyaki_child": "Moyaki",
        "we_child": "WE",
    }


@dataclass(frozen=True)
class EvolutionConfig:
    child_at_ms: int = _MINUTE
    adult_at_ms: int = 2 * _DAY
    adult_map: dict[str, str] = field(default_factory=_default_adult_map)

    @property
    def juvenile_variants(self) -> tuple[str, ...]:
        return tuple(self.adult_map)


@dataclass(frozen=True)
class PetConfig:
    """Every fixed parameter of the simulation.

    Attributes:
        stat_interval_ms: Online stat tick period.
        age_interval_ms: Online age ticker period.
        stat_dt_cap_ms: Largest delta one stat tick may apply.
        age_dt_cap_ms: Largest delta one age tick may apply.
        catch_up_cap_ms: Largest gap the offline replay reconstructs.
        replay_step_ms: Offline replay granularity.
        poop_chance: Chance per stat tick that the awake pet poops.
        persist_interval_ms: Debounce period for periodic saves.
        tz: Time zone for the sleep window; None means the host's local zone.
    """

    decay: DecayRates = field(default_factory=DecayRates)
    illness: IllnessRates = field(default_factory=IllnessRates)
    actions: ActionEffects = field(default_factory=ActionEffects)
    catastrophe: CatastropheConfig = field(default_factory=CatastropheConfig)
    evolution: EvolutionConfig = field(default_factory=EvolutionConfig)
    stat_interval_ms: int = _SECOND
    age_interval_ms: float = _SECOND / 6
    stat_dt_cap_ms: int = 10 * _MINUTE
    age_dt_cap_ms: int = _SECOND
    catch_up_cap_ms: int = 2 * _DAY
    replay_step_ms: int = _MINUTE
    poop_chance: float = 0.07
    poop_variants: int = 3
    floor_width: float = 320.0
    persist_interval_ms: int = 15 * _SECOND
    tz: tzinfo | None = None
