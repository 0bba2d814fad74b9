"""Shared data types for the pet simulation."""

from __future__ import annotations

import math
import random as _random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

POOP_CAP = 12

STARVATION = "starvation"
COLLAPSE = "collapse"
ILLNESS = "illness"
_CATASTROPHE_PREFIX = "catastrophe:"

EGG_KEY = "egg"


def catastrophe_reason(cause: str) -> str:
    return f"{_CATASTROPHE_PREFIX}{cause}"


def is_catastrophe_reason(reason: str | None) -> bool:
    return reason is not None and reason.startswith(_CATASTROPHE_PREFIX)


class Phase(str, Enum):
    EGG = "egg"
    JUVENILE = "juvenile"
    ADULT = "adult"


@dataclass(frozen=True)
class Stage:
    """Life stage. ``variant`` is the form key for non-egg phases."""

    phase: Phase
    variant: str | None = None

    @classmethod
    def egg(cls) -> Stage:
        return cls(Phase.EGG)

    @property
    def key(self) -> str:
        return self.variant if self.variant is not None else EGG_KEY


def _unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass
class Needs:
    cleanliness: float = 0.9
    hunger: float = 0.65
    happiness: float = 0.6
    health: float = 1.0

    def clamped(self) -> Needs:
        return Needs(
            cleanliness=_unit(self.cleanliness),
            hunger=_unit(self.hunger),
            happiness=_unit(self.happiness),
            health=_unit(self.health),
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "cleanliness": self.cleanliness,
            "hunger": self.hunger,
            "happiness": self.happiness,
            "health": self.health,
        }


@dataclass(frozen=True)
class Poop:
    x: float
    variant: int


@dataclass
class SleepConfig:
    mode: str = "auto"  # "auto" | "custom"
    start: str = "22:00"
    end: str = "08:30"
    locked: bool = False


@dataclass(frozen=True)
class ActiveCatastrophe:
    """A catastrophe window that is currently draining the pet."""

    trigger: int
    cause: str
    until: int


def _poop_deque() -> deque[Poop]:
    return deque(maxlen=POOP_CAP)


@dataclass
class PetRecord:
    """The persisted aggregate for one pet. Timestamps are epoch milliseconds."""

    owner: str
    stage: Stage = field(default_factory=Stage.egg)
    needs: Needs = field(default_factory=Needs)
    sick: bool = False
    dead: bool = False
    death_reason: str | None = None
    died_at: int | None = None
    poops: deque[Poop] = field(default_factory=_poop_deque)
    age_ms: float = 0.0
    born_at: int = 0
    last_seen_wall: int = 0
    max_seen_wall: int = 0
    catastrophe_schedule: list[int] = field(default_factory=list)
    catastrophe_consumed: set[int] = field(default_factory=set)
    sleep: SleepConfig = field(default_factory=SleepConfig)
    last_heal_at: int = 0
    last_feed_at: dict[str, int] = field(default_factory=dict)

    @classmethod
    def new(cls, owner: str, now: int, sleep: SleepConfig | None = None) -> PetRecord:
        return cls(
            owner=owner,
            born_at=now,
            last_seen_wall=now,
            max_seen_wall=now,
            sleep=sleep if sleep is not None else SleepConfig(),
        )

    def add_poop(self, poop: Poop) -> None:
        # deque(maxlen=...) evicts from the left
        self.poops.append(poop)


@dataclass(frozen=True)
class StepContext:
    """Inputs for one simulation step, online or offline.

    ``now`` is the wall-clock instant of the step and ``dt`` its length in
    milliseconds. ``catastrophe`` is the window draining the pet during the
    step, if any.
    """

    step_number: int
    now: float
    dt: float
    asleep: bool
    catastrophe: ActiveCatastrophe | None
    request_stop: Callable[[], None]
    random: _random.Random


class SleepWindowLockedError(RuntimeError):
    """Raised when changing a sleep window that has already been locked."""


System = Callable[[PetRecord, StepContext], None]
