"""Field-by-field persistence of :class:`PetRecord` under owner-scoped keys.

Every field is stored as JSON under ``"<owner>:<field>"``. Loading never
fails: a missing or malformed field falls back to its birth default and the
rest of the record still loads.
"""
from __future__ import annotations

import json
import logging
import math
from collections import deque
from typing import Any, Callable, TypeVar

from tick_pet.evolution import EvolutionStager
from tick_pet.store import KeyValueStore
from tick_pet.types import POOP_CAP, Needs, PetRecord, Poop, SleepConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PET_FIELDS = (
    "born_at",
    "stage",
    "needs",
    "sick",
    "dead",
    "death_reason",
    "died_at",
    "poops",
    "age_ms",
    "last_seen_wall",
    "max_seen_wall",
    "catastrophe_schedule",
    "catastrophe_consumed",
    "last_heal_at",
    "last_feed_at",
)
_SLEEP_FIELD = "sleep"


def key(owner: str, field: str) -> str:
    return f"{owner.lower()}:{field}"


def encode(record: PetRecord) -> dict[str, Any]:
    return {
        "born_at": record.born_at,
        "stage": record.stage.key,
        "needs": record.needs.as_dict(),
        "sick": record.sick,
        "dead": record.dead,
        "death_reason": record.death_reason,
        "died_at": record.died_at,
        "poops": [{"x": p.x, "variant": p.variant} for p in record.poops],
        "age_ms": record.age_ms,
        "last_seen_wall": record.last_seen_wall,
        "max_seen_wall": record.max_seen_wall,
        "catastrophe_schedule": sorted(record.catastrophe_schedule),
        "catastrophe_consumed": sorted(record.catastrophe_consumed),
        "last_heal_at": record.last_heal_at,
        "last_feed_at": dict(record.last_feed_at),
        _SLEEP_FIELD: {
            "mode": record.sleep.mode,
            "start": record.sleep.start,
            "end": record.sleep.end,
            "locked": record.sleep.locked,
        },
    }


def save(store: KeyValueStore, record: PetRecord) -> None:
    for name, value in encode(record).items():
        store.set(key(record.owner, name), json.dumps(value))


def exists(store: KeyValueStore, owner: str) -> bool:
    return store.get(key(owner, "born_at")) is not None


def clear(store: KeyValueStore, owner: str) -> None:
    """Remove the pet but keep the owner's sleep preferences."""
    for name in _PET_FIELDS:
        store.remove(key(owner, name))


def load(store: KeyValueStore, owner: str, now: int,
         stager: EvolutionStager | None = None) -> PetRecord | None:
    """Rebuild a record, or return None if the owner has no pet yet."""
    if not exists(store, owner):
        return None
    stager = stager if stager is not None else EvolutionStager()

    def read(name: str, parse: Callable[[Any], T], default: T) -> T:
        return _read(store, owner, name, parse, default)

    record = PetRecord.new(owner, now, sleep=load_sleep(store, owner))
    record.born_at = read("born_at", _as_int, now)
    record.stage = stager.from_key(read("stage", _as_str, "egg"))
    record.needs = read("needs", _as_needs, Needs())
    record.sick = read("sick", _as_bool, False)
    record.dead = read("dead", _as_bool, False)
    record.death_reason = read("death_reason", _as_optional(_as_str), None)
    record.died_at = read("died_at", _as_optional(_as_int), None)
    record.poops = deque(read("poops", _as_poops, []), maxlen=POOP_CAP)
    record.age_ms = read("age_ms", _as_duration, 0.0)
    record.last_seen_wall = read("last_seen_wall", _as_int, now)
    record.max_seen_wall = max(read("max_seen_wall", _as_int, record.last_seen_wall),
                               record.last_seen_wall)
    record.catastrophe_schedule = sorted(set(read("catastrophe_schedule", _as_int_list, [])))
    consumed = read("catastrophe_consumed", _as_int_list, [])
    record.catastrophe_consumed = set(consumed) & set(record.catastrophe_schedule)
    record.last_heal_at = read("last_heal_at", _as_int, 0)
    record.last_feed_at = read("last_feed_at", _as_feed_times, {})

    if not record.dead:
        record.death_reason = None
        record.died_at = None
    elif record.death_reason is None:
        record.death_reason = "collapse"
    return record


def load_sleep(store: KeyValueStore, owner: str) -> SleepConfig:
    return _read(store, owner, _SLEEP_FIELD, _as_sleep, SleepConfig())


def _read(store: KeyValueStore, owner: str, name: str,
          parse: Callable[[Any], T], default: T) -> T:
    raw = store.get(key(owner, name))
    if raw is None:
        return default
    try:
        return parse(json.loads(raw))
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning("bad %s for %s (%s), using default", name, owner, exc)
        return default


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError("non-finite number")
    return int(value)


def _as_duration(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"invalid duration {value!r}")
    return float(value)


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a bool, got {type(value).__name__}")
    return value


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _as_optional(parse: Callable[[Any], T]) -> Callable[[Any], T | None]:
    def parse_optional(value: Any) -> T | None:
        return None if value is None else parse(value)

    return parse_optional


def _as_needs(value: Any) -> Needs:
    parts = {name: float(value[name]) for name in ("cleanliness", "hunger", "happiness", "health")}
    if not all(math.isfinite(v) for v in parts.values()):
        raise ValueError("non-finite need")
    return Needs(**parts).clamped()


def _as_poops(value: Any) -> list[Poop]:
    if not isinstance(value, list):
        raise TypeError("poops must be a list")
    poops = [Poop(x=float(p["x"]), variant=int(p["variant"])) for p in value]
    return poops[-POOP_CAP:]


def _as_int_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        raise TypeError("expected a list")
    return [_as_int(v) for v in value]


def _as_feed_times(value: Any) -> dict[str, int]:
    if not isinstance(value, dict):
        raise TypeError("expected an object")
    return {str(k): _as_int(v) for k, v in value.items()}


def _as_sleep(value: Any) -> SleepConfig:
    mode = value.get("mode", "auto")
    if mode not in ("auto", "custom"):
        raise ValueError(f"unknown sleep mode {mode!r}")
    return SleepConfig(
        mode=mode,
        start=_as_str(value.get("start", "22:00")),
        end=_as_str(value.get("end", "08:30")),
        locked=_as_bool(value.get("locked", False)),
    )
