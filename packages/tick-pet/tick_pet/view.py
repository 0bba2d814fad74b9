"""Read-only view state for a presentation layer."""
from __future__ import annotations

from dataclasses import dataclass, field

from tick_pet.types import ActiveCatastrophe, Phase, PetRecord, is_catastrophe_reason

SAD_BELOW = 0.35


@dataclass(frozen=True)
class PetView:
    animation: str  # "dead" | "sleep" | "sick" | "sad" | "walk"
    bars: dict[str, int]
    banners: list[str] = field(default_factory=list)
    name: str = ""
    poops: int = 0
    age_s: int = 0
    sick: bool = False
    dead: bool = False
    death_reason: str | None = None
    can_heal: bool = False


def display_name(record: PetRecord) -> str:
    stage = record.stage
    if stage.phase is Phase.JUVENILE and stage.variant:
        base = stage.variant.removesuffix("_child")
        base = "WE" if base == "we" else base.capitalize()
        return f"{base} (child)"
    return stage.key


def build_view(record: PetRecord, *, asleep: bool,
               catastrophe: ActiveCatastrophe | None, can_heal: bool) -> PetView:
    if record.dead:
        animation = "dead"
    elif asleep:
        animation = "sleep"
    elif record.sick:
        animation = "sick"
    elif record.needs.happiness < SAD_BELOW:
        animation = "sad"
    else:
        animation = "walk"

    banners = []
    if record.dead:
        reason = record.death_reason
        if is_catastrophe_reason(reason):
            banners.append(f"Your pet was lost to {reason.partition(':')[2]}")
        else:
            banners.append(f"Your pet has died: {reason}")
    else:
        if catastrophe is not None:
            banners.append(f"{catastrophe.cause}! stats draining fast")
        if asleep:
            banners.append("Sleeping")

    return PetView(
        animation=animation,
        bars={name: round(value * 100) for name, value in record.needs.as_dict().items()},
        banners=banners,
        name=display_name(record),
        poops=len(record.poops),
        age_s=int(record.age_ms // 1000),
        sick=record.sick,
        dead=record.dead,
        death_reason=record.death_reason,
        can_heal=can_heal,
    )
