"""EvolutionStager: egg -> juvenile -> adult from cumulative age."""
from __future__ import annotations

import logging
import random

from tick_pet.config import EvolutionConfig
from tick_pet.types import EGG_KEY, Phase, Stage

logger = logging.getLogger(__name__)

_LEGACY_FORMS = {
    "char1": "chog_child", "char1_adult": "Chog",
    "char2": "molandak_child", "char2_adult": "Molandak",
    "char3": "moyaki_child", "char3_adult": "Moyaki",
    "char4": "we_child", "char4_adult": "WE",
}


class EvolutionStager:
    def __init__(self, config: EvolutionConfig | None = None) -> None:
        self._config = config if config is not None else EvolutionConfig()

    @property
    def config(self) -> EvolutionConfig:
        return self._config

    def advance(self, stage: Stage, age_ms: float, rng: random.Random,
                variant: str | None = None) -> Stage:
        """Apply at most one due transition. ``variant`` overrides the random
        juvenile pick."""
        cfg = self._config
        if stage.phase is Phase.EGG and age_ms >= cfg.child_at_ms:
            return self._hatch(rng, variant)
        if stage.phase is Phase.JUVENILE and age_ms >= cfg.adult_at_ms:
            return self._grow(stage)
        return stage

    def force(self, stage: Stage, rng: random.Random) -> Stage:
        """Evolve immediately regardless of age. Adults stay as they are."""
        if stage.phase is Phase.EGG:
            return self._hatch(rng, None)
        if stage.phase is Phase.JUVENILE:
            return self._grow(stage)
        return stage

    def from_key(self, key: object) -> Stage:
        """Parse a stored form key, accepting legacy names. Unknown keys hatch
        back into an egg."""
        if not isinstance(key, str):
            return Stage.egg()
        key = _LEGACY_FORMS.get(key, key)
        if key in self._config.adult_map:
            return Stage(Phase.JUVENILE, key)
        if key in self._config.adult_map.values():
            return Stage(Phase.ADULT, key)
        if key != EGG_KEY:
            logger.warning("unknown form %r, falling back to egg", key)
        return Stage.egg()

    def _hatch(self, rng: random.Random, variant: str | None) -> Stage:
        choices = self._config.juvenile_variants
        if variant is None or variant not in choices:
            variant = rng.choice(choices)
        return Stage(Phase.JUVENILE, variant)

    def _grow(self, stage: Stage) -> Stage:
        adult = self._config.adult_map.get(stage.variant or "")
        if adult is None:
            return stage
        return Stage(Phase.ADULT, adult)
