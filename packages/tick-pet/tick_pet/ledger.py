"""Lives ledger: the scarce credits that revive a dead pet."""
from __future__ import annotations

import json
import logging
from typing import Protocol

from tick_pet.store import KeyValueStore

logger = logging.getLogger(__name__)

_LIVES_KEY = "lives"
_SPENT_KEY = "lives_spent"


class LivesLedger(Protocol):
    def lives(self, owner: str) -> int: ...

    def add(self, owner: str, delta: int = 1) -> int: ...

    def spend(self, owner: str, death_key: int) -> bool:
        """Consume one life for the death at ``death_key``.

        Idempotent per ``(owner, death_key)``: a repeated call for a death that
        was already paid for returns True without consuming another life.
        """
        ...


class StoreLivesLedger:
    """Ledger kept in a key-value store, keyed by lowercase owner address."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def lives(self, owner: str) -> int:
        return self._counts().get(owner.lower(), 0)

    def add(self, owner: str, delta: int = 1) -> int:
        counts = self._counts()
        owner = owner.lower()
        counts[owner] = max(0, counts.get(owner, 0) + delta)
        self._store.set(_LIVES_KEY, json.dumps(counts))
        return counts[owner]

    def spend(self, owner: str, death_key: int) -> bool:
        owner = owner.lower()
        receipt = f"{owner}:{death_key}"
        spent = self._spent()
        if receipt in spent:
            logger.debug("life for %s already spent", receipt)
            return True
        counts = self._counts()
        if counts.get(owner, 0) <= 0:
            return False
        counts[owner] -= 1
        spent.append(receipt)
        self._store.set(_LIVES_KEY, json.dumps(counts))
        self._store.set(_SPENT_KEY, json.dumps(spent))
        logger.info("spent one life for %s, %d left", owner, counts[owner])
        return True

    def _counts(self) -> dict[str, int]:
        raw = self._store.get(_LIVES_KEY)
        if raw is None:
            return {}
        try:
            data = json.loads(raw)
            return {str(k): int(v) for k, v in data.items()}
        except (ValueError, TypeError, AttributeError):
            logger.warning("unreadable lives map, treating as empty")
            return {}

    def _spent(self) -> list[str]:
        raw = self._store.get(_SPENT_KEY)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("unreadable spent-lives list, treating as empty")
            return []
        return [str(v) for v in data] if isinstance(data, list) else []
