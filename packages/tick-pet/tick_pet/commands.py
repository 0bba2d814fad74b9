"""CommandQueue: serializes UI requests into the simulation's tick loop."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Feed:
    food: str = "meal"


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Clean:
    pass


@dataclass(frozen=True)
class Heal:
    pass


@dataclass(frozen=True)
class Revive:
    pass


@dataclass(frozen=True)
class StartOver:
    pass


class CommandQueue:
    """FIFO of command dataclasses, one handler per command class.

    ``handler(cmd) -> bool`` returns True to accept, False to reject.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Any], Callable[[Any], bool]] = {}
        self._pending: deque[Any] = deque()

    def handle(self, cmd_type: type[Any], handler: Callable[[Any], bool]) -> None:
        self._handlers[cmd_type] = handler

    def enqueue(self, cmd: Any) -> None:
        """Add a command to the queue. Safe to call between ticks."""
        if type(cmd) not in self._handlers:
            raise TypeError(f"No handler registered for {type(cmd).__qualname__}")
        self._pending.append(cmd)

    def pending(self) -> int:
        return len(self._pending)

    def drain(self) -> list[tuple[Any, bool]]:
        """Process all pending commands. Returns ``[(cmd, accepted), ...]``."""
        results: list[tuple[Any, bool]] = []
        while self._pending:
            cmd = self._pending.popleft()
            accepted = self._handlers[type(cmd)](cmd)
            if not accepted:
                logger.debug("rejected %r", cmd)
            results.append((cmd, accepted))
        return results
