"""Typed in-process event bus with flush semantics."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar

E = TypeVar("E")

_Handler = Callable[[Any], None]


@dataclass(frozen=True)
class PetDied:
    reason: str
    died_at: int


@dataclass(frozen=True)
class Revived:
    owner: str


@dataclass(frozen=True)
class LifeRedeemed:
    owner: str


@dataclass(frozen=True)
class NewGame:
    owner: str


@dataclass(frozen=True)
class Evolved:
    stage: str


@dataclass(frozen=True)
class CatastropheStarted:
    cause: str
    until: int


class SignalBus:
    """Handlers subscribe per event class. ``publish`` queues; ``flush``
    delivers queued events in publish order."""

    def __init__(self) -> None:
        self._subscribers: dict[type, list[_Handler]] = {}
        self._queue: list[Any] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        handlers = self._subscribers.get(event_type)
        if handlers is None:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def publish(self, event: Any) -> None:
        self._queue.append(event)

    def flush(self) -> None:
        snapshot = self._queue
        self._queue = []
        for event in snapshot:
            for handler in list(self._subscribers.get(type(event), [])):
                handler(event)

    def pending(self) -> list[Any]:
        return list(self._queue)

    def clear(self) -> None:
        self._queue.clear()
