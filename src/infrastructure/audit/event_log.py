"""
In-Memory Event Log - ordered history of committed ledger events.

Subscribes to the event bus and appends every published event. Because the
unit of work only publishes after commit, the log never contains events of a
rolled-back operation.
"""

import logging
import threading
from typing import Any, TypeVar

from src.domain.events import DomainEvent, EventBus

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=DomainEvent)


class InMemoryEventLog:
    """Append-only event store for observers and tests."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self._lock = threading.Lock()
        self._events: list[DomainEvent] = []
        if event_bus is not None:
            self.attach(event_bus)

    def attach(self, event_bus: EventBus) -> None:
        event_bus.subscribe(self.record)

    def record(self, event: DomainEvent) -> None:
        with self._lock:
            self._events.append(event)
        logger.debug(
            f"Recorded {event.event_type}",
            extra={"event_id": event.event_id, "event_type": event.event_type},
        )

    @property
    def events(self) -> list[DomainEvent]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: type[E]) -> list[E]:
        with self._lock:
            return [e for e in self._events if isinstance(e, event_type)]

    def to_dicts(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
