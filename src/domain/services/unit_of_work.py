"""
Unit of Work for in-memory ledger state.

Serializes every mutating ledger operation behind one process-wide reentrant
lock and makes each operation atomic. Components record an undo action for
every mutation they perform; when an operation raises, the journal is replayed
back to the point where the operation started and its buffered events are
dropped. Blocks nest as savepoints, which covers both the copy-trading
delegate driving the ledger and a value-transfer callback re-entering the
ledger while the outer operation is still in flight.

Events are published after the outermost block commits, still under the
lock, so observers receive them in commit order. Queries run under the same
lock through ``reading()`` and never observe an operation that is still in
flight.

Example:
    >>> uow = LedgerUnitOfWork()
    >>> balances = {"alice": 10}
    >>> with uow.atomic("debit"):
    ...     uow.track_key(balances, "alice")
    ...     balances["alice"] -= 4
    >>> balances["alice"]
    6
"""

# Standard library imports
import logging
import threading
from collections.abc import Callable, Iterator, MutableMapping, MutableSequence
from contextlib import contextmanager
from typing import Any

from ..events import DomainEvent, EventBus

logger = logging.getLogger(__name__)

_MISSING = object()


class LedgerUnitOfWork:
    """Atomic, serialized execution of ledger operations."""

    def __init__(self, event_bus: EventBus | None = None) -> None:
        self.event_bus = event_bus or EventBus()
        self._lock = threading.RLock()
        self._undo_log: list[Callable[[], None]] = []
        self._pending_events: list[DomainEvent] = []
        self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self, operation: str) -> Iterator[None]:
        """Run a block atomically.

        Args:
            operation: Name of the operation, used for logging

        Raises:
            Whatever the block raises, after its mutations were undone
        """
        with self._lock:
            undo_mark = len(self._undo_log)
            event_mark = len(self._pending_events)
            self._depth += 1
            try:
                yield
            except BaseException as e:
                self._rollback_to(undo_mark)
                del self._pending_events[event_mark:]
                self._depth -= 1
                logger.warning(
                    f"Rolled back {operation}: {e}",
                    extra={"operation_type": operation, "error_type": type(e).__name__},
                )
                raise

            self._depth -= 1
            if self._depth == 0:
                self._undo_log.clear()
                committed = self._pending_events
                self._pending_events = []
                for event in committed:
                    self.event_bus.publish(event)

    @contextmanager
    def reading(self) -> Iterator[None]:
        """Hold the operation lock for a read.

        Readers on other threads wait until the in-flight operation commits or
        rolls back. A reader on the thread running the operation, such as a
        value-transfer callback, re-enters and sees the completed bookkeeping.
        """
        with self._lock:
            yield

    def _rollback_to(self, mark: int) -> None:
        while len(self._undo_log) > mark:
            undo = self._undo_log.pop()
            undo()

    def _require_transaction(self) -> None:
        if self._depth == 0:
            raise RuntimeError("Ledger state can only be modified inside atomic()")

    def record(self, undo: Callable[[], None]) -> None:
        """Register an arbitrary undo action for the current block."""
        self._require_transaction()
        self._undo_log.append(undo)

    def track(self, entity: Any) -> None:
        """Snapshot all attributes of an entity before it is mutated."""
        snapshot = dict(vars(entity))

        def undo() -> None:
            state = vars(entity)
            state.clear()
            state.update(snapshot)

        self.record(undo)

    def track_attr(self, obj: Any, name: str) -> None:
        """Snapshot a single attribute before it is reassigned."""
        old_value = getattr(obj, name)
        self.record(lambda: setattr(obj, name, old_value))

    def track_key(self, mapping: MutableMapping[Any, Any], key: Any) -> None:
        """Snapshot one key of a mapping, including its absence."""
        old_value = mapping.get(key, _MISSING)

        def undo() -> None:
            if old_value is _MISSING:
                mapping.pop(key, None)
            else:
                mapping[key] = old_value

        self.record(undo)

    def track_append(self, sequence: MutableSequence[Any]) -> None:
        """Snapshot the length of a sequence before items are appended."""
        length = len(sequence)

        def undo() -> None:
            del sequence[length:]

        self.record(undo)

    def emit(self, event: DomainEvent) -> None:
        """Buffer an event until the outermost block commits."""
        self._require_transaction()
        self._pending_events.append(event)
