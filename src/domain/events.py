"""
Domain events emitted by the ledger for observers and indexers.

Each event carries enough fields to reconstruct ledger history. Events raised
inside a unit of work are buffered and only published once the outermost
operation commits, so observers never see events of a rolled-back operation.
"""

# Standard library imports
import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all ledger events."""

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary representation."""
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        data["event_type"] = self.event_type
        return data


# ============================================================================
# Position Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class PositionOpened(DomainEvent):
    account: str
    asset: str
    amount: int
    entry_price: int
    index: int


@dataclass(frozen=True, kw_only=True)
class PositionClosed(DomainEvent):
    """A full close, or the aggregate of one partial sell when ``partial`` is set."""

    account: str
    asset: str
    exit_price: int
    realized_pnl: int
    amount: int
    payout: int
    fee: int
    index: int | None = None
    partial: bool = False


@dataclass(frozen=True, kw_only=True)
class ProfitWithdrawn(DomainEvent):
    account: str
    amount: int
    asset: str
    index: int
    fee: int
    new_entry_price: int


@dataclass(frozen=True, kw_only=True)
class LiquidityAdded(DomainEvent):
    source: str
    amount: int


# ============================================================================
# Administrative Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class PriceSourceChanged(DomainEvent):
    """Raised on registration or replacement; ``source_id`` is None on removal."""

    asset: str
    source_id: str | None


@dataclass(frozen=True, kw_only=True)
class FeeRateChanged(DomainEvent):
    old_fee_bps: int
    new_fee_bps: int


@dataclass(frozen=True, kw_only=True)
class CircuitBreakerToggled(DomainEvent):
    engaged: bool


@dataclass(frozen=True, kw_only=True)
class ExcessSwept(DomainEvent):
    recipient: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class RoleChanged(DomainEvent):
    role: str
    account: str
    granted: bool


# ============================================================================
# Copy-Trading Events
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class FundsDeposited(DomainEvent):
    account: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class FundsWithdrawn(DomainEvent):
    account: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class TraderFollowed(DomainEvent):
    follower: str
    trader: str
    percentage: int


@dataclass(frozen=True, kw_only=True)
class TraderUnfollowed(DomainEvent):
    follower: str
    trader: str


@dataclass(frozen=True, kw_only=True)
class TradeCopied(DomainEvent):
    follower: str
    trader: str
    asset: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class CopySellExecuted(DomainEvent):
    follower: str
    trader: str
    asset: str
    amount: int
    realized_pnl: int


EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe dispatcher for domain events.

    Handlers subscribe to a concrete event type, or to every event when no
    type is given. A failing handler is logged and does not prevent delivery
    to the remaining handlers; the operation that produced the event has
    already committed.
    """

    def __init__(self) -> None:
        self._handlers: list[tuple[type[DomainEvent] | None, EventHandler]] = []
        self._lock = threading.Lock()

    def subscribe(
        self, handler: EventHandler, event_type: type[DomainEvent] | None = None
    ) -> None:
        with self._lock:
            self._handlers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers = [(t, h) for t, h in self._handlers if h is not handler]

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            handlers = list(self._handlers)

        for event_type, handler in handlers:
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    f"Event handler failed for {event.event_type}",
                    extra={"event_id": event.event_id, "event_type": event.event_type},
                )
