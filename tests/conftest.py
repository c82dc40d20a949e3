"""Global pytest configuration and fixtures."""

# Third-party imports
import pytest

# Local imports
from src.domain.services import (
    AccessControl,
    AssetRegistry,
    CircuitBreaker,
    CopyTradingDelegate,
    LedgerUnitOfWork,
    PositionLedger,
)
from src.infrastructure.audit import InMemoryEventLog
from src.infrastructure.price_sources import StaticPriceFeed
from src.infrastructure.transfers import InMemoryValueTransfer
from tests.helpers import ADMIN, BOT, price


@pytest.fixture
def uow() -> LedgerUnitOfWork:
    return LedgerUnitOfWork()


@pytest.fixture
def event_log(uow) -> InMemoryEventLog:
    """Records every event published after commit."""
    return InMemoryEventLog(uow.event_bus)


@pytest.fixture
def feed() -> StaticPriceFeed:
    return StaticPriceFeed({"X": price(100), "Y": price(100)}, source_id="test-feed")


@pytest.fixture
def transfer() -> InMemoryValueTransfer:
    return InMemoryValueTransfer()


@pytest.fixture
def breaker(uow) -> CircuitBreaker:
    return CircuitBreaker(uow)


@pytest.fixture
def registry(uow, feed) -> AssetRegistry:
    registry = AssetRegistry(uow)
    registry.register("X", feed)
    registry.register("Y", feed)
    return registry


@pytest.fixture
def ledger(registry, breaker, transfer, uow) -> PositionLedger:
    """Ledger with 1% fee and bounds loose enough for small raw amounts."""
    return PositionLedger(
        registry,
        breaker,
        transfer,
        uow,
        fee_bps=100,
        min_open_amount=1,
        max_open_amount=10**30,
        min_sell_amount=1,
    )


@pytest.fixture
def access(uow) -> AccessControl:
    return AccessControl(uow, admin=ADMIN, automation_accounts=[BOT])


@pytest.fixture
def delegate(ledger, access, breaker, transfer, uow) -> CopyTradingDelegate:
    return CopyTradingDelegate(ledger, access, breaker, transfer, uow)
