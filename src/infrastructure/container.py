"""
Dependency Injection Container - Central container for ledger dependencies.

This module wires the domain services, application services and
infrastructure adapters of the ledger from an ApplicationConfig. All
components share one unit of work, so every operation, including a copy trade
that drives the ledger, is serialized and atomic across the whole graph.
"""

import logging

from src.application.config import ApplicationConfig
from src.application.services import AccountSummaryService, AdminService
from src.domain.events import EventBus
from src.domain.interfaces import IValueTransfer
from src.domain.services import (
    AccessControl,
    AssetRegistry,
    CircuitBreaker,
    CopyTradingDelegate,
    LedgerUnitOfWork,
    PositionLedger,
)
from src.infrastructure.audit import InMemoryEventLog
from src.infrastructure.transfers import InMemoryValueTransfer

logger = logging.getLogger(__name__)


class LedgerContainer:
    """
    Dependency Injection Container for the position ledger.

    Builds the component graph eagerly. When no value-transfer adapter is
    given, an InMemoryValueTransfer is used.
    """

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        value_transfer: IValueTransfer | None = None,
    ) -> None:
        """Initialize the container with configuration."""
        self.config = config or ApplicationConfig()
        self.config.validate()

        ledger_config = self.config.ledger
        access_config = self.config.access

        self.event_bus = EventBus()
        self.event_log = InMemoryEventLog(self.event_bus)
        self.unit_of_work = LedgerUnitOfWork(self.event_bus)
        self.value_transfer = value_transfer or InMemoryValueTransfer()

        self.circuit_breaker = CircuitBreaker(self.unit_of_work)
        self.access_control = AccessControl(
            self.unit_of_work,
            admin=access_config.admin_account,
            automation_accounts=access_config.automation_accounts,
        )
        self.registry = AssetRegistry(self.unit_of_work, max_price=ledger_config.max_price)
        self.ledger = PositionLedger(
            self.registry,
            self.circuit_breaker,
            self.value_transfer,
            self.unit_of_work,
            fee_bps=ledger_config.fee_bps,
            min_open_amount=ledger_config.min_open_amount,
            max_open_amount=ledger_config.max_open_amount,
            min_sell_amount=ledger_config.min_sell_amount,
        )
        self.copy_trading = CopyTradingDelegate(
            self.ledger,
            self.access_control,
            self.circuit_breaker,
            self.value_transfer,
            self.unit_of_work,
        )

        self.admin = AdminService(
            self.access_control, self.registry, self.ledger, self.circuit_breaker
        )
        self.account_summary = AccountSummaryService(self.ledger, self.copy_trading)

        logger.info(
            "Ledger container initialized",
            extra={"operation_type": "startup", "environment": self.config.environment.value},
        )
