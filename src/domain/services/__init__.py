"""Domain services for ledger logic that spans entities."""

from .access_control import AccessControl, Role
from .asset_registry import AssetRegistry
from .circuit_breaker import CircuitBreaker
from .copy_trading import CopyTradeResult, CopyTradingDelegate, CopyTradingSummary
from .partial_sell_allocator import PartialFill, PartialSellAllocator, PartialSellResult
from .pnl_calculator import compute_pnl, compute_price_change_ratio
from .position_ledger import ClosedPosition, PositionLedger, ProfitWithdrawal, validate_amount
from .settlement_calculator import Settlement, compute_fee, compute_settlement
from .unit_of_work import LedgerUnitOfWork
from .value_transfer_gateway import send_value

__all__ = [
    "AccessControl",
    "Role",
    "AssetRegistry",
    "CircuitBreaker",
    "CopyTradingDelegate",
    "CopyTradeResult",
    "CopyTradingSummary",
    "PartialSellAllocator",
    "PartialSellResult",
    "PartialFill",
    "compute_pnl",
    "compute_price_change_ratio",
    "PositionLedger",
    "ClosedPosition",
    "ProfitWithdrawal",
    "validate_amount",
    "Settlement",
    "compute_fee",
    "compute_settlement",
    "LedgerUnitOfWork",
    "send_value",
]
