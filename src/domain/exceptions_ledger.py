"""
Ledger-specific exception hierarchy.

Refines the five error kinds from ``exceptions`` into the concrete failures
raised by the registry, the position ledger and the copy-trading delegate.
Each exception records the offending values so a caller can correct the next
attempt.
"""

from typing import Any

from .exceptions import (
    AuthorizationError,
    PriceError,
    StateError,
    TransferError,
    ValidationError,
)

# ============================================================================
# Validation Exceptions
# ============================================================================


class UnsupportedAssetError(ValidationError):
    """Raised when an operation names an asset that is not registered."""

    def __init__(self, asset: str) -> None:
        super().__init__(
            f"Asset {asset!r} is not supported",
            field="asset",
            value=asset,
            constraint="registered",
        )
        self.asset = asset


class InvalidAmountError(ValidationError):
    """Raised when an amount falls outside the configured bounds."""

    def __init__(
        self,
        amount: int,
        minimum: int | None = None,
        maximum: int | None = None,
        field: str = "amount",
    ) -> None:
        if minimum is not None and amount < minimum:
            message = f"{field} {amount} below minimum {minimum}"
        elif maximum is not None and amount > maximum:
            message = f"{field} {amount} exceeds maximum {maximum}"
        else:
            message = f"Invalid {field}: {amount}"

        super().__init__(message, field=field, value=amount, constraint="bounds")
        self.amount = amount
        self.minimum = minimum
        self.maximum = maximum
        self.details.update({"minimum": minimum, "maximum": maximum})


class InvalidPercentageError(ValidationError):
    """Raised when a percentage lies outside [1, 100]."""

    def __init__(self, percentage: int, field: str = "percentage") -> None:
        super().__init__(
            f"{field} must be between 1 and 100, got {percentage}",
            field=field,
            value=percentage,
            constraint="1..100",
        )
        self.percentage = percentage


class SelfFollowError(ValidationError):
    """Raised when an account tries to follow itself."""

    def __init__(self, account: str) -> None:
        super().__init__(
            f"Account {account!r} cannot follow itself",
            field="trader",
            value=account,
            constraint="trader != follower",
        )


# ============================================================================
# State Exceptions
# ============================================================================


class PositionNotFoundError(StateError):
    """Raised when a position index does not exist for an account."""

    def __init__(self, account: str, index: int) -> None:
        super().__init__(
            f"Position {index} not found for account {account!r}",
            {"account": account, "index": index},
        )
        self.account = account
        self.index = index


class PositionNotActiveError(StateError):
    """Raised when attempting to modify a closed position."""

    def __init__(self, account: str, index: int) -> None:
        super().__init__(
            f"Position {index} of account {account!r} is not active",
            {"account": account, "index": index},
        )
        self.account = account
        self.index = index


class NoActivePositionError(StateError):
    """Raised when an account holds no active position for an asset."""

    def __init__(self, account: str, asset: str) -> None:
        super().__init__(
            f"No active {asset} position for account {account!r}",
            {"account": account, "asset": asset},
        )
        self.account = account
        self.asset = asset


class NoProfitError(StateError):
    """Raised when a profit-only withdrawal finds no positive PnL."""

    def __init__(self, account: str, index: int, pnl: int) -> None:
        super().__init__(
            f"Position {index} of account {account!r} has no profit to withdraw (pnl={pnl})",
            {"account": account, "index": index, "pnl": pnl},
        )
        self.pnl = pnl


class InsufficientBalanceError(StateError):
    """Raised when a pooled or vault balance cannot cover an amount."""

    def __init__(self, balance_type: str, required: int, available: int, **kwargs: Any) -> None:
        details: dict[str, Any] = {
            "balance_type": balance_type,
            "required": required,
            "available": available,
        }
        details.update(kwargs)
        super().__init__(
            f"Insufficient {balance_type} balance: required {required}, available {available}",
            details,
        )
        self.balance_type = balance_type
        self.required = required
        self.available = available


class UnfilledSellError(StateError):
    """Raised when a partial sell runs out of positions before reaching its target."""

    def __init__(self, account: str, asset: str, requested: int, remainder: int) -> None:
        super().__init__(
            f"Requested sell amount could not be fully satisfied, remainder = {remainder}",
            {"account": account, "asset": asset, "requested": requested, "remainder": remainder},
        )
        self.requested = requested
        self.remainder = remainder


class NotFollowingError(StateError):
    """Raised when a copy instruction names an inactive following relationship."""

    def __init__(self, follower: str, trader: str) -> None:
        super().__init__(
            f"Account {follower!r} is not following {trader!r}",
            {"follower": follower, "trader": trader},
        )
        self.follower = follower
        self.trader = trader


class CircuitBreakerEngagedError(StateError):
    """Raised when a mutating operation is attempted while the breaker is engaged."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Circuit breaker engaged, {operation} is disabled",
            {"operation": operation},
        )
        self.operation = operation


# ============================================================================
# Price Exceptions
# ============================================================================


class MissingPriceSourceError(PriceError):
    """Raised when no price source is registered for an asset."""

    def __init__(self, asset: str) -> None:
        super().__init__(f"No price source registered for {asset!r}", asset=asset)


class InvalidPriceError(PriceError):
    """Raised when a price reading is non-positive, non-integral or above the ceiling."""

    def __init__(self, asset: str | None, price: Any, reason: str) -> None:
        super().__init__(
            f"Invalid price {price!r} for {asset!r}: {reason}",
            asset=asset,
            price=str(price),
            reason=reason,
        )
        self.price = price
        self.reason = reason


# ============================================================================
# Transfer Exceptions
# ============================================================================


class TransferFailedError(TransferError):
    """Raised when the value-transfer capability reports failure."""

    def __init__(self, recipient: str, amount: int, reason: str | None = None) -> None:
        message = f"Transfer of {amount} to {recipient!r} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message, recipient=recipient, amount=amount, reason=reason)
        self.reason = reason


class InsufficientLiquidityError(TransferError):
    """Raised when held value cannot cover a computed payout."""

    def __init__(self, recipient: str | None, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient held value: payout {required}, available {available}",
            recipient=recipient,
            amount=required,
            available=available,
        )
        self.required = required
        self.available = available


# ============================================================================
# Authorization Exceptions
# ============================================================================


class UnauthorizedCallerError(AuthorizationError):
    """Raised when a caller lacks the role an operation requires."""

    def __init__(self, caller: str, role: str, operation: str) -> None:
        super().__init__(
            f"Caller {caller!r} lacks role {role} required for {operation}",
            caller=caller,
            role=role,
        )
        self.operation = operation
        self.details["operation"] = operation
