"""
Domain-level exceptions for the position ledger.

This module defines the five error kinds raised by ledger operations. Every
error is terminal for the operation that raised it: the unit of work rolls the
operation back before the exception reaches the caller.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class ValidationError(DomainException):
    """Exception raised when an input fails domain validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
    ) -> None:
        details = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = value
        if constraint:
            details["constraint"] = constraint

        super().__init__(message, details)
        self.field = field
        self.value = value
        self.constraint = constraint


class StateError(DomainException):
    """Raised when the ledger is not in a state that allows the operation."""

    pass


class PriceError(DomainException):
    """Raised when a price source is missing or reports an unusable price."""

    def __init__(self, message: str, asset: str | None = None, **kwargs: Any) -> None:
        details = {"asset": asset} if asset else {}
        details.update(kwargs)
        super().__init__(message, details)
        self.asset = asset


class TransferError(DomainException):
    """Raised when value cannot be sent to a recipient."""

    def __init__(
        self, message: str, recipient: str | None = None, amount: int | None = None, **kwargs: Any
    ) -> None:
        details: dict[str, Any] = {}
        if recipient:
            details["recipient"] = recipient
        if amount is not None:
            details["amount"] = amount
        details.update(kwargs)
        super().__init__(message, details)
        self.recipient = recipient
        self.amount = amount


class AuthorizationError(DomainException):
    """Raised when a caller lacks the role required for a privileged operation."""

    def __init__(self, message: str, caller: str | None = None, role: str | None = None) -> None:
        details = {}
        if caller:
            details["caller"] = caller
        if role:
            details["role"] = role
        super().__init__(message, details)
        self.caller = caller
        self.role = role
