"""
Position Entity - Value committed to an asset at a recorded entry price
"""

# Standard library imports
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..exceptions import ValidationError
from ..exceptions_ledger import InvalidAmountError, PositionNotActiveError
from ..value_objects import from_fixed


@dataclass
class Position:
    """
    Position entity owned by exactly one account.

    Amounts are integers in the smallest value unit and the entry price is an
    18-decimal fixed-point integer. Positions are appended to their account's
    collection and never reordered; ``index`` is stable for the lifetime of the
    position. Once a position is inactive it can no longer be mutated.
    """

    account: str
    asset: str
    amount: int
    entry_price: int

    # Identity within the account's collection
    index: int = 0

    opened_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    active: bool = True
    closed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate position after initialization"""
        self._validate()

    def _validate(self) -> None:
        """Validate position attributes"""
        if not self.account:
            raise ValidationError("Position account cannot be empty", field="account")
        if not self.asset:
            raise ValidationError("Position asset cannot be empty", field="asset")
        if self.entry_price <= 0:
            raise ValidationError(
                "Entry price must be positive", field="entry_price", value=self.entry_price
            )
        if self.active and self.amount <= 0:
            raise InvalidAmountError(self.amount, minimum=1)
        if self.index < 0:
            raise ValidationError("Position index cannot be negative", field="index")

    def _ensure_active(self) -> None:
        if not self.active:
            raise PositionNotActiveError(self.account, self.index)

    def reduce(self, amount: int, at: datetime | None = None) -> None:
        """Reduce the invested amount, deactivating the position when it reaches zero.

        Raises:
            PositionNotActiveError: If the position is already closed
            InvalidAmountError: If amount is not in (0, self.amount]
        """
        self._ensure_active()
        if amount <= 0 or amount > self.amount:
            raise InvalidAmountError(amount, minimum=1, maximum=self.amount)

        self.amount -= amount
        if self.amount == 0:
            self.active = False
            self.closed_at = at or datetime.now(UTC)

    def deactivate(self, at: datetime | None = None) -> None:
        """Close the position. The invested amount is kept for history."""
        self._ensure_active()
        self.active = False
        self.closed_at = at or datetime.now(UTC)

    def rebase(self, price: int) -> None:
        """Move the entry price to a new baseline, keeping the amount unchanged."""
        self._ensure_active()
        if price <= 0:
            raise ValidationError("Entry price must be positive", field="entry_price", value=price)
        self.entry_price = price

    def is_active(self) -> bool:
        return self.active

    def to_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "asset": self.asset,
            "index": self.index,
            "amount": self.amount,
            "entry_price": self.entry_price,
            "opened_at": self.opened_at.isoformat(),
            "active": self.active,
            "closed_at": self.closed_at.isoformat() if self.closed_at else None,
        }

    def __str__(self) -> str:
        """String representation"""
        status = "OPEN" if self.active else "CLOSED"
        return (
            f"Position({self.account}#{self.index} {self.asset}: {from_fixed(self.amount)}"
            f" @ {from_fixed(self.entry_price)} - {status})"
        )
