"""
Domain protocol for value transfer out of the ledger.

Sending value is the only point where an external party can run code during a
ledger operation. The ledger finishes all of its bookkeeping before calling
``send`` and rolls the operation back when the transfer reports failure.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IValueTransfer(Protocol):
    """Protocol for an opaque value-transfer capability."""

    def send(self, amount: int, recipient: str) -> bool:
        """
        Send value to a recipient.

        Args:
            amount: Amount in the smallest value unit
            recipient: Receiving account

        Returns:
            True if the transfer succeeded, False otherwise
        """
        ...
