"""
In-Memory Value Transfer - credits recipients in a local balance book.

Stands in for the external value-transfer capability. It can be told to
reject transfers, to raise, or to call back into the caller while a transfer
is in flight, which is how re-entrant recipients are simulated.
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

TransferHook = Callable[[int, str], None]


class InMemoryValueTransfer:
    """Records every transfer and keeps a running balance per recipient."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._balances: dict[str, int] = {}
        self._transfers: list[tuple[str, int]] = []
        self._rejected: set[str] = set()
        self._reject_all = False
        self._error: Exception | None = None
        self._hook: TransferHook | None = None

    # Behaviour switches

    def reject_all(self, reject: bool = True) -> None:
        self._reject_all = reject

    def reject_recipient(self, recipient: str) -> None:
        self._rejected.add(recipient)

    def raise_on_send(self, error: Exception | None) -> None:
        """Raise ``error`` from every send; None restores normal sends."""
        self._error = error

    def set_hook(self, hook: TransferHook | None) -> None:
        """Call ``hook(amount, recipient)`` before each transfer is booked."""
        self._hook = hook

    # IValueTransfer

    def send(self, amount: int, recipient: str) -> bool:
        if self._error is not None:
            raise self._error
        if self._reject_all or recipient in self._rejected:
            logger.warning(f"Transfer of {amount} to {recipient} rejected")
            return False

        if self._hook is not None:
            self._hook(amount, recipient)

        with self._lock:
            self._balances[recipient] = self._balances.get(recipient, 0) + amount
            self._transfers.append((recipient, amount))
        logger.debug(f"Transferred {amount} to {recipient}")
        return True

    # Queries

    def balance_of(self, recipient: str) -> int:
        with self._lock:
            return self._balances.get(recipient, 0)

    @property
    def transfers(self) -> list[tuple[str, int]]:
        with self._lock:
            return list(self._transfers)

    def total_sent(self) -> int:
        with self._lock:
            return sum(amount for _, amount in self._transfers)
