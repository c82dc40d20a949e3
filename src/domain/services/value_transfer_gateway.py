"""Invocation of the external value-transfer capability."""

# Standard library imports
import logging

from ..exceptions_ledger import TransferFailedError
from ..interfaces import IValueTransfer

logger = logging.getLogger(__name__)


def send_value(transfer: IValueTransfer, amount: int, recipient: str) -> None:
    """Send value and turn any failure into ``TransferFailedError``.

    Callers finish their bookkeeping before calling this, inside a unit of
    work, so a failure here rolls the whole operation back.

    Raises:
        TransferFailedError: If the capability returns False or raises
    """
    try:
        succeeded = transfer.send(amount, recipient)
    except Exception as e:
        raise TransferFailedError(recipient, amount, str(e)) from e

    if not succeeded:
        raise TransferFailedError(recipient, amount, "transfer rejected by recipient")

    logger.debug(
        f"Sent {amount} to {recipient}",
        extra={"operation_type": "value_transfer", "recipient": recipient, "amount": amount},
    )
