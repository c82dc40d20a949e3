"""
Settlement Calculator - Converts PnL and principal into a payout net of fee.

Fees are charged on realized profit only, never on principal or losses:

- ``pnl >= 0``: ``fee = pnl * fee_bps / 10000`` and
  ``payout = invested + pnl - fee``
- ``pnl < 0``: the loss is taken from principal and floors at zero; no fee

The fee rate is bounded by the administrative layer (0-1000 bps); the
calculator applies whatever it receives.
"""

# Standard library imports
from dataclasses import dataclass

from ..constants import BPS_DENOMINATOR
from ..value_objects import mul_div


@dataclass(frozen=True)
class Settlement:
    """Result of settling a position or part of one."""

    payout: int
    fee: int


def compute_fee(pnl: int, fee_bps: int) -> int:
    """Fee owed on a PnL; zero for losses."""
    if pnl <= 0:
        return 0
    return mul_div(pnl, fee_bps, BPS_DENOMINATOR)


def compute_settlement(pnl: int, invested_amount: int, fee_bps: int) -> Settlement:
    """Compute the payout and fee for settling ``invested_amount`` at ``pnl``.

    Args:
        pnl: Signed profit/loss
        invested_amount: Principal being settled
        fee_bps: Fee rate in basis points

    Returns:
        Settlement with the payout and the fee taken
    """
    if pnl >= 0:
        fee = compute_fee(pnl, fee_bps)
        return Settlement(payout=invested_amount + pnl - fee, fee=fee)

    loss = -pnl
    payout = 0 if loss >= invested_amount else invested_amount - loss
    return Settlement(payout=payout, fee=0)
