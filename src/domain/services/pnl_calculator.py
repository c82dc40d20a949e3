"""
PnL Calculator - Pure profit/loss computation for positions.

The computation mirrors fixed-point integer arithmetic exactly:

    ratio = (current_price - entry_price) * SCALE / entry_price
    pnl   = invested_amount * ratio / SCALE

Both divisions truncate toward zero. The truncation loses up to one unit of
the ratio and one unit of the PnL, always toward zero; callers that split a
position (see ``PartialSellAllocator``) compound a second truncation on top.

Example:
    >>> from src.domain.value_objects import to_fixed
    >>> compute_pnl(to_fixed(100), to_fixed(150), to_fixed("1.0")) == to_fixed("0.5")
    True
"""

from ..constants import SCALE
from ..exceptions_ledger import InvalidPriceError
from ..value_objects import trunc_div


def compute_price_change_ratio(entry_price: int, current_price: int) -> int:
    """Signed fixed-point ratio of the price move since entry.

    Raises:
        InvalidPriceError: If entry_price is not positive
    """
    if entry_price <= 0:
        raise InvalidPriceError(None, entry_price, "entry price must be positive")

    return trunc_div((current_price - entry_price) * SCALE, entry_price)


def compute_pnl(entry_price: int, current_price: int, invested_amount: int) -> int:
    """Signed profit/loss of ``invested_amount`` moved from entry to current price.

    Args:
        entry_price: Entry price (fixed point, must be positive)
        current_price: Current price (fixed point)
        invested_amount: Principal in the smallest value unit

    Returns:
        Signed PnL in the smallest value unit

    Raises:
        InvalidPriceError: If entry_price is zero or negative
    """
    ratio = compute_price_change_ratio(entry_price, current_price)
    return trunc_div(invested_amount * ratio, SCALE)
