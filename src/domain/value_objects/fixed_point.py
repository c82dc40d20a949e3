"""Fixed-point helpers for integer prices and amounts.

Prices and price ratios are integers scaled by ``SCALE`` (18 decimals).
Every division in the ledger truncates toward zero, which differs from
Python's floor division for negative operands.
"""

# Standard library imports
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext

from ..constants import SCALE

# Enough digits for amounts and prices far above the price ceiling
_PRECISION = 80


def trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero.

    Raises:
        ZeroDivisionError: If denominator is zero
    """
    if denominator == 0:
        raise ZeroDivisionError("Cannot divide by zero")

    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def mul_div(value: int, multiplier: int, divisor: int) -> int:
    """Compute ``value * multiplier / divisor`` with truncating division."""
    return trunc_div(value * multiplier, divisor)


def to_fixed(value: Decimal | int | str, scale: int = SCALE) -> int:
    """Convert a human-readable number to its fixed-point integer.

    Digits beyond the scale's precision are truncated.

    Args:
        value: The number to convert (``Decimal``, ``int`` or numeric string)
        scale: Fixed-point base (defaults to 10**18)

    Returns:
        The scaled integer

    Raises:
        ValueError: If value is not a finite number
    """
    if isinstance(value, float):
        raise ValueError("Use Decimal or str for fixed-point conversion, not float")

    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid numeric value: {value!r}") from e

    if not decimal_value.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return int((decimal_value * scale).to_integral_value(rounding=ROUND_DOWN))


def from_fixed(raw: int, scale: int = SCALE) -> Decimal:
    """Convert a fixed-point integer back to a ``Decimal``."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw) / Decimal(scale)
