"""Value helpers for ledger tests."""

from src.domain.constants import SCALE
from src.domain.value_objects import to_fixed

ADMIN = "admin"
BOT = "copy-bot"


def price(whole_units: int) -> int:
    """Fixed-point price for a whole number of units."""
    return whole_units * SCALE


def units(amount: int | str) -> int:
    """Fixed-point amount for a (possibly fractional) number of units."""
    return to_fixed(amount)
