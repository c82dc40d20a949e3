"""Test helper utilities for the ledger test suite."""

from tests.helpers.values import ADMIN, BOT, price, units

__all__ = ["ADMIN", "BOT", "price", "units"]
