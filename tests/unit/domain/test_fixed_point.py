"""
Unit tests for fixed-point helpers
"""

from decimal import Decimal

import pytest

from src.domain.constants import SCALE
from src.domain.value_objects import from_fixed, mul_div, to_fixed, trunc_div


class TestTruncDiv:
    """Test suite for truncating division"""

    def test_positive_division_matches_floor(self):
        """Test that positive operands behave like floor division"""
        assert trunc_div(7, 2) == 3
        assert trunc_div(6, 3) == 2

    def test_negative_numerator_truncates_toward_zero(self):
        """Test that a negative quotient is rounded toward zero, not down"""
        assert trunc_div(-7, 2) == -3
        assert -7 // 2 == -4

    def test_negative_denominator(self):
        """Test sign handling with a negative divisor"""
        assert trunc_div(7, -2) == -3
        assert trunc_div(-7, -2) == 3

    def test_division_by_zero(self):
        """Test that zero divisor raises"""
        with pytest.raises(ZeroDivisionError):
            trunc_div(1, 0)

    def test_mul_div(self):
        """Test combined multiply then truncating divide"""
        assert mul_div(10, 50, 100) == 5
        assert mul_div(-5, 3, 2) == -7


class TestFixedConversion:
    """Test suite for to_fixed/from_fixed"""

    def test_whole_and_fractional_values(self):
        """Test conversion of whole, fractional and string values"""
        assert to_fixed(1) == SCALE
        assert to_fixed("1.495") == 1_495_000_000_000_000_000
        assert to_fixed(Decimal("0.001")) == 10**15

    def test_extra_digits_truncated(self):
        """Test that digits beyond 18 decimals are dropped"""
        assert to_fixed("0.0000000000000000019") == 1
        assert to_fixed("-0.0000000000000000019") == -1

    def test_large_values_keep_precision(self):
        """Test that values near the price ceiling are exact"""
        assert to_fixed("999999999999999.123456789012345678") == (
            999999999999999 * SCALE + 123456789012345678
        )

    def test_float_rejected(self):
        """Test that floats are refused"""
        with pytest.raises(ValueError):
            to_fixed(1.5)

    def test_invalid_string_rejected(self):
        """Test that non-numeric strings are refused"""
        with pytest.raises(ValueError):
            to_fixed("abc")
        with pytest.raises(ValueError):
            to_fixed("Infinity")

    def test_from_fixed(self):
        """Test conversion back to Decimal"""
        assert from_fixed(1_500_000_000_000_000_000) == Decimal("1.5")
        assert from_fixed(1) == Decimal("0.000000000000000001")
