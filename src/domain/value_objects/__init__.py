"""Fixed-point arithmetic for prices and amounts."""

from .fixed_point import from_fixed, mul_div, to_fixed, trunc_div

__all__ = ["from_fixed", "mul_div", "to_fixed", "trunc_div"]
