"""Numeric constants shared across the ledger domain."""

# Fixed-point base for prices and price ratios (18 fractional decimal digits)
SCALE = 10**18

# Fee rates are expressed in basis points
BPS_DENOMINATOR = 10_000
MAX_FEE_BPS = 1_000  # 10%

PERCENT_DENOMINATOR = 100
MIN_PERCENTAGE = 1
MAX_PERCENTAGE = 100

# Price sanity ceiling, in whole units of the fixed-point base
MAX_PRICE_UNITS = 10**15
MAX_PRICE = MAX_PRICE_UNITS * SCALE

# Default per-operation size bounds (smallest value unit, 18 decimals)
DEFAULT_FEE_BPS = 100
DEFAULT_MIN_OPEN_AMOUNT = 10**15  # 0.001 units
DEFAULT_MAX_OPEN_AMOUNT = 100 * 10**18  # 100 units
DEFAULT_MIN_SELL_AMOUNT = 10**15
