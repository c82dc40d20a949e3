"""
Static Price Feed - settable in-memory price source.

Holds one fixed-point price per asset. Prices are set explicitly, which makes
the feed suitable for simulations, local runs and tests. A feed can be told
to fail, in which case every read raises.
"""

import logging
import threading

from src.domain.exceptions import PriceError

logger = logging.getLogger(__name__)


class StaticPriceFeed:
    """Thread-safe price source backed by a dictionary."""

    def __init__(self, prices: dict[str, int] | None = None, source_id: str = "static") -> None:
        self._lock = threading.Lock()
        self._prices: dict[str, int] = dict(prices or {})
        self._source_id = source_id
        self._failure: str | None = None

    @property
    def source_id(self) -> str:
        return self._source_id

    def set_price(self, asset: str, price: int) -> None:
        """Set the raw fixed-point price of an asset. No validation happens here."""
        with self._lock:
            self._prices[asset] = price
        logger.debug(f"{self._source_id}: {asset} = {price}")

    def remove_price(self, asset: str) -> None:
        with self._lock:
            self._prices.pop(asset, None)

    def fail_with(self, reason: str | None) -> None:
        """Make every read raise with the given reason; None restores normal reads."""
        with self._lock:
            self._failure = reason

    def current_price(self, asset: str) -> int:
        with self._lock:
            if self._failure is not None:
                raise PriceError(
                    f"Price feed {self._source_id} unavailable: {self._failure}", asset=asset
                )
            if asset not in self._prices:
                raise PriceError(f"No price for {asset} in feed {self._source_id}", asset=asset)
            return self._prices[asset]
