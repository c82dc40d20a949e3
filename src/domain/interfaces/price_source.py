"""
Domain protocol for price sources.

The ledger consumes a single capability from price discovery: read the current
price of an asset. Readings are 18-decimal fixed-point integers; the asset
registry validates every reading before the ledger uses it.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class IPriceSource(Protocol):
    """Protocol for an external price feed."""

    @property
    def source_id(self) -> str:
        """
        Identifier of the feed, reported in price-source events.

        Returns:
            Stable identifier string
        """
        ...

    def current_price(self, asset: str) -> int:
        """
        Read the current price of an asset.

        Args:
            asset: Asset symbol

        Returns:
            Price as an 18-decimal fixed-point integer
        """
        ...
