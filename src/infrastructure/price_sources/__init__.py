"""Price source adapters."""

from .static_feed import StaticPriceFeed

__all__ = ["StaticPriceFeed"]
