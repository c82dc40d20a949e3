"""Domain interfaces for external collaborators."""

from .price_source import IPriceSource
from .value_transfer import IValueTransfer

__all__ = ["IPriceSource", "IValueTransfer"]
