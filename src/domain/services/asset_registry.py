"""
Asset Registry - supported asset symbols and their price sources.

Every symbol maps to exactly one price source, and symbols are kept in
registration order without duplicates. Each price lookup reads the source
once, validates that reading and returns it, so the price that passed
validation is the one the ledger settles with.
"""

# Standard library imports
import logging

from ..constants import MAX_PRICE
from ..events import PriceSourceChanged
from ..exceptions import PriceError, ValidationError
from ..exceptions_ledger import (
    InvalidPriceError,
    MissingPriceSourceError,
    UnsupportedAssetError,
)
from ..interfaces import IPriceSource
from .unit_of_work import LedgerUnitOfWork

logger = logging.getLogger(__name__)


class AssetRegistry:
    """Owned store of asset symbols and price sources."""

    def __init__(self, unit_of_work: LedgerUnitOfWork, max_price: int = MAX_PRICE) -> None:
        if max_price <= 0:
            raise ValidationError("Price ceiling must be positive", field="max_price")

        self._uow = unit_of_work
        self._max_price = max_price
        self._symbols: list[str] = []
        self._sources: dict[str, IPriceSource] = {}

    @property
    def max_price(self) -> int:
        return self._max_price

    # Queries

    def supported_assets(self) -> list[str]:
        with self._uow.reading():
            return list(self._symbols)

    def is_supported(self, asset: str) -> bool:
        with self._uow.reading():
            return asset in self._sources

    def require_supported(self, asset: str) -> None:
        """Raise if the asset is not registered.

        Raises:
            UnsupportedAssetError: If asset is not registered
        """
        if not self.is_supported(asset):
            raise UnsupportedAssetError(asset)

    def source_of(self, asset: str) -> IPriceSource:
        with self._uow.reading():
            source = self._sources.get(asset)
        if source is None:
            raise MissingPriceSourceError(asset)
        return source

    def current_price(self, asset: str) -> int:
        """Read and validate the current price of an asset.

        Raises:
            MissingPriceSourceError: If no source is registered
            InvalidPriceError: If the reading is unusable
            PriceError: If the source itself fails
        """
        with self._uow.reading():
            return self._read_price(asset, self.source_of(asset))

    def validate_price(self, asset: str | None, price: object) -> int:
        """Check a raw reading against the registry's bounds.

        Raises:
            InvalidPriceError: If the price is not an integer in (0, max_price]
        """
        if isinstance(price, bool) or not isinstance(price, int):
            raise InvalidPriceError(asset, price, "price must be a fixed-point integer")
        if price <= 0:
            raise InvalidPriceError(asset, price, "price must be positive")
        if price > self._max_price:
            raise InvalidPriceError(asset, price, f"price exceeds ceiling {self._max_price}")
        return price

    def _read_price(self, asset: str, source: IPriceSource) -> int:
        try:
            reading = source.current_price(asset)
        except PriceError:
            raise
        except Exception as e:
            raise PriceError(
                f"Price source failed for {asset!r}: {e}",
                asset=asset,
                source_id=_source_id(source),
            ) from e

        return self.validate_price(asset, reading)

    # Mutations

    def register(self, asset: str, source: IPriceSource) -> None:
        """Register an asset, or replace the price source of a registered one.

        The source must produce a valid price for the asset at registration.

        Raises:
            ValidationError: If the symbol is empty
            PriceError: If the source cannot produce a valid price
        """
        if not asset or not asset.strip():
            raise ValidationError("Asset symbol cannot be empty", field="asset", value=asset)

        with self._uow.atomic("register_asset"):
            self._read_price(asset, source)

            if asset not in self._sources:
                self._uow.track_append(self._symbols)
                self._symbols.append(asset)
            self._uow.track_key(self._sources, asset)
            self._sources[asset] = source

            source_id = _source_id(source)
            self._uow.emit(PriceSourceChanged(asset=asset, source_id=source_id))
            logger.info(
                f"Registered price source {source_id} for {asset}",
                extra={"operation_type": "asset_registry", "asset": asset},
            )

    def deregister(self, asset: str) -> None:
        """Remove an asset and its price source.

        Raises:
            UnsupportedAssetError: If asset is not registered
        """
        with self._uow.atomic("deregister_asset"):
            self.require_supported(asset)

            position = self._symbols.index(asset)
            self._uow.record(lambda: self._symbols.insert(position, asset))
            del self._symbols[position]
            self._uow.track_key(self._sources, asset)
            del self._sources[asset]

            self._uow.emit(PriceSourceChanged(asset=asset, source_id=None))
            logger.info(
                f"Deregistered {asset}",
                extra={"operation_type": "asset_registry", "asset": asset},
            )


def _source_id(source: IPriceSource) -> str:
    return getattr(source, "source_id", None) or type(source).__name__
