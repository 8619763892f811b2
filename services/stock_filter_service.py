"""
Stock filter service.

Applies the minimum-stock threshold to listing records before matching, so
rows that are filtered out neither attract nor block photos.
"""

from decimal import Decimal
from typing import Optional, Union
import structlog

from config import settings
from exceptions import InvalidStockThresholdError
from parsers.listing_parser import ListingRecord

logger = structlog.get_logger(__name__)

Number = Union[int, float, Decimal]

# Marks a negative_band that was not passed; None means the allowance is off
USE_DEFAULT = object()


def is_included(
    stock: Decimal,
    min_stock: Decimal,
    negative_band: Optional[Decimal] = None,
) -> bool:
    """
    Inclusion rule for a single stock value.

    Keeps stock at or above the minimum. With a negative band set, negative
    stock is kept too: all of it when the band is 0, otherwise down to -band.
    """
    if stock >= min_stock:
        return True
    if negative_band is None or stock >= 0:
        return False
    return negative_band == 0 or stock >= -negative_band


class StockFilter:
    """
    Filters listing records by on-hand stock.

    Usage:
        stock_filter = StockFilter()
        kept = stock_filter.filter(records, min_stock=10, negative_band=5)
    """

    def __init__(
        self,
        default_min_stock: Optional[Number] = None,
        default_negative_band=USE_DEFAULT,
    ):
        self.default_min_stock = (
            default_min_stock if default_min_stock is not None else settings.default_min_stock
        )
        self.default_negative_band = (
            settings.default_negative_band if default_negative_band is USE_DEFAULT else default_negative_band
        )

    def filter(
        self,
        records: list[ListingRecord],
        min_stock: Optional[Number] = None,
        negative_band=USE_DEFAULT,
    ) -> list[ListingRecord]:
        """
        Keep records whose stock passes the threshold.

        Args:
            records: Parsed listing records
            min_stock: Minimum stock (defaults to settings)
            negative_band: Negative-stock allowance (defaults to settings);
                           None disables it, 0 includes any negative stock

        Returns:
            Surviving records in input order

        Raises:
            InvalidStockThresholdError: If min_stock or negative_band is negative
        """
        if min_stock is None:
            min_stock = self.default_min_stock
        if negative_band is USE_DEFAULT:
            negative_band = self.default_negative_band

        threshold = _to_decimal("min_stock", min_stock)
        band = _to_decimal("negative_band", negative_band) if negative_band is not None else None

        kept = [r for r in records if is_included(r.stock, threshold, band)]

        logger.info(
            "stock_filter_applied",
            min_stock=str(threshold),
            negative_band=str(band) if band is not None else None,
            total=len(records),
            kept=len(kept),
            excluded=len(records) - len(kept),
        )

        return kept


def _to_decimal(field: str, value: Number) -> Decimal:
    result = Decimal(str(value))
    if result < 0:
        raise InvalidStockThresholdError(field, value)
    return result


_stock_filter: Optional[StockFilter] = None


def get_stock_filter() -> StockFilter:
    """Get singleton stock filter instance."""
    global _stock_filter
    if _stock_filter is None:
        _stock_filter = StockFilter()
    return _stock_filter
