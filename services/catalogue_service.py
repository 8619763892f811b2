"""
Catalogue service.

Runs a full catalogue build: parse the listing, apply the stock filter, then
match photos. Every run is independent; nothing is kept between calls.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Union
import structlog

from config import settings
from parsers.listing_parser import (
    ListingParser,
    ListingParseResult,
    MissingStockPolicy,
)
from parsers.photo_parser import PhotoAsset
from services.matching_service import (
    MatchingEngine,
    MatchDiagnostics,
    MatchedItem,
    MatchMode,
)
from services.stock_filter_service import StockFilter, USE_DEFAULT

logger = structlog.get_logger(__name__)


@dataclass
class CatalogueOptions:
    """Per-run options. Anything left unset falls back to settings."""
    min_stock: Optional[Union[int, Decimal]] = None
    negative_band: Optional[Union[int, Decimal]] = USE_DEFAULT  # None turns the allowance off
    require_photo: Optional[bool] = None
    match_mode: Optional[MatchMode] = None
    missing_stock: Optional[MissingStockPolicy] = None
    require_header: bool = False

    def resolved(self) -> "CatalogueOptions":
        return CatalogueOptions(
            min_stock=self.min_stock if self.min_stock is not None else settings.default_min_stock,
            negative_band=(
                settings.default_negative_band if self.negative_band is USE_DEFAULT else self.negative_band
            ),
            require_photo=self.require_photo if self.require_photo is not None else settings.require_photo,
            match_mode=MatchMode(self.match_mode or settings.match_mode),
            missing_stock=MissingStockPolicy(self.missing_stock or settings.missing_stock_policy),
            require_header=self.require_header,
        )


@dataclass
class CatalogueResult:
    """Output of one catalogue build."""
    items: list[MatchedItem] = field(default_factory=list)
    parse_result: ListingParseResult = field(default_factory=ListingParseResult)
    diagnostics: MatchDiagnostics = field(default_factory=MatchDiagnostics)
    filtered_out: int = 0

    @property
    def items_with_photos(self) -> int:
        return sum(1 for item in self.items if item.has_photos)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "items": [item.to_dict() for item in self.items],
            "item_count": len(self.items),
            "items_with_photos": self.items_with_photos,
            "items_without_photos": len(self.items) - self.items_with_photos,
            "filtered_out_by_stock": self.filtered_out,
            "listing": self.parse_result.to_dict(),
            "matching": self.diagnostics.to_dict(),
        }


class CatalogueService:
    """Builds catalogues from a listing file and a set of photos."""

    def __init__(
        self,
        parser: Optional[ListingParser] = None,
        stock_filter: Optional[StockFilter] = None,
    ):
        self.parser = parser or ListingParser()
        self.stock_filter = stock_filter or StockFilter()

    def build_catalogue(
        self,
        price_file: bytes,
        price_filename: str,
        photos: list[PhotoAsset],
        options: Optional[CatalogueOptions] = None,
    ) -> CatalogueResult:
        """
        Parse, filter and match.

        Args:
            price_file: Raw listing file content
            price_filename: Listing filename (extension selects the format)
            photos: Photos in upload order
            options: Per-run options

        Returns:
            CatalogueResult with matched items and run statistics

        Raises:
            ListingParseError: If the listing cannot be parsed
            InvalidStockThresholdError: If thresholds are negative
        """
        opts = (options or CatalogueOptions()).resolved()

        logger.info(
            "catalogue_build_started",
            price_filename=price_filename,
            photos=len(photos),
            min_stock=str(opts.min_stock),
            negative_band=str(opts.negative_band) if opts.negative_band is not None else None,
            match_mode=opts.match_mode.value,
            require_photo=opts.require_photo,
        )

        parse_result = self.parser.parse(
            price_file,
            price_filename,
            missing_stock=opts.missing_stock,
            require_header=opts.require_header,
        )

        kept = self.stock_filter.filter(
            parse_result.records,
            min_stock=opts.min_stock,
            negative_band=opts.negative_band,
        )

        engine = MatchingEngine(mode=opts.match_mode, require_photo=opts.require_photo)
        diagnostics = MatchDiagnostics()
        items = engine.match(photos, kept, diagnostics)

        result = CatalogueResult(
            items=items,
            parse_result=parse_result,
            diagnostics=diagnostics,
            filtered_out=len(parse_result.records) - len(kept),
        )

        logger.info(
            "catalogue_build_completed",
            price_filename=price_filename,
            records=len(parse_result.records),
            after_stock_filter=len(kept),
            items=len(items),
            items_with_photos=result.items_with_photos,
        )

        return result


_catalogue_service: Optional[CatalogueService] = None


def get_catalogue_service() -> CatalogueService:
    """Get singleton catalogue service instance."""
    global _catalogue_service
    if _catalogue_service is None:
        _catalogue_service = CatalogueService()
    return _catalogue_service
