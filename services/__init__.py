"""
Business logic services.

Each service handles one stage of a catalogue build.
"""

from services.stock_filter_service import StockFilter, get_stock_filter, is_included
from services.matching_service import (
    MatchingEngine,
    MatchMode,
    MatchedItem,
    MatchDiagnostics,
    ListingIndex,
)
from services.catalogue_service import (
    CatalogueService,
    CatalogueOptions,
    CatalogueResult,
    get_catalogue_service,
)
from services.export_service import ExportService, get_export_service

__all__ = [
    "StockFilter",
    "get_stock_filter",
    "is_included",
    "MatchingEngine",
    "MatchMode",
    "MatchedItem",
    "MatchDiagnostics",
    "ListingIndex",
    "CatalogueService",
    "CatalogueOptions",
    "CatalogueResult",
    "get_catalogue_service",
    "ExportService",
    "get_export_service",
]
