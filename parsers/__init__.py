"""
Listing and photo filename parsers.
"""

from parsers.listing_parser import (
    ListingParser,
    ListingRecord,
    ListingParseResult,
    FieldCoercionIssue,
    ColumnAliases,
    MissingStockPolicy,
    parse_listing_file,
)
from parsers.photo_parser import (
    PhotoAsset,
    extract_candidates,
)

__all__ = [
    "ListingParser",
    "ListingRecord",
    "ListingParseResult",
    "FieldCoercionIssue",
    "ColumnAliases",
    "MissingStockPolicy",
    "parse_listing_file",
    "PhotoAsset",
    "extract_candidates",
]
