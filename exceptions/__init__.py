"""
Custom exceptions module.

Exports the application error hierarchy.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,

    # Listing parser
    ListingParseError,
    ListingMissingColumnsError,

    # Stock filter
    InvalidStockThresholdError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",

    # Listing parser
    "ListingParseError",
    "ListingMissingColumnsError",

    # Stock filter
    "InvalidStockThresholdError",
]
