"""
Custom exception classes for the application.

Structural problems with an uploaded listing are fatal to a catalogue run and
surface as ListingParseError. Per-cell coercion problems are not exceptions;
they are recorded on the parse result instead.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "LISTING_PARSE_ERROR")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


# ===================
# LISTING PARSER ERRORS
# ===================

class ListingParseError(ValidationError):
    """Listing file is unreadable, empty, or structurally unusable."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        code: str = "LISTING_PARSE_ERROR"
    ):
        super().__init__(
            code=code,
            message=message,
            details=details
        )


class ListingMissingColumnsError(ListingParseError):
    """Mandatory listing column (product code) not found in the header row."""

    def __init__(self, missing: list[str], found_columns: list[str]):
        self.missing = missing
        self.found_columns = found_columns
        found = ", ".join(found_columns) if found_columns else "none"
        super().__init__(
            code="LISTING_MISSING_COLUMNS",
            message=(
                f"Could not find {', '.join(missing)} column in listing. "
                f"Found columns: {found}"
            ),
            details={"missing": missing, "found_columns": found_columns}
        )


# ===================
# STOCK FILTER ERRORS
# ===================

class InvalidStockThresholdError(ValidationError):
    """Stock threshold or negative band is out of range."""

    def __init__(self, field: str, value):
        super().__init__(
            code="INVALID_STOCK_THRESHOLD",
            message=f"{field} must be zero or greater",
            details={"field": field, "provided": str(value)}
        )
