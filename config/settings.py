"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
List-valued settings (column aliases) accept JSON in the environment, e.g.
LISTING_CODE_ALIASES='["CODE", "ARTNO"]'.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # LISTING PARSER
    # ===================
    header_scan_rows: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum rows scanned when looking for the header row"
    )
    delimiter_sample_lines: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Leading non-empty lines sampled for delimiter detection"
    )
    listing_code_aliases: list[str] = Field(
        default=["CODE", "ITEMCODE", "PRODUCTCODE", "STOCKCODE", "SKU"],
        description="Normalized header names for the product code column, in priority order"
    )
    listing_description_aliases: list[str] = Field(
        default=["DESCRIPTION", "DESC", "PRODUCTNAME", "ITEMDESCRIPTION", "NAME"],
        description="Normalized header names for the description column"
    )
    listing_price_aliases: list[str] = Field(
        default=[
            "PRICEAINCL", "PRICEAINCLINC", "PRICEAINCLINCL",
            "PRICEINCL", "SELLINGPRICE", "RETAILPRICE", "PRICE",
        ],
        description="Normalized header names for the price column"
    )
    listing_stock_aliases: list[str] = Field(
        default=["ONHANDSTOCK", "ONHAND", "STOCK", "ONHANDSTOCKQTY", "QTYONHAND", "QTY"],
        description="Normalized header names for the stock column"
    )

    # ===================
    # CATALOGUE DEFAULTS
    # ===================
    default_min_stock: int = Field(
        default=0,
        ge=0,
        description="Minimum on-hand stock for a listing row to be included"
    )
    default_negative_band: Optional[int] = Field(
        default=None,
        ge=0,
        description="Include negative stock down to -band (0 = any negative); unset disables"
    )
    require_photo: bool = Field(
        default=True,
        description="Emit only listing rows that matched at least one photo"
    )
    match_mode: str = Field(
        default="strict",
        pattern="^(strict|numeric_core)$",
        description="Matching strategy chain"
    )
    missing_stock_policy: str = Field(
        default="zero",
        pattern="^(zero|always_include)$",
        description="Stock value used when the stock cell is missing or malformed"
    )
    export_placeholder: str = Field(
        default="—",
        description="Placeholder rendered for unknown price/stock in exports"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
