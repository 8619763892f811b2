"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest

from parsers.listing_parser import ListingParser, ColumnAliases
from tests.factories import ListingRecordFactory, PhotoFactory, create_csv_file


# ===================
# PARSER FIXTURES
# ===================

@pytest.fixture
def default_aliases() -> ColumnAliases:
    """Alias tables as shipped in settings."""
    return ColumnAliases.from_settings()


@pytest.fixture
def parser(default_aliases) -> ListingParser:
    """Listing parser with default configuration."""
    return ListingParser(aliases=default_aliases, header_scan_rows=20, delimiter_sample_lines=5)


@pytest.fixture
def sample_csv() -> bytes:
    """Supplier CSV with a title row above the header."""
    return create_csv_file([
        "Acme Supplies Price List,,,",
        "CODE,DESCRIPTION,PRICE-A INCL,ON-HAND STOCK",
        "8610401992,Widget,12.50,5",
        "8610100024N,Gadget,\"R 1,250.00\",12",
        "861040,Small part,3.10,0",
        "861041,Other part,4.20,-3",
    ])


# ===================
# MATCHING FIXTURES
# ===================

@pytest.fixture
def sample_records() -> list:
    """Listing records covering exact, lettered and multi-code cases."""
    return [
        ListingRecordFactory.create(code="8610401992", description="Widget", price="12.50", stock=5),
        ListingRecordFactory.create(code="8610100024N", description="Gadget", price="1250.00", stock=12),
        ListingRecordFactory.create(code="861040", description="Small part", price="3.10", stock=0),
        ListingRecordFactory.create(code="861041", description="Other part", price="4.20", stock=-3),
    ]


@pytest.fixture
def sample_photos() -> list:
    """Photos in upload order."""
    return PhotoFactory.create_many(
        "8610401992-front.jpg",
        "8610100024-side.jpg",
        "861040_861041.jpg",
        "9999999999.jpg",
    )


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
