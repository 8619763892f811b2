"""
API tests for the catalogue routes.

Exercises the upload endpoints through the FastAPI test client.
"""

from io import BytesIO

from openpyxl import load_workbook

from tests.factories import create_csv_file


def upload_files(price_bytes: bytes, photo_names: list[str], price_name: str = "prices.csv") -> list:
    files = [("price_file", (price_name, price_bytes, "text/csv"))]
    for name in photo_names:
        files.append(("photos", (name, b"\xff\xd8\xff", "image/jpeg")))
    return files


SAMPLE_PHOTOS = ["8610401992-front.jpg", "8610100024-side.jpg", "861040_861041.jpg", "9999999999.jpg"]


class TestHealth:
    """Tests for service endpoints."""

    def test_health(self, test_client):
        response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_lists_endpoints(self, test_client):
        response = test_client.get("/")
        assert response.status_code == 200
        assert response.json()["endpoints"]["match"] == "/api/catalogue/match"


class TestMatchEndpoint:
    """Tests for POST /api/catalogue/match."""

    def test_match(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, SAMPLE_PHOTOS),
            data={"min_stock": "0", "require_photo": "true", "match_mode": "strict"},
        )

        assert response.status_code == 200
        body = response.json()
        assert [i["code"] for i in body["items"]] == ["8610401992", "8610100024N", "861040"]
        assert body["items"][1]["photos"] == ["8610100024-side.jpg"]
        assert body["items"][0]["price"] == "12.50"
        assert body["filtered_out_by_stock"] == 1
        assert body["listing"]["header_detected"] is True
        assert body["matching"]["unmatched_photos"] == ["9999999999.jpg"]

    def test_negative_band(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, SAMPLE_PHOTOS),
            data={"min_stock": "10", "negative_band": "5", "require_photo": "true"},
        )

        assert response.status_code == 200
        codes = [i["code"] for i in response.json()["items"]]
        assert codes == ["8610100024N", "861041"]

    def test_retain_unmatched(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, ["861040.jpg"]),
            data={"min_stock": "0", "require_photo": "false"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["item_count"] == 3
        assert body["items_with_photos"] == 1

    def test_missing_code_column_returns_422(self, test_client):
        price = create_csv_file(["NAME,PRICE", "Thing,5"])
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(price, ["A1.jpg"]),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "LISTING_MISSING_COLUMNS"

    def test_negative_threshold_returns_422(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, ["A1.jpg"]),
            data={"min_stock": "-1"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STOCK_THRESHOLD"

    def test_empty_price_file_returns_400(self, test_client):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(b"", ["A1.jpg"]),
        )

        assert response.status_code == 400

    def test_no_photos_returns_400(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, []),
        )

        assert response.status_code == 400

    def test_invalid_match_mode_rejected(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/match",
            files=upload_files(sample_csv, ["A1.jpg"]),
            data={"match_mode": "fuzzy"},
        )

        assert response.status_code == 422


class TestExportEndpoint:
    """Tests for POST /api/catalogue/export."""

    def test_export_xlsx(self, test_client, sample_csv):
        response = test_client.post(
            "/api/catalogue/export",
            files=upload_files(sample_csv, SAMPLE_PHOTOS),
            data={"min_stock": "0", "require_photo": "true", "title": "Catalogue"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "catalogue.xlsx" in response.headers["content-disposition"]

        ws = load_workbook(BytesIO(response.content)).active
        assert ws.cell(row=1, column=1).value == "Catalogue"
        assert ws.cell(row=3, column=1).value == "CODE"
        assert ws.cell(row=4, column=1).value == "8610401992"
