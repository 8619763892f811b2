"""
Export service — Generate catalogue Excel files.

Renders matched items as a flat spreadsheet. Unknown price and defaulted stock
are written as a placeholder so they are not mistaken for zero.
"""

from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side
import structlog

from config import settings
from services.matching_service import MatchedItem

logger = structlog.get_logger(__name__)

CATALOGUE_COLUMNS = [
    ("CODE", 18),
    ("DESCRIPTION", 45),
    ("PRICE", 14),
    ("STOCK", 10),
    ("PHOTOS", 40),
]


class ExportService:
    """Service for generating catalogue export files."""

    def __init__(self, placeholder: Optional[str] = None):
        self.placeholder = placeholder if placeholder is not None else settings.export_placeholder

    def generate_catalogue_excel(
        self,
        items: list[MatchedItem],
        title: Optional[str] = None,
    ) -> BytesIO:
        """
        Generate Excel file for a matched catalogue.

        Args:
            items: Matched items in catalogue order
            title: Optional title written above the table

        Returns:
            BytesIO containing the Excel file
        """
        logger.info("generating_catalogue_excel", item_count=len(items), title=title)

        wb = Workbook()
        ws = wb.active
        ws.title = "Catalogue"

        # Styles
        bold_font = Font(bold=True)
        title_font = Font(bold=True, size=14)
        thin_border = Border(
            bottom=Side(style="thin", color="000000")
        )

        row = 1
        if title:
            ws.cell(row=row, column=1, value=title).font = title_font
            row += 2

        # Column headers
        for col, (header, width) in enumerate(CATALOGUE_COLUMNS, start=1):
            cell = ws.cell(row=row, column=col, value=header)
            cell.font = bold_font
            cell.border = thin_border
            ws.column_dimensions[cell.column_letter].width = width
        row += 1

        for item in items:
            ws.cell(row=row, column=1, value=item.code)
            ws.cell(row=row, column=2, value=item.description)

            price_cell = ws.cell(row=row, column=3)
            if item.price is None:
                price_cell.value = self.placeholder
                price_cell.alignment = Alignment(horizontal="center")
            else:
                price_cell.value = float(item.price)
                price_cell.number_format = "#,##0.00"

            stock_cell = ws.cell(row=row, column=4)
            if item.stock_defaulted:
                stock_cell.value = self.placeholder
                stock_cell.alignment = Alignment(horizontal="center")
            else:
                stock_cell.value = float(item.stock)
                stock_cell.number_format = "#,##0"

            ws.cell(row=row, column=5, value=", ".join(item.photo_filenames))
            row += 1

        logger.info(
            "catalogue_excel_generated",
            item_count=len(items),
            items_with_photos=sum(1 for item in items if item.has_photos),
        )

        # Save to BytesIO
        output = BytesIO()
        wb.save(output)
        output.seek(0)

        return output


_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get singleton export service instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
