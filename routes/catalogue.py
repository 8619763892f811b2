"""
Catalogue API routes.

Upload a price listing plus product photos, get back the matched catalogue
as JSON or as an Excel workbook.
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, UploadFile, File, Form, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
import structlog

from exceptions import AppError
from models.catalogue import CatalogueResponse
from parsers.listing_parser import MissingStockPolicy
from parsers.photo_parser import PhotoAsset
from services.catalogue_service import (
    CatalogueOptions,
    CatalogueResult,
    get_catalogue_service,
)
from services.export_service import get_export_service
from services.matching_service import MatchMode
from services.stock_filter_service import USE_DEFAULT

logger = structlog.get_logger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# HELPERS
# ===================

async def _run_catalogue(
    price_file: UploadFile,
    photos: Optional[list[UploadFile]],
    options: CatalogueOptions,
) -> CatalogueResult:
    """Read uploads and run the catalogue build."""
    if not price_file.filename:
        raise HTTPException(status_code=400, detail="Price file must have a filename")

    file_bytes = await price_file.read()
    if len(file_bytes) == 0:
        raise HTTPException(status_code=400, detail="Uploaded price file is empty")

    if not photos:
        raise HTTPException(status_code=400, detail="Upload at least one product photo")

    assets = []
    for upload in photos:
        assets.append(PhotoAsset(
            filename=upload.filename or "",
            content=await upload.read(),
            content_type=upload.content_type,
        ))

    logger.info(
        "catalogue_upload_received",
        price_filename=price_file.filename,
        price_size=len(file_bytes),
        photos=len(assets),
    )

    service = get_catalogue_service()
    return service.build_catalogue(file_bytes, price_file.filename, assets, options)


def _options(
    min_stock: Optional[Decimal],
    negative_band: Optional[Decimal],
    require_photo: Optional[bool],
    match_mode: Optional[MatchMode],
    missing_stock: Optional[MissingStockPolicy],
    require_header: bool,
) -> CatalogueOptions:
    return CatalogueOptions(
        min_stock=min_stock,
        negative_band=negative_band if negative_band is not None else USE_DEFAULT,
        require_photo=require_photo,
        match_mode=match_mode,
        missing_stock=missing_stock,
        require_header=require_header,
    )


# ===================
# ROUTES
# ===================

@router.post("/match", response_model=CatalogueResponse)
async def match_catalogue(
    price_file: UploadFile = File(..., description="Price listing (.csv, .xlsx or .xls)"),
    photos: Optional[list[UploadFile]] = File(None, description="Product photos named by product code"),
    min_stock: Optional[Decimal] = Form(None, description="Minimum on-hand stock"),
    negative_band: Optional[Decimal] = Form(None, description="Include negative stock down to -band (0 = all)"),
    require_photo: Optional[bool] = Form(None, description="Only return rows that matched a photo"),
    match_mode: Optional[MatchMode] = Form(None, description="strict or numeric_core"),
    missing_stock: Optional[MissingStockPolicy] = Form(None, description="zero or always_include"),
    require_header: bool = Form(False, description="Fail if no CODE/DESCRIPTION header row is found"),
):
    """
    Match photos to a price listing.

    Returns matched items plus how the listing was read and how photos matched.

    Raises:
        400: Missing or empty uploads
        422: Listing cannot be parsed or has no code column
    """
    try:
        result = await _run_catalogue(
            price_file,
            photos,
            _options(min_stock, negative_band, require_photo, match_mode, missing_stock, require_header),
        )
        return CatalogueResponse(**result.to_dict())

    except HTTPException:
        raise
    except Exception as e:
        return handle_error(e)


@router.post("/export")
async def export_catalogue(
    price_file: UploadFile = File(..., description="Price listing (.csv, .xlsx or .xls)"),
    photos: Optional[list[UploadFile]] = File(None, description="Product photos named by product code"),
    min_stock: Optional[Decimal] = Form(None, description="Minimum on-hand stock"),
    negative_band: Optional[Decimal] = Form(None, description="Include negative stock down to -band (0 = all)"),
    require_photo: Optional[bool] = Form(None, description="Only export rows that matched a photo"),
    match_mode: Optional[MatchMode] = Form(None, description="strict or numeric_core"),
    missing_stock: Optional[MissingStockPolicy] = Form(None, description="zero or always_include"),
    require_header: bool = Form(False, description="Fail if no CODE/DESCRIPTION header row is found"),
    title: Optional[str] = Form(None, description="Title written above the table"),
):
    """
    Match photos to a price listing and download the result as Excel.

    Raises:
        400: Missing or empty uploads
        422: Listing cannot be parsed or has no code column
    """
    try:
        result = await _run_catalogue(
            price_file,
            photos,
            _options(min_stock, negative_band, require_photo, match_mode, missing_stock, require_header),
        )

        output = get_export_service().generate_catalogue_excel(result.items, title=title)

        return StreamingResponse(
            output,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": 'attachment; filename="catalogue.xlsx"'},
        )

    except HTTPException:
        raise
    except Exception as e:
        return handle_error(e)
