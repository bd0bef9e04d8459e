"""Whole-database export and legacy import endpoints."""

from typing import Any

from fastapi import APIRouter, HTTPException, status

from caseload.db.portability import LegacyImportError, export_all, import_legacy_data
from caseload.web.schemas import ImportRequest, ImportResponse

router = APIRouter(prefix="/api/export", tags=["export"])


@router.get("/all")
async def export_everything() -> dict[str, Any]:
    """Every table as camelCase arrays plus ``exportDate``."""
    return export_all()


@router.post("/import", response_model=ImportResponse)
async def import_data(body: ImportRequest) -> ImportResponse:
    """Import a legacy export; ``replace`` clears the imported tables first."""
    try:
        counts = import_legacy_data(body.data, replace=body.mode == "replace")
    except LegacyImportError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ImportResponse(success=True, counts=counts)
