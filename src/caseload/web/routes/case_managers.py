"""Case manager endpoints."""

from fastapi import APIRouter, status

from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.staff_repository import (
    CaseManagerRecord,
    delete_case_manager,
    get_case_manager,
    insert_case_manager,
    list_case_managers,
    update_case_manager,
)
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import CaseManagerCreate, CaseManagerResponse, CaseManagerUpdate

router = APIRouter(prefix="/api/case-managers", tags=["case-managers"])


@router.get("", response_model=list[CaseManagerResponse])
async def list_all_case_managers(school: str | None = None) -> list[CaseManagerRecord]:
    """List case managers by name."""
    return list_case_managers(school=school)


@router.get("/{case_manager_id}", response_model=CaseManagerResponse)
async def get_one_case_manager(case_manager_id: str) -> CaseManagerRecord:
    case_manager = get_case_manager(case_manager_id)
    if case_manager is None:
        raise not_found("Case manager")
    return case_manager


@router.post("", response_model=CaseManagerResponse, status_code=status.HTTP_201_CREATED)
async def create_case_manager(body: CaseManagerCreate) -> CaseManagerRecord:
    """Create a case manager."""
    data = payload_fields(body)
    data["id"] = data["id"] or new_id("case-manager")
    data["date_created"] = data["date_created"] or now_iso()

    case_manager = CaseManagerRecord(**data)
    insert_case_manager(case_manager)
    return case_manager


@router.put("/{case_manager_id}", response_model=CaseManagerResponse)
async def update_one_case_manager(
    case_manager_id: str, body: CaseManagerUpdate
) -> CaseManagerRecord:
    """Partially update a case manager."""
    case_manager = get_case_manager(case_manager_id)
    if case_manager is None:
        raise not_found("Case manager")

    updated = merge_changes(case_manager, payload_fields(body, partial=True))
    update_case_manager(updated)
    return updated


@router.delete("/{case_manager_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_case_manager(case_manager_id: str) -> None:
    if not delete_case_manager(case_manager_id):
        raise not_found("Case manager")
