"""School endpoints."""

from fastapi import APIRouter, Response, status

from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.schools_repository import (
    SchoolRecord,
    delete_school,
    get_school,
    get_school_by_name,
    insert_school,
    list_schools,
    update_school,
)
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import SchoolCreate, SchoolResponse, SchoolUpdate

router = APIRouter(prefix="/api/schools", tags=["schools"])


@router.get("", response_model=list[SchoolResponse])
async def list_all_schools() -> list[SchoolRecord]:
    """List schools by name with their student counts."""
    return list_schools()


@router.get("/name/{name}", response_model=SchoolResponse)
async def get_school_named(name: str) -> SchoolRecord:
    """Look a school up by name, ignoring case."""
    school = get_school_by_name(name)
    if school is None:
        raise not_found("School")
    return school


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_one_school(school_id: str) -> SchoolRecord:
    """Get a specific school by ID."""
    school = get_school(school_id)
    if school is None:
        raise not_found("School")
    return school


@router.post("", response_model=SchoolResponse, status_code=status.HTTP_201_CREATED)
async def create_school(body: SchoolCreate, response: Response) -> SchoolRecord:
    """Create a school.

    A name that already exists (ignoring case) returns the existing school
    with 200 instead of creating a duplicate.
    """
    existing = get_school_by_name(body.name)
    if existing is not None:
        response.status_code = status.HTTP_200_OK
        return existing

    data = payload_fields(body)
    data["id"] = data["id"] or new_id("school")
    data["date_created"] = data["date_created"] or now_iso()
    data["state"] = data["state"].upper()

    school = SchoolRecord(**data)
    insert_school(school)
    return school


@router.put("/{school_id}", response_model=SchoolResponse)
async def update_one_school(school_id: str, body: SchoolUpdate) -> SchoolRecord:
    """Partially update a school."""
    school = get_school(school_id)
    if school is None:
        raise not_found("School")

    changes = payload_fields(body, partial=True)
    if changes.get("state"):
        changes["state"] = changes["state"].upper()

    updated = merge_changes(school, changes)
    update_school(updated)
    return updated


@router.delete("/{school_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_school(school_id: str) -> None:
    """Delete a school by ID."""
    if not delete_school(school_id):
        raise not_found("School")
