"""Communication log endpoints."""

from fastapi import APIRouter, Query, status

from caseload.db.communications_repository import (
    CommunicationRecord,
    delete_communication,
    delete_communications,
    get_communication,
    insert_communication,
    list_communications,
    update_communication,
)
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    CommunicationCreate,
    CommunicationResponse,
    CommunicationUpdate,
)

router = APIRouter(prefix="/api/communications", tags=["communications"])


@router.get("", response_model=list[CommunicationResponse])
async def list_all_communications(
    student_id: str | None = Query(default=None, alias="studentId"),
    contact_type: str | None = Query(default=None, alias="contactType"),
    school: str | None = None,
) -> list[CommunicationRecord]:
    """List communications newest first."""
    return list_communications(student_id=student_id, contact_type=contact_type, school=school)


@router.get("/{communication_id}", response_model=CommunicationResponse)
async def get_one_communication(communication_id: str) -> CommunicationRecord:
    communication = get_communication(communication_id)
    if communication is None:
        raise not_found("Communication")
    return communication


@router.post("", response_model=CommunicationResponse, status_code=status.HTTP_201_CREATED)
async def create_communication(body: CommunicationCreate) -> CommunicationRecord:
    """Log a communication; ``date`` defaults to now."""
    if body.student_id:
        require_student(body.student_id)

    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("comm")
    data["date"] = data["date"] or now
    data["date_created"] = now

    communication = CommunicationRecord(**data)
    insert_communication(communication)
    return communication


@router.put("/{communication_id}", response_model=CommunicationResponse)
async def update_one_communication(
    communication_id: str, body: CommunicationUpdate
) -> CommunicationRecord:
    """Partially update a communication."""
    communication = get_communication(communication_id)
    if communication is None:
        raise not_found("Communication")

    changes = payload_fields(body, partial=True)
    if changes.get("student_id"):
        require_student(changes["student_id"])

    updated = merge_changes(communication, changes)
    update_communication(updated)
    return updated


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_communications(body: BulkDeleteRequest) -> BulkDeleteResponse:
    return BulkDeleteResponse(deleted_count=delete_communications(body.ids))


@router.delete("/{communication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_communication(communication_id: str) -> None:
    if not delete_communication(communication_id):
        raise not_found("Communication")
