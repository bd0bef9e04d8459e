"""Logged therapy session endpoints."""

from fastapi import APIRouter, Query, status

from caseload.db.helpers import merge_changes, new_id
from caseload.db.sessions_repository import (
    SessionRecord,
    delete_session,
    delete_sessions,
    get_session,
    insert_session,
    list_sessions,
    update_session,
)
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    SessionCreate,
    SessionResponse,
    SessionUpdate,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionResponse])
async def list_all_sessions(
    student_id: str | None = Query(default=None, alias="studentId"),
    school: str | None = None,
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
) -> list[SessionRecord]:
    """List sessions newest first."""
    return list_sessions(
        student_id=student_id, school=school, start_date=start_date, end_date=end_date
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_one_session(session_id: str) -> SessionRecord:
    """Get a specific session by ID."""
    session = get_session(session_id)
    if session is None:
        raise not_found("Session")
    return session


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreate) -> SessionRecord:
    """Log a session for an existing student."""
    require_student(body.student_id)

    data = payload_fields(body)
    data["id"] = data["id"] or new_id("session")

    session = SessionRecord(**data)
    insert_session(session)
    return session


@router.put("/{session_id}", response_model=SessionResponse)
async def update_one_session(session_id: str, body: SessionUpdate) -> SessionRecord:
    """Partially update a session."""
    session = get_session(session_id)
    if session is None:
        raise not_found("Session")

    updated = merge_changes(session, payload_fields(body, partial=True))
    update_session(updated)
    return updated


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_sessions(body: BulkDeleteRequest) -> BulkDeleteResponse:
    """Delete several sessions at once (their SOAP notes cascade)."""
    return BulkDeleteResponse(deleted_count=delete_sessions(body.ids))


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_session(session_id: str) -> None:
    """Delete a session by ID."""
    if not delete_session(session_id):
        raise not_found("Session")
