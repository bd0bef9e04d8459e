"""SOAP note endpoints, including drafting a note from a logged session."""

from fastapi import APIRouter, Query, status

from caseload.core.soap_generator import COMMON_SUBJECTIVE_STATEMENTS, generate_soap_note
from caseload.db.goals_repository import list_goals
from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.sessions_repository import get_session
from caseload.db.soap_notes_repository import (
    SoapNoteRecord,
    delete_soap_note,
    delete_soap_notes,
    get_soap_note,
    insert_soap_note,
    list_soap_notes,
    update_soap_note,
)
from caseload.web.errors import ApiValidationError
from caseload.web.routes.common import not_found, payload_fields, require_student
from caseload.web.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    SoapDraftResponse,
    SoapNoteCreate,
    SoapNoteGenerateRequest,
    SoapNoteResponse,
    SoapNoteUpdate,
)

router = APIRouter(prefix="/api/soap-notes", tags=["soap-notes"])


@router.get("", response_model=list[SoapNoteResponse])
async def list_all_soap_notes(
    student_id: str | None = Query(default=None, alias="studentId"),
    session_id: str | None = Query(default=None, alias="sessionId"),
) -> list[SoapNoteRecord]:
    """List SOAP notes newest first."""
    return list_soap_notes(student_id=student_id, session_id=session_id)


@router.get("/subjective-statements", response_model=list[str])
async def list_subjective_statements() -> list[str]:
    """Common subjective statements offered when writing a note."""
    return list(COMMON_SUBJECTIVE_STATEMENTS)


@router.post("/generate", response_model=SoapDraftResponse)
async def generate_note(body: SoapNoteGenerateRequest) -> SoapDraftResponse:
    """Draft SOAP sections from a logged session, optionally saving them."""
    session = get_session(body.session_id)
    if session is None:
        raise ApiValidationError("sessionId", f"Session '{body.session_id}' does not exist")

    draft = generate_soap_note(
        session,
        list_goals(student_id=session.student_id),
        selected_statements=body.selected_subjective_statements,
        custom_subjective=body.custom_subjective,
    )

    saved = None
    if body.save:
        now = now_iso()
        saved = SoapNoteRecord(
            id=new_id("soap"),
            session_id=session.id,
            student_id=session.student_id,
            date=session.date,
            date_created=now,
            date_updated=now,
            subjective=draft.subjective,
            objective=draft.objective,
            assessment=draft.assessment,
            plan=draft.plan,
        )
        insert_soap_note(saved)

    return SoapDraftResponse(
        session_id=session.id,
        student_id=session.student_id,
        subjective=draft.subjective,
        objective=draft.objective,
        assessment=draft.assessment,
        plan=draft.plan,
        soap_note=SoapNoteResponse.model_validate(saved) if saved else None,
    )


@router.get("/{soap_note_id}", response_model=SoapNoteResponse)
async def get_one_soap_note(soap_note_id: str) -> SoapNoteRecord:
    """Get a specific SOAP note by ID."""
    note = get_soap_note(soap_note_id)
    if note is None:
        raise not_found("SOAP note")
    return note


@router.post("", response_model=SoapNoteResponse, status_code=status.HTTP_201_CREATED)
async def create_soap_note(body: SoapNoteCreate) -> SoapNoteRecord:
    """Create a SOAP note for an existing session and student."""
    require_student(body.student_id)
    if get_session(body.session_id) is None:
        raise ApiValidationError("sessionId", f"Session '{body.session_id}' does not exist")

    data = payload_fields(body)
    now = now_iso()
    data["id"] = data["id"] or new_id("soap")
    data["date_created"] = now
    data["date_updated"] = now

    note = SoapNoteRecord(**data)
    insert_soap_note(note)
    return note


@router.put("/{soap_note_id}", response_model=SoapNoteResponse)
async def update_one_soap_note(soap_note_id: str, body: SoapNoteUpdate) -> SoapNoteRecord:
    """Partially update a SOAP note."""
    note = get_soap_note(soap_note_id)
    if note is None:
        raise not_found("SOAP note")

    changes = payload_fields(body, partial=True)
    changes["date_updated"] = now_iso()
    updated = merge_changes(note, changes)
    update_soap_note(updated)
    return updated


@router.delete("/bulk", response_model=BulkDeleteResponse)
async def bulk_delete_soap_notes(body: BulkDeleteRequest) -> BulkDeleteResponse:
    return BulkDeleteResponse(deleted_count=delete_soap_notes(body.ids))


@router.delete("/{soap_note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_soap_note(soap_note_id: str) -> None:
    if not delete_soap_note(soap_note_id):
        raise not_found("SOAP note")
