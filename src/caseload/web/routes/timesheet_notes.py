"""Timesheet note endpoints."""

from fastapi import APIRouter, status

from caseload.db.helpers import merge_changes, new_id, now_iso
from caseload.db.timesheet_notes_repository import (
    TimesheetNoteRecord,
    delete_timesheet_note,
    get_timesheet_note,
    insert_timesheet_note,
    list_timesheet_notes,
    update_timesheet_note,
)
from caseload.web.routes.common import not_found, payload_fields
from caseload.web.schemas import TimesheetNoteCreate, TimesheetNoteResponse, TimesheetNoteUpdate

router = APIRouter(prefix="/api/timesheet-notes", tags=["timesheet-notes"])


@router.get("", response_model=list[TimesheetNoteResponse])
async def list_all_timesheet_notes(school: str | None = None) -> list[TimesheetNoteRecord]:
    return list_timesheet_notes(school=school)


@router.get("/{note_id}", response_model=TimesheetNoteResponse)
async def get_one_timesheet_note(note_id: str) -> TimesheetNoteRecord:
    note = get_timesheet_note(note_id)
    if note is None:
        raise not_found("Timesheet note")
    return note


@router.post("", response_model=TimesheetNoteResponse, status_code=status.HTTP_201_CREATED)
async def create_timesheet_note(body: TimesheetNoteCreate) -> TimesheetNoteRecord:
    data = payload_fields(body)
    data["id"] = data["id"] or new_id("timesheet")
    data["date_created"] = data["date_created"] or now_iso()

    note = TimesheetNoteRecord(**data)
    insert_timesheet_note(note)
    return note


@router.put("/{note_id}", response_model=TimesheetNoteResponse)
async def update_one_timesheet_note(note_id: str, body: TimesheetNoteUpdate) -> TimesheetNoteRecord:
    note = get_timesheet_note(note_id)
    if note is None:
        raise not_found("Timesheet note")

    updated = merge_changes(note, payload_fields(body, partial=True))
    update_timesheet_note(updated)
    return updated


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_one_timesheet_note(note_id: str) -> None:
    if not delete_timesheet_note(note_id):
        raise not_found("Timesheet note")
