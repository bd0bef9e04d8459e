"""Repository functions for the timesheet_notes table."""

from __future__ import annotations

from dataclasses import asdict, dataclass

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, update_row

logger = structlog.get_logger(__name__)


@dataclass
class TimesheetNoteRecord:
    """Free-text timesheet entry, optionally tied to a school and a day."""

    id: str
    content: str
    date_created: str
    date_for: str | None = None
    school: str | None = None


def insert_timesheet_note(record: TimesheetNoteRecord) -> None:
    """Insert a new timesheet note."""
    with get_db() as conn:
        insert_row(conn, "timesheet_notes", asdict(record))
    logger.debug("timesheet_notes.inserted", note_id=record.id)


def get_timesheet_note(note_id: str) -> TimesheetNoteRecord | None:
    """Get timesheet note by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM timesheet_notes WHERE id = ?", (note_id,)).fetchone()
    return TimesheetNoteRecord(**dict(row)) if row else None


def list_timesheet_notes(school: str | None = None) -> list[TimesheetNoteRecord]:
    """List timesheet notes newest first, optionally for one school."""
    query = "SELECT * FROM timesheet_notes"
    params: tuple[str, ...] = ()
    if school:
        query += " WHERE LOWER(TRIM(school)) = LOWER(TRIM(?))"
        params = (school,)
    query += " ORDER BY date_created DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [TimesheetNoteRecord(**dict(r)) for r in rows]


def update_timesheet_note(record: TimesheetNoteRecord) -> bool:
    """Write all fields of an existing timesheet note."""
    with get_db() as conn:
        changed = update_row(conn, "timesheet_notes", asdict(record))
    return changed > 0


def delete_timesheet_note(note_id: str) -> bool:
    """Delete timesheet note by ID."""
    with get_db() as conn:
        deleted = delete_rows(conn, "timesheet_notes", [note_id])
    if deleted:
        logger.info("timesheet_notes.deleted", note_id=note_id)
    return deleted > 0
