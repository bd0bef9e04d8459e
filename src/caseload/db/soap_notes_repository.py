"""Repository functions for the soap_notes table."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, update_row

logger = structlog.get_logger(__name__)


@dataclass
class SoapNoteRecord:
    """Subjective/Objective/Assessment/Plan note attached to a session."""

    id: str
    session_id: str
    student_id: str
    date: str
    date_created: str
    date_updated: str
    template_id: str | None = None
    subjective: str = ""
    objective: str = ""
    assessment: str = ""
    plan: str = ""


def _row_to_record(row: sqlite3.Row) -> SoapNoteRecord:
    """Convert database row to SoapNoteRecord."""
    return SoapNoteRecord(**dict(row))


def insert_soap_note(record: SoapNoteRecord) -> None:
    """Insert a new SOAP note.

    Raises:
        sqlite3.IntegrityError: If the session or student does not exist
    """
    with get_db() as conn:
        insert_row(conn, "soap_notes", asdict(record))
    logger.debug("soap_notes.inserted", soap_note_id=record.id, session_id=record.session_id)


def get_soap_note(soap_note_id: str) -> SoapNoteRecord | None:
    """Get SOAP note by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM soap_notes WHERE id = ?", (soap_note_id,)).fetchone()
    return _row_to_record(row) if row else None


def list_soap_notes(
    student_id: str | None = None, session_id: str | None = None
) -> list[SoapNoteRecord]:
    """List SOAP notes newest first."""
    clauses: list[str] = []
    params: list[Any] = []
    if student_id:
        clauses.append("student_id = ?")
        params.append(student_id)
    if session_id:
        clauses.append("session_id = ?")
        params.append(session_id)

    query = "SELECT * FROM soap_notes"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY date DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_soap_note(record: SoapNoteRecord) -> bool:
    """Write all fields of an existing SOAP note."""
    with get_db() as conn:
        changed = update_row(conn, "soap_notes", asdict(record))
    logger.debug("soap_notes.updated", soap_note_id=record.id)
    return changed > 0


def delete_soap_notes(soap_note_ids: list[str]) -> int:
    """Delete SOAP notes by ID, returning how many were removed."""
    with get_db() as conn:
        deleted = delete_rows(conn, "soap_notes", soap_note_ids)
    logger.info("soap_notes.deleted", count=deleted)
    return deleted


def delete_soap_note(soap_note_id: str) -> bool:
    """Delete SOAP note by ID."""
    return delete_soap_notes([soap_note_id]) > 0
