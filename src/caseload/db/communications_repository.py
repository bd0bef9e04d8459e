"""Repository functions for the communications table (contact log)."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, update_row

logger = structlog.get_logger(__name__)


@dataclass
class CommunicationRecord:
    """One logged contact with a teacher, parent or case manager."""

    id: str
    contact_type: str
    contact_name: str
    subject: str
    body: str
    method: str
    date: str
    date_created: str
    student_id: str | None = None
    contact_id: str | None = None
    contact_email: str | None = None
    session_id: str | None = None
    related_to: str | None = None


def _row_to_record(row: sqlite3.Row) -> CommunicationRecord:
    """Convert database row to CommunicationRecord."""
    return CommunicationRecord(**dict(row))


def insert_communication(record: CommunicationRecord) -> None:
    """Insert a new communication."""
    with get_db() as conn:
        insert_row(conn, "communications", asdict(record))
    logger.debug(
        "communications.inserted", communication_id=record.id, method=record.method
    )


def get_communication(communication_id: str) -> CommunicationRecord | None:
    """Get communication by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM communications WHERE id = ?", (communication_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_communications(
    student_id: str | None = None,
    contact_type: str | None = None,
    school: str | None = None,
) -> list[CommunicationRecord]:
    """List communications newest first.

    The school filter keeps communications not tied to any student.
    """
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT c.* FROM communications c"
    if school:
        query += " LEFT JOIN students s ON s.id = c.student_id"
        clauses.append("(LOWER(TRIM(s.school)) = LOWER(TRIM(?)) OR c.student_id IS NULL)")
        params.append(school)
    if student_id:
        clauses.append("c.student_id = ?")
        params.append(student_id)
    if contact_type:
        clauses.append("c.contact_type = ?")
        params.append(contact_type)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY c.date DESC, c.date_created DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_communication(record: CommunicationRecord) -> bool:
    """Write all fields of an existing communication."""
    with get_db() as conn:
        changed = update_row(conn, "communications", asdict(record))
    logger.debug("communications.updated", communication_id=record.id)
    return changed > 0


def delete_communications(communication_ids: list[str]) -> int:
    """Delete communications by ID, returning how many were removed."""
    with get_db() as conn:
        deleted = delete_rows(conn, "communications", communication_ids)
    logger.info("communications.deleted", count=deleted)
    return deleted


def delete_communication(communication_id: str) -> bool:
    """Delete communication by ID."""
    return delete_communications([communication_id]) > 0
