"""Repository functions for the sessions table (logged therapy sessions)."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, from_json, insert_row, to_json, update_row

logger = structlog.get_logger(__name__)

_JSON_FIELDS = (
    "goals_targeted",
    "activities_used",
    "performance_data",
    "selected_subjective_statements",
)
_BOOL_FIELDS = ("is_direct_services", "missed_session")


@dataclass
class SessionRecord:
    """A logged therapy session for one student.

    ``performance_data`` holds one dict per targeted goal with keys
    goalId, accuracy, correctTrials, incorrectTrials, notes, cuingLevels.
    """

    id: str
    student_id: str
    date: str
    end_time: str | None = None
    goals_targeted: list[str] = field(default_factory=list)
    activities_used: list[str] = field(default_factory=list)
    performance_data: list[dict[str, Any]] = field(default_factory=list)
    notes: str = ""
    is_direct_services: bool = True
    indirect_services_notes: str | None = None
    group_session_id: str | None = None
    missed_session: bool = False
    selected_subjective_statements: list[str] = field(default_factory=list)
    custom_subjective: str | None = None
    plan: str | None = None
    scheduled_session_id: str | None = None


def _row_to_record(row: sqlite3.Row) -> SessionRecord:
    """Convert database row to SessionRecord."""
    data = dict(row)
    for name in _JSON_FIELDS:
        data[name] = from_json(data[name])
    for name in _BOOL_FIELDS:
        data[name] = bool(data[name])
    return SessionRecord(**data)


def _record_to_row(record: SessionRecord) -> dict[str, Any]:
    row = asdict(record)
    for name in _JSON_FIELDS:
        row[name] = to_json(row[name])
    for name in _BOOL_FIELDS:
        row[name] = int(row[name])
    return row


def insert_session(record: SessionRecord) -> None:
    """Insert a new session.

    Raises:
        sqlite3.IntegrityError: If the student does not exist
    """
    with get_db() as conn:
        insert_row(conn, "sessions", _record_to_row(record))
    logger.debug("sessions.inserted", session_id=record.id, student_id=record.student_id)


def get_session(session_id: str) -> SessionRecord | None:
    """Get session by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM sessions WHERE id = ?", (session_id,)).fetchone()
    return _row_to_record(row) if row else None


def list_sessions(
    student_id: str | None = None,
    school: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    scheduled_session_id: str | None = None,
    limit: int | None = None,
) -> list[SessionRecord]:
    """List sessions newest first.

    Args:
        student_id: Only this student's sessions
        school: Only sessions of students at this school
        start_date: Inclusive lower bound on the session date (YYYY-MM-DD)
        end_date: Inclusive upper bound on the session date (YYYY-MM-DD)
        scheduled_session_id: Only sessions logged against this schedule
        limit: Maximum number of rows

    Returns:
        Sessions ordered by date DESC
    """
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT se.* FROM sessions se"
    if school:
        query += " JOIN students s ON s.id = se.student_id"
        clauses.append("LOWER(TRIM(s.school)) = LOWER(TRIM(?))")
        params.append(school)
    if student_id:
        clauses.append("se.student_id = ?")
        params.append(student_id)
    if start_date:
        clauses.append("substr(se.date, 1, 10) >= ?")
        params.append(start_date[:10])
    if end_date:
        clauses.append("substr(se.date, 1, 10) <= ?")
        params.append(end_date[:10])
    if scheduled_session_id:
        clauses.append("se.scheduled_session_id = ?")
        params.append(scheduled_session_id)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY se.date DESC"
    if limit:
        query += " LIMIT ?"
        params.append(limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_session(record: SessionRecord) -> bool:
    """Write all fields of an existing session."""
    with get_db() as conn:
        changed = update_row(conn, "sessions", _record_to_row(record))
    logger.debug("sessions.updated", session_id=record.id)
    return changed > 0


def delete_sessions(session_ids: list[str]) -> int:
    """Delete sessions by ID (SOAP notes cascade).

    Returns:
        Number of sessions deleted
    """
    with get_db() as conn:
        deleted = delete_rows(conn, "sessions", session_ids)
    logger.info("sessions.deleted", count=deleted)
    return deleted


def delete_session(session_id: str) -> bool:
    """Delete session by ID."""
    return delete_sessions([session_id]) > 0
