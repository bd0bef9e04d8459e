"""Repository functions for the scheduled_sessions table (recurring slots)."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, from_json, insert_row, to_json, update_row

logger = structlog.get_logger(__name__)

_JSON_FIELDS = (
    "student_ids",
    "day_of_week",
    "specific_dates",
    "goals_targeted",
    "cancelled_dates",
)
_BOOL_FIELDS = ("is_direct_services", "active")


@dataclass
class ScheduledSessionRecord:
    """Recurring or one-off session slot.

    ``day_of_week`` uses 0 = Sunday ... 6 = Saturday.
    """

    id: str
    start_time: str
    start_date: str
    date_created: str
    date_updated: str
    student_ids: list[str] = field(default_factory=list)
    end_time: str | None = None
    duration: int | None = None
    day_of_week: list[int] = field(default_factory=list)
    specific_dates: list[str] = field(default_factory=list)
    recurrence_pattern: str = "weekly"
    end_date: str | None = None
    goals_targeted: list[str] = field(default_factory=list)
    notes: str | None = None
    is_direct_services: bool = True
    active: bool = True
    cancelled_dates: list[str] = field(default_factory=list)


def _row_to_record(row: sqlite3.Row) -> ScheduledSessionRecord:
    """Convert database row to ScheduledSessionRecord."""
    data = dict(row)
    for name in _JSON_FIELDS:
        data[name] = from_json(data[name])
    for name in _BOOL_FIELDS:
        data[name] = bool(data[name])
    return ScheduledSessionRecord(**data)


def _record_to_row(record: ScheduledSessionRecord) -> dict[str, Any]:
    row = asdict(record)
    for name in _JSON_FIELDS:
        row[name] = to_json(row[name])
    for name in _BOOL_FIELDS:
        row[name] = int(row[name])
    return row


def insert_scheduled_session(record: ScheduledSessionRecord) -> None:
    """Insert a new scheduled session."""
    with get_db() as conn:
        insert_row(conn, "scheduled_sessions", _record_to_row(record))
    logger.debug(
        "scheduled_sessions.inserted",
        scheduled_session_id=record.id,
        pattern=record.recurrence_pattern,
    )


def get_scheduled_session(scheduled_session_id: str) -> ScheduledSessionRecord | None:
    """Get scheduled session by ID (active or not)."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM scheduled_sessions WHERE id = ?", (scheduled_session_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_scheduled_sessions(school: str | None = None) -> list[ScheduledSessionRecord]:
    """List active scheduled sessions.

    Args:
        school: Keep only sessions where at least one student attends
            this school (case-insensitive)

    Returns:
        Active scheduled sessions ordered by start date and time
    """
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM scheduled_sessions WHERE active = 1 "
            "ORDER BY start_date, start_time"
        ).fetchall()
        records = [_row_to_record(r) for r in rows]

        if school:
            school_students = {
                r["id"]
                for r in conn.execute(
                    "SELECT id FROM students WHERE LOWER(TRIM(school)) = LOWER(TRIM(?))",
                    (school,),
                ).fetchall()
            }
            records = [
                rec for rec in records if any(sid in school_students for sid in rec.student_ids)
            ]

    return records


def update_scheduled_session(record: ScheduledSessionRecord) -> bool:
    """Write all fields of an existing scheduled session."""
    with get_db() as conn:
        changed = update_row(conn, "scheduled_sessions", _record_to_row(record))
    logger.debug("scheduled_sessions.updated", scheduled_session_id=record.id)
    return changed > 0


def delete_scheduled_session(scheduled_session_id: str) -> bool:
    """Delete scheduled session by ID."""
    with get_db() as conn:
        deleted = delete_rows(conn, "scheduled_sessions", [scheduled_session_id])
    if deleted:
        logger.info("scheduled_sessions.deleted", scheduled_session_id=scheduled_session_id)
    return deleted > 0
