"""Repository functions for the schools table.

School names are unique case-insensitively; students, teachers and case
managers reference schools by name rather than id.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, new_id, now_iso, update_row

logger = structlog.get_logger(__name__)

DEFAULT_STATE = "NC"


@dataclass
class SchoolRecord:
    """School record from database."""

    id: str
    name: str
    date_created: str
    state: str = DEFAULT_STATE
    teletherapy: bool = False
    school_hours: dict[str, int] | None = None
    student_count: int | None = None


def _row_to_record(row: sqlite3.Row) -> SchoolRecord:
    """Convert database row to SchoolRecord."""
    keys = row.keys()
    return SchoolRecord(
        id=row["id"],
        name=row["name"],
        state=row["state"],
        teletherapy=bool(row["teletherapy"]),
        date_created=row["date_created"],
        school_hours=json.loads(row["school_hours"]) if row["school_hours"] else None,
        student_count=row["student_count"] if "student_count" in keys else None,
    )


def _record_to_row(record: SchoolRecord) -> dict[str, Any]:
    row = asdict(record)
    row.pop("student_count")
    row["teletherapy"] = int(record.teletherapy)
    row["school_hours"] = json.dumps(record.school_hours) if record.school_hours else None
    return row


def insert_school(record: SchoolRecord) -> None:
    """Insert a new school.

    Raises:
        sqlite3.IntegrityError: If a school with the same name exists
    """
    with get_db() as conn:
        insert_row(conn, "schools", _record_to_row(record))

    logger.debug("schools.inserted", school_id=record.id, name=record.name)


def get_school(school_id: str) -> SchoolRecord | None:
    """Get school by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM schools WHERE id = ?", (school_id,)).fetchone()
    return _row_to_record(row) if row else None


def get_school_by_name(name: str) -> SchoolRecord | None:
    """Get school by name, ignoring case and surrounding whitespace."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM schools WHERE LOWER(name) = LOWER(?)", (name.strip(),)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_schools() -> list[SchoolRecord]:
    """List schools ordered by name, with non-archived student counts."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT s.*, (
                SELECT COUNT(*) FROM students st
                WHERE LOWER(st.school) = LOWER(s.name) AND st.archived = 0
            ) AS student_count
            FROM schools s
            ORDER BY s.name COLLATE NOCASE
            """
        ).fetchall()
    return [_row_to_record(r) for r in rows]


def update_school(record: SchoolRecord) -> bool:
    """Write all fields of an existing school.

    Returns:
        True if the school existed
    """
    with get_db() as conn:
        changed = update_row(conn, "schools", _record_to_row(record))
    logger.debug("schools.updated", school_id=record.id)
    return changed > 0


def delete_school(school_id: str) -> bool:
    """Delete school by ID.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        deleted = delete_rows(conn, "schools", [school_id])
    if deleted:
        logger.info("schools.deleted", school_id=school_id)
    return deleted > 0


def ensure_school(name: str, state: str = DEFAULT_STATE) -> SchoolRecord:
    """Return the school matching ``name``, creating it when missing.

    Matching is case-insensitive, so callers should store the returned
    record's canonical name.

    Args:
        name: School name as typed by the user
        state: State for a newly created school

    Returns:
        Existing or newly created SchoolRecord
    """
    existing = get_school_by_name(name)
    if existing is not None:
        return existing

    record = SchoolRecord(
        id=new_id("school"),
        name=name.strip(),
        state=state,
        date_created=now_iso(),
    )
    insert_school(record)
    logger.info("schools.auto_created", name=record.name)
    return record
