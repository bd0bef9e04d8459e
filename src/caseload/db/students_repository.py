"""Repository functions for the students table."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, from_json, insert_row, to_json, update_row

logger = structlog.get_logger(__name__)


@dataclass
class StudentRecord:
    """Student on the caseload."""

    id: str
    name: str
    school: str
    date_added: str
    age: int | None = None
    grade: str | None = None
    concerns: list[str] = field(default_factory=list)
    exceptionality: list[str] = field(default_factory=list)
    status: str = "active"
    archived: bool = False
    date_archived: str | None = None
    teacher_id: str | None = None
    case_manager_id: str | None = None
    iep_date: str | None = None
    annual_review_date: str | None = None
    progress_report_frequency: str | None = None
    frequency_per_week: int | None = None
    frequency_type: str | None = None

    @property
    def is_active(self) -> bool:
        """Active and not archived."""
        return self.status == "active" and not self.archived


def _row_to_record(row: sqlite3.Row) -> StudentRecord:
    """Convert database row to StudentRecord."""
    data = dict(row)
    data["concerns"] = from_json(data["concerns"])
    data["exceptionality"] = from_json(data["exceptionality"])
    data["archived"] = bool(data["archived"])
    return StudentRecord(**data)


def _record_to_row(record: StudentRecord) -> dict[str, Any]:
    row = asdict(record)
    row["concerns"] = to_json(record.concerns)
    row["exceptionality"] = to_json(record.exceptionality)
    row["archived"] = int(record.archived)
    return row


def insert_student(record: StudentRecord) -> None:
    """Insert a new student.

    Raises:
        sqlite3.IntegrityError: If the id already exists
    """
    with get_db() as conn:
        insert_row(conn, "students", _record_to_row(record))
    logger.debug("students.inserted", student_id=record.id, school=record.school)


def get_student(student_id: str) -> StudentRecord | None:
    """Get student by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM students WHERE id = ?", (student_id,)).fetchone()
    return _row_to_record(row) if row else None


def student_exists(student_id: str) -> bool:
    """Check whether a student id exists."""
    with get_db() as conn:
        row = conn.execute("SELECT 1 FROM students WHERE id = ?", (student_id,)).fetchone()
    return row is not None


def list_students(
    school: str | None = None,
    teacher_id: str | None = None,
    case_manager_id: str | None = None,
    active_only: bool = False,
) -> list[StudentRecord]:
    """List students with optional filters.

    Args:
        school: Case-insensitive school name
        teacher_id: Only students of this teacher
        case_manager_id: Only students of this case manager
        active_only: Only active, non-archived students

    Returns:
        Students ordered by date added (newest first)
    """
    clauses: list[str] = []
    params: list[Any] = []
    if school:
        clauses.append("LOWER(TRIM(school)) = LOWER(TRIM(?))")
        params.append(school)
    if teacher_id:
        clauses.append("teacher_id = ?")
        params.append(teacher_id)
    if case_manager_id:
        clauses.append("case_manager_id = ?")
        params.append(case_manager_id)
    if active_only:
        clauses.append("status = 'active' AND archived = 0")

    query = "SELECT * FROM students"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY date_added DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_student(record: StudentRecord) -> bool:
    """Write all fields of an existing student.

    Returns:
        True if the student existed
    """
    with get_db() as conn:
        changed = update_row(conn, "students", _record_to_row(record))
    logger.debug("students.updated", student_id=record.id)
    return changed > 0


def delete_student(student_id: str) -> bool:
    """Delete student by ID (goals, sessions and reports cascade).

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        deleted = delete_rows(conn, "students", [student_id])
    if deleted:
        logger.info("students.deleted", student_id=student_id)
    return deleted > 0
