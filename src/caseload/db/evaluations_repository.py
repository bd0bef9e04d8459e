"""Repository functions for the evaluations table."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, from_json, insert_row, to_json, update_row

logger = structlog.get_logger(__name__)


@dataclass
class EvaluationRecord:
    """Initial evaluation, re-evaluation or screening for a student."""

    id: str
    student_id: str
    evaluation_type: str
    date_created: str
    date_updated: str
    grade: str = ""
    areas_of_concern: list[str] = field(default_factory=list)
    teacher: str | None = None
    results_of_screening: str | None = None
    due_date: str | None = None
    assessments: str | None = None
    qualify: str | None = None
    report_completed: str | None = None
    iep_completed: str | None = None
    meeting_date: str | None = None


def _row_to_record(row: sqlite3.Row) -> EvaluationRecord:
    """Convert database row to EvaluationRecord."""
    data = dict(row)
    data["areas_of_concern"] = from_json(data["areas_of_concern"])
    return EvaluationRecord(**data)


def _record_to_row(record: EvaluationRecord) -> dict[str, Any]:
    row = asdict(record)
    row["areas_of_concern"] = to_json(record.areas_of_concern)
    return row


def insert_evaluation(record: EvaluationRecord) -> None:
    """Insert a new evaluation."""
    with get_db() as conn:
        insert_row(conn, "evaluations", _record_to_row(record))
    logger.debug("evaluations.inserted", evaluation_id=record.id, student_id=record.student_id)


def get_evaluation(evaluation_id: str) -> EvaluationRecord | None:
    """Get evaluation by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM evaluations WHERE id = ?", (evaluation_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


def list_evaluations(
    student_id: str | None = None, school: str | None = None
) -> list[EvaluationRecord]:
    """List evaluations newest first, by student or by the student's school."""
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT e.* FROM evaluations e"
    if school:
        query += " JOIN students s ON s.id = e.student_id"
        clauses.append("LOWER(TRIM(s.school)) = LOWER(TRIM(?))")
        params.append(school)
    if student_id:
        clauses.append("e.student_id = ?")
        params.append(student_id)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY e.date_created DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_evaluation(record: EvaluationRecord) -> bool:
    """Write all fields of an existing evaluation."""
    with get_db() as conn:
        changed = update_row(conn, "evaluations", _record_to_row(record))
    logger.debug("evaluations.updated", evaluation_id=record.id)
    return changed > 0


def delete_evaluation(evaluation_id: str) -> bool:
    """Delete evaluation by ID."""
    with get_db() as conn:
        deleted = delete_rows(conn, "evaluations", [evaluation_id])
    if deleted:
        logger.info("evaluations.deleted", evaluation_id=evaluation_id)
    return deleted > 0
