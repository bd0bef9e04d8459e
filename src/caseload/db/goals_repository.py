"""Repository functions for the goals table."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, from_json, insert_row, to_json, update_row

logger = structlog.get_logger(__name__)


@dataclass
class GoalRecord:
    """IEP goal (optionally a sub-goal of another goal)."""

    id: str
    student_id: str
    description: str
    date_created: str
    baseline: str = ""
    target: str = ""
    status: str = "in-progress"
    date_achieved: str | None = None
    parent_goal_id: str | None = None
    sub_goal_ids: list[str] = field(default_factory=list)
    domain: str | None = None
    priority: str | None = None
    template_id: str | None = None


def _row_to_record(row: sqlite3.Row) -> GoalRecord:
    """Convert database row to GoalRecord."""
    data = dict(row)
    data["sub_goal_ids"] = from_json(data["sub_goal_ids"])
    return GoalRecord(**data)


def _record_to_row(record: GoalRecord) -> dict[str, Any]:
    row = asdict(record)
    row["sub_goal_ids"] = to_json(record.sub_goal_ids)
    return row


def insert_goal(record: GoalRecord) -> None:
    """Insert a new goal.

    Raises:
        sqlite3.IntegrityError: If the student does not exist
    """
    with get_db() as conn:
        insert_row(conn, "goals", _record_to_row(record))
    logger.debug("goals.inserted", goal_id=record.id, student_id=record.student_id)


def get_goal(goal_id: str) -> GoalRecord | None:
    """Get goal by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
    return _row_to_record(row) if row else None


def list_goals(
    student_id: str | None = None,
    school: str | None = None,
    status: str | None = None,
) -> list[GoalRecord]:
    """List goals, filtered by student, by the student's school, or by status."""
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT g.* FROM goals g"
    if school:
        query += " JOIN students s ON s.id = g.student_id"
        clauses.append("LOWER(TRIM(s.school)) = LOWER(TRIM(?))")
        params.append(school)
    if student_id:
        clauses.append("g.student_id = ?")
        params.append(student_id)
    if status:
        clauses.append("g.status = ?")
        params.append(status)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY g.date_created"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def update_goal(record: GoalRecord) -> bool:
    """Write all fields of an existing goal."""
    with get_db() as conn:
        changed = update_row(conn, "goals", _record_to_row(record))
    logger.debug("goals.updated", goal_id=record.id, status=record.status)
    return changed > 0


def delete_goals(goal_ids: list[str]) -> int:
    """Delete goals by ID.

    Returns:
        Number of goals deleted
    """
    with get_db() as conn:
        deleted = delete_rows(conn, "goals", goal_ids)
    logger.info("goals.deleted", count=deleted)
    return deleted


def delete_goal(goal_id: str) -> bool:
    """Delete goal by ID."""
    return delete_goals([goal_id]) > 0
