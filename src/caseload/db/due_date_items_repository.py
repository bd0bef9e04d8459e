"""Repository functions for the due_date_items table.

Item status is derived on read: anything not completed is ``overdue`` once
its due date has passed and ``pending`` otherwise.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, parse_date, today, update_row

logger = structlog.get_logger(__name__)


@dataclass
class DueDateItemRecord:
    """Generic dated to-do (paperwork deadlines, meetings, ...)."""

    id: str
    title: str
    due_date: str
    date_created: str
    date_updated: str
    description: str | None = None
    student_id: str | None = None
    status: str = "pending"
    completed_date: str | None = None
    category: str | None = None
    priority: str | None = None


def compute_status(record: DueDateItemRecord, as_of: date | None = None) -> str:
    """Derive the effective status of an item.

    Args:
        record: Stored item
        as_of: Reference date (defaults to today)

    Returns:
        ``completed``, ``overdue`` or ``pending``
    """
    if record.status == "completed":
        return "completed"
    due = parse_date(record.due_date)
    if due is not None and due < (as_of or today()):
        return "overdue"
    return "pending"


def _row_to_record(row: sqlite3.Row, as_of: date | None = None) -> DueDateItemRecord:
    """Convert database row to DueDateItemRecord with a fresh status."""
    record = DueDateItemRecord(**dict(row))
    record.status = compute_status(record, as_of)
    return record


def insert_due_date_item(record: DueDateItemRecord) -> None:
    """Insert a new due-date item."""
    with get_db() as conn:
        insert_row(conn, "due_date_items", asdict(record))
    logger.debug("due_date_items.inserted", item_id=record.id, due_date=record.due_date)


def get_due_date_item(item_id: str) -> DueDateItemRecord | None:
    """Get due-date item by ID."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM due_date_items WHERE id = ?", (item_id,)).fetchone()
    return _row_to_record(row) if row else None


def list_due_date_items(
    student_id: str | None = None,
    status: str | None = None,
    category: str | None = None,
    school: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    as_of: date | None = None,
) -> list[DueDateItemRecord]:
    """List due-date items ordered by due date.

    The status filter applies to the derived status. Filtering by school
    drops items that are not tied to a student.
    """
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT d.* FROM due_date_items d"
    if school:
        query += " JOIN students s ON s.id = d.student_id"
        clauses.append("LOWER(TRIM(s.school)) = LOWER(TRIM(?))")
        params.append(school)
    if student_id:
        clauses.append("d.student_id = ?")
        params.append(student_id)
    if category:
        clauses.append("d.category = ?")
        params.append(category)
    if start_date:
        clauses.append("d.due_date >= ?")
        params.append(start_date)
    if end_date:
        clauses.append("d.due_date <= ?")
        params.append(end_date)
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY d.due_date ASC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    records = [_row_to_record(r, as_of) for r in rows]
    if status:
        records = [r for r in records if r.status == status]
    return records


def list_upcoming_due_date_items(
    days: int = 30, school: str | None = None, as_of: date | None = None
) -> list[DueDateItemRecord]:
    """List open items due between today and ``days`` from now."""
    start = as_of or today()
    end = start + timedelta(days=days)
    result = []
    for record in list_due_date_items(school=school, as_of=start):
        due = parse_date(record.due_date)
        if record.status != "completed" and due is not None and start <= due <= end:
            result.append(record)
    return result


def update_due_date_item(record: DueDateItemRecord) -> bool:
    """Write all fields of an existing item."""
    with get_db() as conn:
        changed = update_row(conn, "due_date_items", asdict(record))
    logger.debug("due_date_items.updated", item_id=record.id, status=record.status)
    return changed > 0


def delete_due_date_items(item_ids: list[str]) -> int:
    """Delete items by ID, returning how many were removed."""
    with get_db() as conn:
        deleted = delete_rows(conn, "due_date_items", item_ids)
    logger.info("due_date_items.deleted", count=deleted)
    return deleted


def delete_due_date_item(item_id: str) -> bool:
    """Delete item by ID."""
    return delete_due_date_items([item_id]) > 0
