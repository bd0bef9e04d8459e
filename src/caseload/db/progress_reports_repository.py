"""Repository functions for the progress_reports table."""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, today, update_row

logger = structlog.get_logger(__name__)

REPORT_STATUSES = ("scheduled", "in-progress", "completed", "overdue")


@dataclass
class ProgressReportRecord:
    """Quarterly or annual progress report due for a student."""

    id: str
    student_id: str
    report_type: str
    due_date: str
    scheduled_date: str
    period_start: str
    period_end: str
    date_created: str
    date_updated: str
    status: str = "scheduled"
    completed_date: str | None = None
    template_id: str | None = None
    content: str | None = None
    custom_due_date: str | None = None
    reminder_sent: bool = False
    reminder_sent_date: str | None = None


def _row_to_record(row: sqlite3.Row) -> ProgressReportRecord:
    """Convert database row to ProgressReportRecord."""
    data = dict(row)
    data["reminder_sent"] = bool(data["reminder_sent"])
    return ProgressReportRecord(**data)


def _record_to_row(record: ProgressReportRecord) -> dict[str, Any]:
    row = asdict(record)
    row["reminder_sent"] = int(record.reminder_sent)
    return row


def insert_progress_report(record: ProgressReportRecord) -> None:
    """Insert a new progress report."""
    with get_db() as conn:
        insert_row(conn, "progress_reports", _record_to_row(record))
    logger.debug(
        "progress_reports.inserted",
        report_id=record.id,
        student_id=record.student_id,
        report_type=record.report_type,
        due_date=record.due_date,
    )


def get_progress_report(report_id: str) -> ProgressReportRecord | None:
    """Get progress report by ID."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM progress_reports WHERE id = ?", (report_id,)
        ).fetchone()
    return _row_to_record(row) if row else None


def find_progress_report(
    student_id: str, period_start: str, period_end: str, report_type: str
) -> ProgressReportRecord | None:
    """Find the report covering exactly this period, if one was scheduled."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT * FROM progress_reports
            WHERE student_id = ? AND period_start = ? AND period_end = ? AND report_type = ?
            """,
            (student_id, period_start, period_end, report_type),
        ).fetchone()
    return _row_to_record(row) if row else None


def list_progress_reports(
    student_id: str | None = None,
    school: str | None = None,
    status: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[ProgressReportRecord]:
    """List progress reports ordered by due date (soonest first).

    Args:
        student_id: Only this student's reports
        school: Only reports of students at this school
        status: Only reports in this status
        start_date: Inclusive lower bound on due date
        end_date: Inclusive upper bound on due date

    Returns:
        Matching reports
    """
    clauses: list[str] = []
    params: list[Any] = []
    query = "SELECT pr.* FROM progress_reports pr"
    if school:
        query += " JOIN students s ON s.id = pr.student_id"
        clauses.append("LOWER(TRIM(s.school)) = LOWER(TRIM(?))")
        params.append(school)
    if student_id:
        clauses.append("pr.student_id = ?")
        params.append(student_id)
    if status:
        clauses.append("pr.status = ?")
        params.append(status)
    if start_date:
        clauses.append("pr.due_date >= ?")
        params.append(start_date[:10])
    if end_date:
        clauses.append("substr(pr.due_date, 1, 10) <= ?")
        params.append(end_date[:10])
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY pr.due_date ASC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_record(r) for r in rows]


def list_upcoming_progress_reports(
    days: int = 30, school: str | None = None, as_of: date | None = None
) -> list[ProgressReportRecord]:
    """List non-completed reports due between today and ``days`` from now."""
    start = as_of or today()
    end = start + timedelta(days=days)
    reports = list_progress_reports(
        school=school, start_date=start.isoformat(), end_date=end.isoformat()
    )
    return [r for r in reports if r.status != "completed"]


def update_progress_report(record: ProgressReportRecord) -> bool:
    """Write all fields of an existing progress report."""
    with get_db() as conn:
        changed = update_row(conn, "progress_reports", _record_to_row(record))
    logger.debug("progress_reports.updated", report_id=record.id, status=record.status)
    return changed > 0


def delete_progress_reports(report_ids: list[str]) -> int:
    """Delete progress reports by ID, returning how many were removed."""
    with get_db() as conn:
        deleted = delete_rows(conn, "progress_reports", report_ids)
    logger.info("progress_reports.deleted", count=deleted)
    return deleted


def delete_progress_report(report_id: str) -> bool:
    """Delete progress report by ID."""
    return delete_progress_reports([report_id]) > 0


def mark_overdue_reports(as_of: date | None = None) -> int:
    """Flip scheduled reports whose due date has passed to ``overdue``.

    Args:
        as_of: Reference date (defaults to today)

    Returns:
        Number of reports updated
    """
    reference = (as_of or today()).isoformat()
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE progress_reports SET status = 'overdue'
            WHERE status = 'scheduled' AND substr(due_date, 1, 10) < ?
            """,
            (reference,),
        )
    if cursor.rowcount:
        logger.info("progress_reports.marked_overdue", count=cursor.rowcount)
    return cursor.rowcount
