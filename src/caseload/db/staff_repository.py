"""Repository functions for the teachers and case_managers tables.

Both tables share the same contact shape; teachers carry a grade and case
managers a role.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import TypeVar

import structlog

from caseload.db.database import get_db
from caseload.db.helpers import delete_rows, insert_row, update_row

logger = structlog.get_logger(__name__)


@dataclass
class TeacherRecord:
    """Classroom teacher contact."""

    id: str
    name: str
    school: str
    date_created: str
    grade: str | None = None
    phone_number: str | None = None
    email_address: str | None = None


@dataclass
class CaseManagerRecord:
    """Special-education case manager contact."""

    id: str
    name: str
    school: str
    date_created: str
    role: str | None = None
    phone_number: str | None = None
    email_address: str | None = None


StaffRecord = TypeVar("StaffRecord", TeacherRecord, CaseManagerRecord)


def _insert(table: str, record: StaffRecord) -> None:
    with get_db() as conn:
        insert_row(conn, table, asdict(record))
    logger.debug(f"{table}.inserted", id=record.id, name=record.name)


def _get(table: str, cls: type[StaffRecord], record_id: str) -> StaffRecord | None:
    with get_db() as conn:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (record_id,)).fetchone()
    return cls(**dict(row)) if row else None


def _list(table: str, cls: type[StaffRecord], school: str | None) -> list[StaffRecord]:
    """List contacts ordered by name.

    The school filter is case-insensitive and also keeps contacts with no
    school recorded.
    """
    query = f"SELECT * FROM {table}"
    params: tuple[str, ...] = ()
    if school:
        query += " WHERE LOWER(TRIM(school)) = LOWER(TRIM(?)) OR school = ''"
        params = (school,)
    query += " ORDER BY name COLLATE NOCASE"

    with get_db() as conn:
        rows: list[sqlite3.Row] = conn.execute(query, params).fetchall()
    return [cls(**dict(r)) for r in rows]


def _update(table: str, record: StaffRecord) -> bool:
    with get_db() as conn:
        changed = update_row(conn, table, asdict(record))
    logger.debug(f"{table}.updated", id=record.id)
    return changed > 0


def _delete(table: str, record_id: str) -> bool:
    with get_db() as conn:
        deleted = delete_rows(conn, table, [record_id])
    if deleted:
        logger.info(f"{table}.deleted", id=record_id)
    return deleted > 0


# =============================================================================
# TEACHERS
# =============================================================================


def insert_teacher(record: TeacherRecord) -> None:
    """Insert a new teacher."""
    _insert("teachers", record)


def get_teacher(teacher_id: str) -> TeacherRecord | None:
    """Get teacher by ID."""
    return _get("teachers", TeacherRecord, teacher_id)


def list_teachers(school: str | None = None) -> list[TeacherRecord]:
    """List teachers, optionally for one school."""
    return _list("teachers", TeacherRecord, school)


def update_teacher(record: TeacherRecord) -> bool:
    """Write all fields of an existing teacher."""
    return _update("teachers", record)


def delete_teacher(teacher_id: str) -> bool:
    """Delete teacher by ID."""
    return _delete("teachers", teacher_id)


# =============================================================================
# CASE MANAGERS
# =============================================================================


def insert_case_manager(record: CaseManagerRecord) -> None:
    """Insert a new case manager."""
    _insert("case_managers", record)


def get_case_manager(case_manager_id: str) -> CaseManagerRecord | None:
    """Get case manager by ID."""
    return _get("case_managers", CaseManagerRecord, case_manager_id)


def list_case_managers(school: str | None = None) -> list[CaseManagerRecord]:
    """List case managers, optionally for one school."""
    return _list("case_managers", CaseManagerRecord, school)


def update_case_manager(record: CaseManagerRecord) -> bool:
    """Write all fields of an existing case manager."""
    return _update("case_managers", record)


def delete_case_manager(case_manager_id: str) -> bool:
    """Delete case manager by ID."""
    return _delete("case_managers", case_manager_id)
