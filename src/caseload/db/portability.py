"""Whole-database JSON export and legacy JSON import.

The JSON shape is the one the browser app kept in localStorage: one
camelCase array per entity (``students``, ``goals``, ``caseManagers``, ...).
Exports use the same keys, so an export can be imported back.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import MISSING, dataclass, fields
from typing import Any

import structlog

from caseload.db.communications_repository import CommunicationRecord
from caseload.db.database import get_db
from caseload.db.due_date_items_repository import DueDateItemRecord
from caseload.db.evaluations_repository import EvaluationRecord
from caseload.db.goals_repository import GoalRecord
from caseload.db.helpers import camel_to_snake, new_id, now_iso, placeholders, snake_to_camel
from caseload.db.progress_reports_repository import ProgressReportRecord
from caseload.db.scheduled_sessions_repository import ScheduledSessionRecord
from caseload.db.schools_repository import SchoolRecord
from caseload.db.sessions_repository import SessionRecord
from caseload.db.soap_notes_repository import SoapNoteRecord
from caseload.db.staff_repository import CaseManagerRecord, TeacherRecord
from caseload.db.students_repository import StudentRecord
from caseload.db.timesheet_notes_repository import TimesheetNoteRecord

logger = structlog.get_logger(__name__)

# Fields that exist on records but not as table columns
_COMPUTED_FIELDS = {"student_count"}

# Required timestamp fields filled with "now" when a legacy row lacks them
_TIMESTAMP_FIELDS = {"date_created", "date_updated", "date_added", "scheduled_date"}


class LegacyImportError(Exception):
    """Error importing a legacy JSON export."""

    pass


@dataclass(frozen=True)
class TableSpec:
    """How one table maps to a record class and a legacy JSON key."""

    table: str
    key: str
    record_cls: type
    id_prefix: str


# Parents first so foreign keys resolve once re-enabled
TABLE_SPECS: tuple[TableSpec, ...] = (
    TableSpec("schools", "schools", SchoolRecord, "school"),
    TableSpec("teachers", "teachers", TeacherRecord, "teacher"),
    TableSpec("case_managers", "caseManagers", CaseManagerRecord, "case-manager"),
    TableSpec("students", "students", StudentRecord, "student"),
    TableSpec("goals", "goals", GoalRecord, "goal"),
    TableSpec("scheduled_sessions", "scheduledSessions", ScheduledSessionRecord, "scheduled"),
    TableSpec("sessions", "sessions", SessionRecord, "session"),
    TableSpec("evaluations", "evaluations", EvaluationRecord, "evaluation"),
    TableSpec("soap_notes", "soapNotes", SoapNoteRecord, "soap"),
    TableSpec("progress_reports", "progressReports", ProgressReportRecord, "report"),
    TableSpec("due_date_items", "dueDateItems", DueDateItemRecord, "due"),
    TableSpec("communications", "communications", CommunicationRecord, "comm"),
    TableSpec("timesheet_notes", "timesheetNotes", TimesheetNoteRecord, "timesheet"),
)


def _column_fields(spec: TableSpec) -> list[Any]:
    return [f for f in fields(spec.record_cls) if f.name not in _COMPUTED_FIELDS]


def _is_json_field(type_hint: str) -> bool:
    return type_hint.startswith(("list", "dict"))


def _decode_row(spec: TableSpec, row: sqlite3.Row) -> dict[str, Any]:
    """Turn a stored row into a camelCase JSON object."""
    result: dict[str, Any] = {}
    for f in _column_fields(spec):
        value = row[f.name]
        type_hint = str(f.type)
        if value is not None and _is_json_field(type_hint):
            value = json.loads(value)
        elif value is not None and type_hint.startswith("bool"):
            value = bool(value)
        result[snake_to_camel(f.name)] = value
    return result


def _encode_item(spec: TableSpec, item: dict[str, Any], index: int) -> dict[str, Any]:
    """Turn a legacy camelCase object into a column -> value row.

    Raises:
        LegacyImportError: If a required field is missing
    """
    snake_item = {camel_to_snake(k): v for k, v in item.items()}
    row: dict[str, Any] = {}
    for f in _column_fields(spec):
        if f.name in snake_item and snake_item[f.name] is not None:
            value = snake_item[f.name]
        elif f.name == "id":
            value = new_id(spec.id_prefix)
        elif f.name in _TIMESTAMP_FIELDS:
            value = now_iso()
        elif f.default is not MISSING:
            value = f.default
        elif f.default_factory is not MISSING:
            value = f.default_factory()
        else:
            raise LegacyImportError(
                f"{spec.key}[{index}] is missing required field '{snake_to_camel(f.name)}'"
            )

        type_hint = str(f.type)
        if _is_json_field(type_hint):
            value = json.dumps(value) if value is not None else None
        elif type_hint.startswith("bool") and value is not None:
            value = int(bool(value))
        row[f.name] = value
    return row


def export_all() -> dict[str, Any]:
    """Export every table as camelCase JSON arrays plus ``exportDate``."""
    data: dict[str, Any] = {"exportDate": now_iso()}
    with get_db() as conn:
        for spec in TABLE_SPECS:
            rows = conn.execute(f"SELECT * FROM {spec.table}").fetchall()
            data[spec.key] = [_decode_row(spec, r) for r in rows]

    logger.info(
        "export.completed", counts={spec.key: len(data[spec.key]) for spec in TABLE_SPECS}
    )
    return data


def import_legacy_data(data: dict[str, Any], replace: bool = True) -> dict[str, int]:
    """Import a legacy JSON export in a single transaction.

    Foreign keys are disabled for the duration so that rows may arrive in
    any order. Any failure rolls back the whole import.

    Args:
        data: Parsed JSON object keyed by entity (unknown keys are ignored)
        replace: Clear every imported table first; otherwise upsert by id

    Returns:
        Number of rows imported per legacy key

    Raises:
        LegacyImportError: If the payload is malformed or a row is rejected
    """
    if not isinstance(data, dict):
        raise LegacyImportError("Import data must be a JSON object")

    counts: dict[str, int] = {}
    try:
        with get_db(foreign_keys=False) as conn:
            if replace:
                for spec in reversed(TABLE_SPECS):
                    if spec.key in data:
                        conn.execute(f"DELETE FROM {spec.table}")

            for spec in TABLE_SPECS:
                items = data.get(spec.key)
                if items is None:
                    continue
                if not isinstance(items, list):
                    raise LegacyImportError(f"'{spec.key}' must be an array")

                for index, item in enumerate(items):
                    if not isinstance(item, dict):
                        raise LegacyImportError(f"{spec.key}[{index}] must be an object")
                    row = _encode_item(spec, item, index)
                    conn.execute(
                        f"INSERT OR REPLACE INTO {spec.table} ({', '.join(row)}) "
                        f"VALUES ({placeholders(len(row))})",
                        tuple(row.values()),
                    )
                counts[spec.key] = len(items)
    except sqlite3.Error as e:
        raise LegacyImportError(f"Import failed: {e}") from e

    logger.info("legacy_import.completed", replace=replace, counts=counts)
    return counts
