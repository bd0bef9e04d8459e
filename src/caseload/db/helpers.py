"""Small helpers shared by the repository modules."""

from __future__ import annotations

import json
import re
import sqlite3
import uuid
from dataclasses import fields, replace
from datetime import date, datetime, timezone
from typing import Any, TypeVar

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def new_id(prefix: str) -> str:
    """Generate a new entity id such as ``student-3f2a...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def now_iso() -> str:
    """Current UTC timestamp in ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today() -> date:
    """Current local calendar date."""
    return date.today()


def parse_date(value: str | None) -> date | None:
    """Parse ``YYYY-MM-DD`` or an ISO datetime into a date.

    Returns None for empty or unparseable input.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO datetime (``Z`` suffix allowed), None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def to_json(value: Any) -> str:
    """Serialize a list/dict column."""
    return json.dumps(value if value is not None else [])


def from_json(value: str | None, default: Any = None) -> Any:
    """Deserialize a JSON column, returning ``default`` on bad data."""
    if value is None or value == "":
        return [] if default is None else default
    try:
        return json.loads(value)
    except (TypeError, json.JSONDecodeError):
        return [] if default is None else default


def camel_to_snake(name: str) -> str:
    """``dateAdded`` -> ``date_added``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    """``date_added`` -> ``dateAdded``."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def merge_changes(record: T, changes: dict[str, Any]) -> T:
    """Apply a partial update to a dataclass record.

    ``None`` clears a field only when the field is nullable; for required
    fields it is ignored. Unknown keys are ignored.

    Args:
        record: Stored dataclass record.
        changes: snake_case field -> new value.

    Returns:
        New record with changes applied.
    """
    known = {f.name: f for f in fields(record)}  # type: ignore[arg-type]
    clean: dict[str, Any] = {}
    for key, value in changes.items():
        field_def = known.get(key)
        if field_def is None or key == "id":
            continue
        if value is None and "None" not in str(field_def.type):
            continue
        clean[key] = value
    return replace(record, **clean)  # type: ignore[type-var]


def placeholders(count: int) -> str:
    """``?, ?, ?`` for an IN clause."""
    return ", ".join("?" for _ in range(count))


def insert_row(conn: sqlite3.Connection, table: str, row: dict[str, Any]) -> None:
    """INSERT one row given as column -> value."""
    columns = ", ".join(row)
    conn.execute(
        f"INSERT INTO {table} ({columns}) VALUES ({placeholders(len(row))})",
        tuple(row.values()),
    )


def update_row(conn: sqlite3.Connection, table: str, row: dict[str, Any]) -> int:
    """UPDATE every column of the row identified by ``row["id"]``.

    Returns:
        Number of rows changed (0 when the id does not exist).
    """
    assignments = ", ".join(f"{column} = ?" for column in row if column != "id")
    values = [value for column, value in row.items() if column != "id"]
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ?", (*values, row["id"])
    )
    return cursor.rowcount


def delete_rows(conn: sqlite3.Connection, table: str, ids: list[str]) -> int:
    """DELETE rows by id, returning how many were removed."""
    if not ids:
        return 0
    cursor = conn.execute(
        f"DELETE FROM {table} WHERE id IN ({placeholders(len(ids))})", tuple(ids)
    )
    return cursor.rowcount
