"""SQLite database connection and schema management.

Provides connection management and schema initialization for the caseload
database. One file holds every table; list-valued columns are JSON text.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("data/slp-caseload.db")

# Current database path (module-level, set by init_db)
_db_path: Path | None = None

# Tables in dependency order (parents first)
TABLES = (
    "schools",
    "teachers",
    "case_managers",
    "students",
    "goals",
    "scheduled_sessions",
    "sessions",
    "evaluations",
    "soap_notes",
    "progress_reports",
    "due_date_items",
    "communications",
    "timesheet_notes",
)


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to data/slp-caseload.db
    """
    global _db_path
    _db_path = Path(db_path) if db_path else DEFAULT_DB_PATH

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


def get_db_path() -> Path:
    """Return the path of the active database file."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db(foreign_keys: bool = True) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    The connection commits when the block exits cleanly and rolls back on
    any exception, so a block is one transaction.

    Args:
        foreign_keys: Enforce foreign keys (disabled only for bulk imports).

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM students").fetchall()
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA foreign_keys = {'ON' if foreign_keys else 'OFF'}")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS schools (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL UNIQUE COLLATE NOCASE,
            state TEXT NOT NULL DEFAULT 'NC',
            teletherapy INTEGER NOT NULL DEFAULT 0,
            date_created TEXT NOT NULL,
            school_hours TEXT
        );

        CREATE TABLE IF NOT EXISTS teachers (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            grade TEXT,
            school TEXT NOT NULL,
            phone_number TEXT,
            email_address TEXT,
            date_created TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS case_managers (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            role TEXT,
            school TEXT NOT NULL,
            phone_number TEXT,
            email_address TEXT,
            date_created TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS students (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            age INTEGER,
            grade TEXT,
            concerns TEXT NOT NULL DEFAULT '[]',
            exceptionality TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'active'
                CHECK(status IN ('active', 'discharged')),
            date_added TEXT NOT NULL,
            archived INTEGER NOT NULL DEFAULT 0,
            date_archived TEXT,
            school TEXT NOT NULL,
            teacher_id TEXT,
            case_manager_id TEXT,
            iep_date TEXT,
            annual_review_date TEXT,
            progress_report_frequency TEXT
                CHECK(progress_report_frequency IN ('quarterly', 'annual')),
            frequency_per_week INTEGER,
            frequency_type TEXT
                CHECK(frequency_type IN ('per-week', 'per-month'))
        );

        CREATE TABLE IF NOT EXISTS goals (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            description TEXT NOT NULL,
            baseline TEXT NOT NULL DEFAULT '',
            target TEXT NOT NULL DEFAULT '',
            status TEXT NOT NULL DEFAULT 'in-progress'
                CHECK(status IN ('in-progress', 'achieved', 'modified')),
            date_created TEXT NOT NULL,
            date_achieved TEXT,
            parent_goal_id TEXT,
            sub_goal_ids TEXT NOT NULL DEFAULT '[]',
            domain TEXT,
            priority TEXT CHECK(priority IN ('high', 'medium', 'low')),
            template_id TEXT,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS scheduled_sessions (
            id TEXT PRIMARY KEY,
            student_ids TEXT NOT NULL DEFAULT '[]',
            start_time TEXT NOT NULL,
            end_time TEXT,
            duration INTEGER,
            day_of_week TEXT NOT NULL DEFAULT '[]',
            specific_dates TEXT NOT NULL DEFAULT '[]',
            recurrence_pattern TEXT NOT NULL DEFAULT 'weekly'
                CHECK(recurrence_pattern IN ('weekly', 'daily', 'specific-dates', 'none')),
            start_date TEXT NOT NULL,
            end_date TEXT,
            goals_targeted TEXT NOT NULL DEFAULT '[]',
            notes TEXT,
            is_direct_services INTEGER NOT NULL DEFAULT 1,
            active INTEGER NOT NULL DEFAULT 1,
            cancelled_dates TEXT NOT NULL DEFAULT '[]',
            date_created TEXT NOT NULL,
            date_updated TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            date TEXT NOT NULL,
            end_time TEXT,
            goals_targeted TEXT NOT NULL DEFAULT '[]',
            activities_used TEXT NOT NULL DEFAULT '[]',
            performance_data TEXT NOT NULL DEFAULT '[]',
            notes TEXT NOT NULL DEFAULT '',
            is_direct_services INTEGER NOT NULL DEFAULT 1,
            indirect_services_notes TEXT,
            group_session_id TEXT,
            missed_session INTEGER NOT NULL DEFAULT 0,
            selected_subjective_statements TEXT NOT NULL DEFAULT '[]',
            custom_subjective TEXT,
            plan TEXT,
            scheduled_session_id TEXT,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS evaluations (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            grade TEXT NOT NULL DEFAULT '',
            evaluation_type TEXT NOT NULL,
            areas_of_concern TEXT NOT NULL DEFAULT '[]',
            teacher TEXT,
            results_of_screening TEXT,
            due_date TEXT,
            assessments TEXT,
            qualify TEXT,
            report_completed TEXT,
            iep_completed TEXT,
            meeting_date TEXT,
            date_created TEXT NOT NULL,
            date_updated TEXT NOT NULL,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS soap_notes (
            id TEXT PRIMARY KEY,
            session_id TEXT NOT NULL,
            student_id TEXT NOT NULL,
            date TEXT NOT NULL,
            template_id TEXT,
            subjective TEXT NOT NULL DEFAULT '',
            objective TEXT NOT NULL DEFAULT '',
            assessment TEXT NOT NULL DEFAULT '',
            plan TEXT NOT NULL DEFAULT '',
            date_created TEXT NOT NULL,
            date_updated TEXT NOT NULL,
            FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS progress_reports (
            id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            report_type TEXT NOT NULL CHECK(report_type IN ('quarterly', 'annual')),
            due_date TEXT NOT NULL,
            scheduled_date TEXT NOT NULL,
            period_start TEXT NOT NULL,
            period_end TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'scheduled'
                CHECK(status IN ('scheduled', 'in-progress', 'completed', 'overdue')),
            completed_date TEXT,
            template_id TEXT,
            content TEXT,
            date_created TEXT NOT NULL,
            date_updated TEXT NOT NULL,
            custom_due_date TEXT,
            reminder_sent INTEGER NOT NULL DEFAULT 0,
            reminder_sent_date TEXT,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS due_date_items (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            due_date TEXT NOT NULL,
            student_id TEXT,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'completed', 'overdue')),
            completed_date TEXT,
            category TEXT,
            priority TEXT CHECK(priority IN ('high', 'medium', 'low')),
            date_created TEXT NOT NULL,
            date_updated TEXT NOT NULL,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS communications (
            id TEXT PRIMARY KEY,
            student_id TEXT,
            contact_type TEXT NOT NULL
                CHECK(contact_type IN ('teacher', 'parent', 'case-manager')),
            contact_id TEXT,
            contact_name TEXT NOT NULL,
            contact_email TEXT,
            subject TEXT NOT NULL,
            body TEXT NOT NULL,
            method TEXT NOT NULL CHECK(method IN ('email', 'phone', 'in-person', 'other')),
            date TEXT NOT NULL,
            session_id TEXT,
            related_to TEXT,
            date_created TEXT NOT NULL,
            FOREIGN KEY (student_id) REFERENCES students(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS timesheet_notes (
            id TEXT PRIMARY KEY,
            content TEXT NOT NULL,
            date_created TEXT NOT NULL,
            date_for TEXT,
            school TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_students_school ON students(school);
        CREATE INDEX IF NOT EXISTS idx_goals_student ON goals(student_id);
        CREATE INDEX IF NOT EXISTS idx_sessions_student ON sessions(student_id);
        CREATE INDEX IF NOT EXISTS idx_sessions_date ON sessions(date);
        CREATE INDEX IF NOT EXISTS idx_evaluations_student ON evaluations(student_id);
        CREATE INDEX IF NOT EXISTS idx_soap_notes_session ON soap_notes(session_id);
        CREATE INDEX IF NOT EXISTS idx_progress_reports_student ON progress_reports(student_id);
        CREATE INDEX IF NOT EXISTS idx_progress_reports_due ON progress_reports(due_date);
        CREATE INDEX IF NOT EXISTS idx_due_date_items_due ON due_date_items(due_date);
        CREATE INDEX IF NOT EXISTS idx_communications_student ON communications(student_id);
        """
    )
