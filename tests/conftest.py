"""Shared fixtures: every test gets its own data directory and database."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from caseload.config import clear_config_cache, load_app_config
from caseload.db import init_db
from caseload.db.goals_repository import GoalRecord, insert_goal
from caseload.db.schools_repository import ensure_school
from caseload.db.students_repository import StudentRecord, insert_student

ISOLATED_ENV_VARS = (
    "APP_ENV",
    "NODE_ENV",
    "AUTH_ENABLED",
    "RATE_LIMIT_ENABLED",
    "GEMINI_API_KEY",
    "CORS_ORIGIN",
    "DATABASE_PATH",
    "JWT_SECRET",
)


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point config and database at a fresh temporary data directory."""
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CASELOAD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CASELOAD_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.chdir(tmp_path)
    clear_config_cache()

    init_db(load_app_config().db_path)
    yield tmp_path / "data"
    clear_config_cache()


@pytest.fixture
def client():
    """Test client over a fresh app (auth and rate limiting off)."""
    from caseload.web.api import create_app

    return TestClient(create_app())


@pytest.fixture
def student() -> StudentRecord:
    """An active quarterly-reporting student stored in the database."""
    ensure_school("Lincoln Elementary")
    record = StudentRecord(
        id="student-1",
        name="Emma Carter",
        school="Lincoln Elementary",
        date_added="2024-09-01T00:00:00Z",
        age=8,
        grade="3",
        concerns=["articulation"],
        iep_date="2024-10-01",
        annual_review_date="2025-10-01",
        progress_report_frequency="quarterly",
    )
    insert_student(record)
    return record


@pytest.fixture
def goal(student) -> GoalRecord:
    """An in-progress goal for the sample student."""
    record = GoalRecord(
        id="goal-1",
        student_id=student.id,
        description="Produce /r/ in initial position with 80% accuracy",
        date_created="2024-09-05T00:00:00Z",
        baseline="40%",
        target="80%",
    )
    insert_goal(record)
    return record


@pytest.fixture
def reference_date() -> date:
    return date(2024, 11, 15)
