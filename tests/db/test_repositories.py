"""Tests for the table repositories and shared helpers."""

import sqlite3
from datetime import date

import pytest

from caseload.db.due_date_items_repository import (
    DueDateItemRecord,
    compute_status,
    insert_due_date_item,
    list_upcoming_due_date_items,
)
from caseload.db.goals_repository import GoalRecord, insert_goal, list_goals
from caseload.db.helpers import (
    camel_to_snake,
    from_json,
    merge_changes,
    parse_date,
    snake_to_camel,
)
from caseload.db.progress_reports_repository import (
    ProgressReportRecord,
    get_progress_report,
    insert_progress_report,
    mark_overdue_reports,
)
from caseload.db.schools_repository import ensure_school, get_school_by_name, list_schools
from caseload.db.sessions_repository import SessionRecord, get_session, insert_session
from caseload.db.students_repository import (
    StudentRecord,
    delete_student,
    get_student,
    insert_student,
    list_students,
)

STAMP = "2024-09-01T00:00:00.000Z"


def _report(report_id: str, student_id: str, due: str, status: str = "scheduled"):
    return ProgressReportRecord(
        id=report_id,
        student_id=student_id,
        report_type="quarterly",
        due_date=due,
        scheduled_date=STAMP,
        period_start="2024-09-01",
        period_end="2024-11-30",
        date_created=STAMP,
        date_updated=STAMP,
        status=status,
    )


class TestHelpers:
    """Tests for the small shared helpers."""

    def test_case_conversion(self):
        assert camel_to_snake("caseManagerId") == "case_manager_id"
        assert snake_to_camel("case_manager_id") == "caseManagerId"

    def test_parse_date_accepts_datetimes(self):
        assert parse_date("2024-10-01T14:30:00Z") == date(2024, 10, 1)
        assert parse_date("not a date") is None
        assert parse_date(None) is None

    def test_from_json_falls_back_on_bad_data(self):
        assert from_json("[1, 2]") == [1, 2]
        assert from_json("{broken") == []
        assert from_json(None, default={}) == {}

    def test_merge_changes_skips_none_for_required_fields(self, student):
        updated = merge_changes(student, {"name": None, "grade": None, "age": 9})

        assert updated.name == student.name
        assert updated.grade is None
        assert updated.age == 9

    def test_merge_changes_never_touches_id(self, student):
        updated = merge_changes(student, {"id": "other", "unknown": 1})
        assert updated.id == student.id


class TestStudents:
    """Tests for the students repository."""

    def test_round_trip_lists_and_flags(self, student):
        stored = get_student(student.id)

        assert stored == student
        assert stored.concerns == ["articulation"]
        assert stored.is_active

    def test_school_filter_ignores_case(self, student):
        assert [s.id for s in list_students(school="lincoln elementary ")] == [student.id]
        assert list_students(school="Other School") == []

    def test_active_only_skips_archived(self, student):
        insert_student(
            StudentRecord(
                id="student-2",
                name="Archived Kid",
                school="Lincoln Elementary",
                date_added=STAMP,
                archived=True,
            )
        )
        ids = [s.id for s in list_students(active_only=True)]
        assert ids == [student.id]

    def test_delete_cascades_to_goals_and_sessions(self, student, goal):
        insert_session(SessionRecord(id="session-1", student_id=student.id, date="2024-10-01"))

        assert delete_student(student.id) is True
        assert list_goals(student_id=student.id) == []
        assert get_session("session-1") is None

    def test_goal_requires_existing_student(self):
        with pytest.raises(sqlite3.IntegrityError):
            insert_goal(
                GoalRecord(id="g", student_id="missing", description="x", date_created=STAMP)
            )


class TestSchools:
    """Tests for the schools repository."""

    def test_ensure_school_matches_case_insensitively(self):
        created = ensure_school("Oak Ridge Middle")
        again = ensure_school("  oak ridge middle ")

        assert again.id == created.id
        assert get_school_by_name("OAK RIDGE MIDDLE").name == "Oak Ridge Middle"

    def test_list_counts_non_archived_students(self, student):
        schools = list_schools()

        assert [s.name for s in schools] == ["Lincoln Elementary"]
        assert schools[0].student_count == 1


class TestDueDateItems:
    """Tests for derived due-date item status."""

    def _item(self, **kwargs):
        base = dict(
            id="due-1",
            title="Medicaid billing",
            due_date="2024-11-10",
            date_created=STAMP,
            date_updated=STAMP,
        )
        base.update(kwargs)
        return DueDateItemRecord(**base)

    def test_status_is_derived_from_due_date(self):
        as_of = date(2024, 11, 15)

        assert compute_status(self._item(), as_of) == "overdue"
        assert compute_status(self._item(due_date="2024-11-20"), as_of) == "pending"
        assert compute_status(self._item(status="completed"), as_of) == "completed"

    def test_upcoming_window(self):
        insert_due_date_item(self._item(id="due-1", due_date="2024-11-16"))
        insert_due_date_item(self._item(id="due-2", due_date="2024-12-30"))
        insert_due_date_item(self._item(id="due-3", due_date="2024-11-01"))

        upcoming = list_upcoming_due_date_items(days=7, as_of=date(2024, 11, 15))
        assert [i.id for i in upcoming] == ["due-1"]


class TestProgressReports:
    """Tests for the overdue sweep."""

    def test_mark_overdue_only_flips_scheduled(self, student):
        insert_progress_report(_report("r-past", student.id, "2024-11-01"))
        insert_progress_report(_report("r-future", student.id, "2024-12-14"))
        insert_progress_report(_report("r-done", student.id, "2024-10-01", status="completed"))

        changed = mark_overdue_reports(as_of=date(2024, 11, 15))

        assert changed == 1
        assert get_progress_report("r-past").status == "overdue"
        assert get_progress_report("r-future").status == "scheduled"
        assert get_progress_report("r-done").status == "completed"
