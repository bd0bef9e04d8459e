"""Tests for the remaining caseload resource endpoints."""

from datetime import date, timedelta

import pytest

PAST = "2020-01-15"
FUTURE = "2099-01-15"


@pytest.fixture
def session_id(client, student, goal):
    """A logged session with measured performance."""
    response = client.post(
        "/api/sessions",
        json={
            "studentId": student.id,
            "date": "2024-11-04",
            "goalsTargeted": [goal.id],
            "performanceData": [{"goalId": goal.id, "accuracy": 85}],
            "notes": "Worked on /r/ words",
            "selectedSubjectiveStatements": ["Student was cooperative"],
        },
    )
    return response.json()["id"]


class TestTeachersAndCaseManagers:
    """Tests for /api/teachers and /api/case-managers."""

    def test_teacher_crud(self, client):
        created = client.post(
            "/api/teachers",
            json={"name": "Ms. Rivera", "school": "Lincoln Elementary", "grade": "3"},
        )
        assert created.status_code == 201
        teacher_id = created.json()["id"]

        updated = client.put(f"/api/teachers/{teacher_id}", json={"phoneNumber": "555-0100"})
        assert updated.json()["phoneNumber"] == "555-0100"
        assert updated.json()["grade"] == "3"

        assert client.delete(f"/api/teachers/{teacher_id}").status_code == 204
        assert client.get(f"/api/teachers/{teacher_id}").status_code == 404

    def test_teacher_email_is_validated(self, client):
        response = client.post(
            "/api/teachers",
            json={"name": "Ms. Rivera", "school": "Lincoln", "emailAddress": "not-an-email"},
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "emailAddress"

    def test_blank_email_is_treated_as_missing(self, client):
        response = client.post(
            "/api/teachers", json={"name": "Ms. Rivera", "school": "Lincoln", "emailAddress": ""}
        )
        assert response.status_code == 201
        assert response.json()["emailAddress"] is None

    def test_case_manager_create(self, client):
        response = client.post(
            "/api/case-managers",
            json={"name": "Mr. Cho", "role": "EC Teacher", "school": "Lincoln Elementary"},
        )

        assert response.status_code == 201
        assert response.json()["role"] == "EC Teacher"
        assert len(client.get("/api/case-managers").json()) == 1


class TestEvaluations:
    """Tests for /api/evaluations."""

    def test_create_and_update(self, client, student):
        created = client.post(
            "/api/evaluations",
            json={
                "studentId": student.id,
                "evaluationType": "Initial",
                "areasOfConcern": ["articulation"],
                "dueDate": "2024-12-01",
            },
        )
        assert created.status_code == 201
        evaluation = created.json()

        updated = client.put(
            f"/api/evaluations/{evaluation['id']}", json={"qualify": "yes"}
        ).json()
        assert updated["qualify"] == "yes"
        assert updated["areasOfConcern"] == ["articulation"]
        assert updated["dateUpdated"] >= evaluation["dateUpdated"]

    def test_requires_type(self, client, student):
        response = client.post("/api/evaluations", json={"studentId": student.id})
        assert response.status_code == 400


class TestSoapNotes:
    """Tests for /api/soap-notes."""

    def test_generate_draft_without_saving(self, client, session_id):
        response = client.post("/api/soap-notes/generate", json={"sessionId": session_id})

        assert response.status_code == 200
        data = response.json()
        assert data["subjective"].startswith("Student was cooperative")
        assert "Worked on /r/ words" in data["subjective"]
        assert "85% accuracy" in data["objective"]
        assert data["soapNote"] is None
        assert client.get("/api/soap-notes").json() == []

    def test_generate_and_save(self, client, session_id):
        data = client.post(
            "/api/soap-notes/generate", json={"sessionId": session_id, "save": True}
        ).json()

        assert data["soapNote"]["sessionId"] == session_id
        notes = client.get("/api/soap-notes", params={"sessionId": session_id}).json()
        assert [n["id"] for n in notes] == [data["soapNote"]["id"]]

    def test_generate_unknown_session(self, client):
        response = client.post("/api/soap-notes/generate", json={"sessionId": "missing"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "sessionId"

    def test_create_requires_existing_session(self, client, student):
        response = client.post(
            "/api/soap-notes",
            json={"sessionId": "missing", "studentId": student.id, "date": "2024-11-04"},
        )
        assert response.status_code == 400

    def test_subjective_statements(self, client):
        statements = client.get("/api/soap-notes/subjective-statements").json()
        assert statements
        assert all(isinstance(s, str) for s in statements)

    def test_notes_cascade_with_session(self, client, session_id):
        client.post("/api/soap-notes/generate", json={"sessionId": session_id, "save": True})
        client.delete(f"/api/sessions/{session_id}")

        assert client.get("/api/soap-notes").json() == []


class TestProgressReports:
    """Tests for /api/progress-reports."""

    def _create(self, client, student, due_date):
        return client.post(
            "/api/progress-reports",
            json={
                "studentId": student.id,
                "reportType": "quarterly",
                "dueDate": due_date,
                "periodStart": "2024-08-15",
                "periodEnd": "2024-10-31",
            },
        )

    def test_past_due_report_reads_overdue(self, client, student):
        report = self._create(client, student, PAST).json()
        assert report["status"] == "scheduled"

        fetched = client.get(f"/api/progress-reports/{report['id']}").json()
        assert fetched["status"] == "overdue"

    def test_complete_stamps_date(self, client, student):
        report = self._create(client, student, FUTURE).json()

        completed = client.post(
            f"/api/progress-reports/{report['id']}/complete",
            json={"completedDate": "2024-11-10"},
        ).json()

        assert completed["status"] == "completed"
        assert completed["completedDate"] == "2024-11-10"

    def test_update_to_completed_sets_completed_date(self, client, student):
        report = self._create(client, student, FUTURE).json()

        updated = client.put(
            f"/api/progress-reports/{report['id']}", json={"status": "completed"}
        ).json()
        assert updated["completedDate"]

    def test_schedule_auto_for_student(self, client):
        student_id = client.post(
            "/api/students",
            json={
                "name": "Mia Lopez",
                "school": "Lincoln Elementary",
                "progressReportFrequency": "annual",
                "annualReviewDate": FUTURE,
            },
        ).json()["id"]

        first = client.post(
            "/api/progress-reports/schedule-auto", json={"studentId": student_id}
        ).json()
        again = client.post(
            "/api/progress-reports/schedule-auto", json={"studentId": student_id}
        ).json()

        assert first["scheduled"] == 1
        assert first["reports"][0]["reportType"] == "annual"
        assert first["reports"][0]["periodEnd"] == FUTURE
        assert again["scheduled"] == 0

    def test_schedule_auto_needs_target(self, client):
        response = client.post("/api/progress-reports/schedule-auto", json={})
        assert response.status_code == 400

    def test_schedule_auto_unknown_student(self, client):
        response = client.post(
            "/api/progress-reports/schedule-auto", json={"studentId": "ghost"}
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "studentId"

    def test_invalid_status(self, client, student):
        response = client.post(
            "/api/progress-reports",
            json={
                "studentId": student.id,
                "reportType": "quarterly",
                "dueDate": FUTURE,
                "periodStart": "2024-08-15",
                "periodEnd": "2024-10-31",
                "status": "lost",
            },
        )
        assert response.status_code == 400


class TestDueDateItems:
    """Tests for /api/due-date-items."""

    def test_past_due_item_is_overdue(self, client):
        response = client.post("/api/due-date-items", json={"title": "Medicaid log", "dueDate": PAST})

        assert response.status_code == 201
        assert response.json()["status"] == "overdue"

    def test_status_filter_uses_derived_status(self, client):
        client.post("/api/due-date-items", json={"title": "Old", "dueDate": PAST})
        client.post("/api/due-date-items", json={"title": "New", "dueDate": FUTURE})

        overdue = client.get("/api/due-date-items", params={"status": "overdue"}).json()
        assert [i["title"] for i in overdue] == ["Old"]

    def test_reopening_clears_completed_date(self, client):
        item = client.post("/api/due-date-items", json={"title": "Log", "dueDate": FUTURE}).json()

        done = client.post(f"/api/due-date-items/{item['id']}/complete").json()
        assert done["status"] == "completed"
        assert done["completedDate"]

        reopened = client.put(
            f"/api/due-date-items/{item['id']}", json={"status": "pending"}
        ).json()
        assert reopened["status"] == "pending"
        assert reopened["completedDate"] is None

    def test_unknown_student(self, client):
        response = client.post(
            "/api/due-date-items",
            json={"title": "Log", "dueDate": FUTURE, "studentId": "ghost"},
        )
        assert response.status_code == 400

    def test_date_range_filter(self, client):
        client.post("/api/due-date-items", json={"title": "Old", "dueDate": PAST})
        client.post("/api/due-date-items", json={"title": "Far", "dueDate": FUTURE})

        after = client.get("/api/due-date-items", params={"startDate": "2098-01-01"}).json()
        assert [i["title"] for i in after] == ["Far"]

        before = client.get("/api/due-date-items", params={"endDate": "2020-12-31"}).json()
        assert [i["title"] for i in before] == ["Old"]

    def test_school_filter_drops_items_without_student(self, client, student):
        client.post(
            "/api/due-date-items",
            json={"title": "Emma IEP", "dueDate": FUTURE, "studentId": student.id},
        )
        client.post("/api/due-date-items", json={"title": "Staff meeting", "dueDate": FUTURE})

        items = client.get("/api/due-date-items", params={"school": student.school}).json()
        assert [i["title"] for i in items] == ["Emma IEP"]

    def test_upcoming_defaults_to_thirty_days(self, client):
        due = (date.today() + timedelta(days=20)).isoformat()
        client.post("/api/due-date-items", json={"title": "Screening", "dueDate": due})

        upcoming = client.get("/api/due-date-items/upcoming").json()
        assert [i["title"] for i in upcoming] == ["Screening"]

    def test_bulk_delete(self, client):
        ids = [
            client.post("/api/due-date-items", json={"title": t, "dueDate": FUTURE}).json()["id"]
            for t in ("A", "B")
        ]

        response = client.request("DELETE", "/api/due-date-items/bulk", json={"ids": ids})
        assert response.json() == {"deletedCount": 2}


class TestCommunications:
    """Tests for /api/communications."""

    BODY = {
        "contactType": "parent",
        "contactName": "Jordan Carter",
        "subject": "Progress update",
        "body": "Emma is doing well.",
        "method": "email",
    }

    def test_date_defaults_to_now(self, client, student):
        response = client.post("/api/communications", json={**self.BODY, "studentId": student.id})

        assert response.status_code == 201
        assert response.json()["date"]

    def test_invalid_contact_type(self, client):
        response = client.post("/api/communications", json={**self.BODY, "contactType": "aunt"})
        assert response.status_code == 400

    def test_student_delete_keeps_communication(self, client, student):
        created = client.post(
            "/api/communications", json={**self.BODY, "studentId": student.id}
        ).json()
        client.delete(f"/api/students/{student.id}")

        kept = client.get(f"/api/communications/{created['id']}").json()
        assert kept["studentId"] is None


class TestScheduledSessions:
    """Tests for /api/scheduled-sessions."""

    def _create(self, client, student, **overrides):
        body = {
            "id": "sched-1",
            "studentIds": [student.id],
            "startTime": "09:00",
            "duration": 30,
            "dayOfWeek": [1],
            "startDate": "2024-11-01",
        }
        body.update(overrides)
        return client.post("/api/scheduled-sessions", json=body)

    def test_create(self, client, student):
        response = self._create(client, student)

        assert response.status_code == 201
        assert response.json()["recurrencePattern"] == "weekly"

    @pytest.mark.parametrize(
        "overrides",
        [{"startTime": "9am"}, {"dayOfWeek": [7]}, {"studentIds": []}, {"duration": 0}],
    )
    def test_invalid_bodies(self, client, student, overrides):
        assert self._create(client, student, **overrides).status_code == 400

    def test_occurrences(self, client, student):
        self._create(client, student)

        response = client.get(
            "/api/scheduled-sessions/occurrences",
            params={"startDate": "2024-11-01", "endDate": "2024-11-14"},
        )

        assert response.status_code == 200
        occurrences = response.json()
        assert [o["date"] for o in occurrences] == ["2024-11-04", "2024-11-11"]
        assert occurrences[0]["id"] == "sched-1-2024-11-04"
        assert occurrences[0]["endTime"] == "09:30"
        assert occurrences[0]["isLogged"] is False

    def test_occurrences_window_checks(self, client):
        url = "/api/scheduled-sessions/occurrences"

        reversed_window = client.get(url, params={"startDate": "2024-11-14", "endDate": "2024-11-01"})
        assert reversed_window.status_code == 400
        assert reversed_window.json()["details"][0]["field"] == "endDate"

        too_long = client.get(url, params={"startDate": "2024-01-01", "endDate": "2025-06-01"})
        assert too_long.status_code == 400

        missing = client.get(url, params={"startDate": "2024-01-01"})
        assert missing.status_code == 400

    def test_inactive_sessions_are_hidden(self, client, student):
        self._create(client, student)
        client.put("/api/scheduled-sessions/sched-1", json={"active": False})

        assert client.get("/api/scheduled-sessions").json() == []


class TestTimesheetNotes:
    """Tests for /api/timesheet-notes."""

    def test_crud(self, client):
        created = client.post(
            "/api/timesheet-notes", json={"content": "IEP meeting 30 min", "school": "Lincoln"}
        ).json()

        updated = client.put(
            f"/api/timesheet-notes/{created['id']}", json={"dateFor": "2024-11-04"}
        ).json()
        assert updated["dateFor"] == "2024-11-04"
        assert updated["content"] == "IEP meeting 30 min"

        assert client.delete(f"/api/timesheet-notes/{created['id']}").status_code == 204

    def test_empty_content_rejected(self, client):
        assert client.post("/api/timesheet-notes", json={"content": ""}).status_code == 400


class TestRemindersAndExport:
    """Tests for /api/reminders and /api/export."""

    def test_no_goals_reminder(self, client, student):
        reminders = client.get("/api/reminders").json()
        no_goals = [r for r in reminders if r["type"] == "no-goals"]

        assert no_goals[0]["studentId"] == student.id
        assert no_goals[0]["priority"] == "low"

    def test_export_then_import(self, client, student, goal):
        exported = client.get("/api/export/all").json()
        assert "exportDate" in exported
        assert [s["id"] for s in exported["students"]] == [student.id]

        client.delete(f"/api/students/{student.id}")
        response = client.post("/api/export/import", json={"data": exported})

        assert response.status_code == 200
        assert response.json()["counts"]["students"] == 1
        assert client.get(f"/api/goals/{goal.id}").status_code == 200

    def test_import_rejects_bad_payload(self, client):
        response = client.post("/api/export/import", json={"data": {"students": "nope"}})

        assert response.status_code == 400
        assert response.json()["error"] == "'students' must be an array"
