"""Tests for student, school, goal and session endpoints."""

import pytest

STUDENT_BODY = {
    "name": "Liam Brooks",
    "school": "Oak Ridge Middle",
    "age": 12,
    "grade": "6",
    "concerns": ["fluency"],
    "iepDate": "2024-09-15",
}


@pytest.fixture
def created_student(client):
    """A student created through the API."""
    response = client.post("/api/students", json=STUDENT_BODY)
    assert response.status_code == 201
    return response.json()


class TestStudents:
    """Tests for /api/students."""

    def test_list_empty(self, client):
        response = client.get("/api/students")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_returns_camel_case(self, created_student):
        assert created_student["id"].startswith("student")
        assert created_student["iepDate"] == "2024-09-15"
        assert created_student["status"] == "active"
        assert created_student["archived"] is False
        assert "dateAdded" in created_student
        assert "iep_date" not in created_student

    def test_create_adds_school(self, client, created_student):
        response = client.get("/api/schools/name/oak ridge middle")
        assert response.status_code == 200
        assert response.json()["name"] == "Oak Ridge Middle"

    def test_create_reuses_school_spelling(self, client, created_student):
        response = client.post("/api/students", json={"name": "Ava", "school": "OAK RIDGE MIDDLE"})
        assert response.json()["school"] == "Oak Ridge Middle"

    def test_create_requires_name(self, client):
        response = client.post("/api/students", json={"school": "Oak Ridge Middle"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation failed"
        assert {"field": "name", "message": "Field required"} in data["details"]

    def test_create_requires_school(self, client):
        response = client.post("/api/students", json={"name": "Liam Brooks"})

        assert response.status_code == 400
        assert [d["field"] for d in response.json()["details"]] == ["school"]

    def test_create_rejects_bad_date(self, client):
        response = client.post(
            "/api/students", json={**STUDENT_BODY, "iepDate": "15/09/2024"}
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "iepDate"

    def test_duplicate_id_conflicts(self, client, created_student):
        response = client.post(
            "/api/students", json={**STUDENT_BODY, "id": created_student["id"]}
        )
        assert response.status_code == 409

    def test_get_and_missing(self, client, created_student):
        assert client.get(f"/api/students/{created_student['id']}").status_code == 200

        response = client.get("/api/students/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Student not found"}

    def test_partial_update_keeps_other_fields(self, client, created_student):
        response = client.put(
            f"/api/students/{created_student['id']}", json={"grade": "7"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["grade"] == "7"
        assert data["concerns"] == ["fluency"]
        assert data["iepDate"] == "2024-09-15"

    def test_blank_optional_text_is_stored_as_missing(self, client):
        response = client.post(
            "/api/students", json={"name": "Ann", "school": "Lincoln", "grade": ""}
        )

        assert response.status_code == 201
        assert response.json().get("grade") is None

    def test_explicit_null_clears_optional_text(self, client, created_student):
        response = client.put(
            f"/api/students/{created_student['id']}", json={"grade": None}
        )

        assert response.status_code == 200
        assert response.json().get("grade") is None
        assert response.json()["concerns"] == ["fluency"]

    def test_optional_text_still_length_checked(self, client):
        response = client.post(
            "/api/students", json={"name": "Ann", "school": "Lincoln", "grade": "x" * 21}
        )

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "grade"

    def test_filter_by_school(self, client, created_student):
        client.post("/api/students", json={"name": "Noah", "school": "Pine Elementary"})

        response = client.get("/api/students", params={"school": "Pine Elementary"})
        assert [s["name"] for s in response.json()] == ["Noah"]

    def test_delete(self, client, created_student):
        url = f"/api/students/{created_student['id']}"
        assert client.delete(url).status_code == 204
        assert client.get(url).status_code == 404
        assert client.delete(url).status_code == 404


class TestSchools:
    """Tests for /api/schools."""

    def test_create_uppercases_state(self, client):
        response = client.post("/api/schools", json={"name": "Maple High", "state": "va"})

        assert response.status_code == 201
        assert response.json()["state"] == "VA"

    def test_duplicate_name_returns_existing(self, client):
        first = client.post("/api/schools", json={"name": "Maple High"}).json()
        response = client.post("/api/schools", json={"name": "maple high"})

        assert response.status_code == 200
        assert response.json()["id"] == first["id"]

    def test_school_hours_round_trip(self, client):
        response = client.post(
            "/api/schools",
            json={"name": "Maple High", "schoolHours": {"startHour": 8, "endHour": 15}},
        )
        assert response.json()["schoolHours"] == {"startHour": 8, "endHour": 15}

    def test_list_counts_students(self, client, created_student):
        schools = client.get("/api/schools").json()
        assert schools[0]["studentCount"] == 1

    def test_state_longer_than_two_chars(self, client):
        response = client.post("/api/schools", json={"name": "Maple High", "state": "NCA"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "state"

    def test_invalid_hours(self, client):
        response = client.post(
            "/api/schools",
            json={"name": "Maple High", "schoolHours": {"startHour": 8, "endHour": 30}},
        )
        assert response.status_code == 400


class TestGoals:
    """Tests for /api/goals."""

    def test_create_for_unknown_student(self, client):
        response = client.post(
            "/api/goals", json={"studentId": "ghost", "description": "Say /s/"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == [
            {"field": "studentId", "message": "Student 'ghost' does not exist"}
        ]

    def test_create_and_list(self, client, student):
        response = client.post(
            "/api/goals", json={"studentId": student.id, "description": "Say /s/"}
        )
        assert response.status_code == 201
        assert response.json()["status"] == "in-progress"

        goals = client.get("/api/goals", params={"studentId": student.id}).json()
        assert [g["description"] for g in goals] == ["Say /s/"]

    def test_hierarchy(self, client, student, goal):
        client.post(
            "/api/goals",
            json={
                "id": "goal-2",
                "studentId": student.id,
                "description": "Say /r/ in words",
                "parentGoalId": goal.id,
            },
        )

        data = client.get("/api/goals/hierarchy", params={"studentId": student.id}).json()
        assert [g["id"] for g in data["parentGoals"]] == [goal.id]
        assert [g["id"] for g in data["subGoalsByParent"][goal.id]] == ["goal-2"]
        assert data["orphanGoals"] == []

    def test_bulk_delete(self, client, student, goal):
        response = client.request(
            "DELETE", "/api/goals/bulk", json={"ids": [goal.id, "missing"]}
        )

        assert response.status_code == 200
        assert response.json() == {"deletedCount": 1}

    def test_bulk_delete_needs_ids(self, client):
        response = client.request("DELETE", "/api/goals/bulk", json={"ids": []})
        assert response.status_code == 400


class TestSessions:
    """Tests for /api/sessions."""

    def test_create_with_performance_data(self, client, student, goal):
        response = client.post(
            "/api/sessions",
            json={
                "studentId": student.id,
                "date": "2024-11-01T09:00:00Z",
                "goalsTargeted": [goal.id],
                "performanceData": [
                    {"goalId": goal.id, "accuracy": 75, "cuingLevels": ["verbal"]}
                ],
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["performanceData"][0]["goalId"] == goal.id
        assert data["performanceData"][0]["accuracy"] == 75
        assert data["isDirectServices"] is True

    def test_rejects_bad_cuing_level(self, client, student, goal):
        response = client.post(
            "/api/sessions",
            json={
                "studentId": student.id,
                "date": "2024-11-01",
                "performanceData": [{"goalId": goal.id, "cuingLevels": ["shouting"]}],
            },
        )
        assert response.status_code == 400

    def test_rejects_accuracy_over_100(self, client, student, goal):
        response = client.post(
            "/api/sessions",
            json={
                "studentId": student.id,
                "date": "2024-11-01",
                "performanceData": [{"goalId": goal.id, "accuracy": 120}],
            },
        )
        assert response.status_code == 400

    def test_date_range_filter(self, client, student):
        for day in ("2024-10-01", "2024-11-01", "2024-12-01"):
            client.post("/api/sessions", json={"studentId": student.id, "date": day})

        response = client.get(
            "/api/sessions", params={"startDate": "2024-10-15", "endDate": "2024-11-30"}
        )
        assert [s["date"] for s in response.json()] == ["2024-11-01"]

    def test_deleting_student_removes_sessions(self, client, student):
        client.post("/api/sessions", json={"studentId": student.id, "date": "2024-11-01"})
        client.delete(f"/api/students/{student.id}")

        assert client.get("/api/sessions").json() == []
