"""Tests for email, AI, document upload and backup endpoints."""

import io
from unittest.mock import MagicMock, patch

import pytest
from docx import Document

from caseload.core.document_parser import MAX_UPLOAD_BYTES
from caseload.llm.client import LLMAuthenticationError, LLMResponse

EMAIL_BODY = {
    "to": "parent@example.com",
    "subject": "Progress update",
    "body": "Emma had a great week.",
    "fromEmail": "slp@school.example",
    "fromName": "Ms. Lee",
    "smtpUser": "slp@school.example",
    "smtpPassword": "app-password",
}


@pytest.fixture
def mock_smtp():
    """Replace smtplib.SMTP inside the mailer."""
    with patch("caseload.core.mailer.smtplib.SMTP") as mock:
        yield mock.return_value


@pytest.fixture
def mock_llm(monkeypatch):
    """Mock LLM client returned for every AI request."""
    client = MagicMock()
    client.simple_chat.return_value = LLMResponse(
        content="Student will sort /r/ picture cards.", model="gemini-test", provider="gemini"
    )
    client.simple_json.return_value = {
        "schoolName": "Lincoln Elementary",
        "people": [{"name": "Ms. Rivera", "type": "teacher", "email": "r@school.example"}],
    }
    monkeypatch.setattr(
        "caseload.web.routes.common.build_llm_client", lambda api_key: client
    )
    return client


class TestEmail:
    """Tests for POST /api/email/send."""

    def test_send(self, client, mock_smtp):
        response = client.post("/api/email/send", json=EMAIL_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["messageId"].endswith("@school.example>")
        mock_smtp.starttls.assert_called_once()
        mock_smtp.login.assert_called_once_with("slp@school.example", "app-password")

    def test_missing_credentials(self, client, mock_smtp):
        response = client.post("/api/email/send", json={**EMAIL_BODY, "smtpPassword": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "SMTP credentials are required"
        mock_smtp.login.assert_not_called()

    def test_invalid_sender(self, client):
        response = client.post("/api/email/send", json={**EMAIL_BODY, "fromEmail": "nope"})
        assert response.status_code == 400

    def test_smtp_failure_is_502(self, client, mock_smtp):
        mock_smtp.login.side_effect = OSError("connection refused")

        response = client.post("/api/email/send", json=EMAIL_BODY)

        assert response.status_code == 502
        assert "connection refused" in response.json()["error"]


class TestAI:
    """Tests for /api/ai (model mocked)."""

    def test_session_plan(self, client, mock_llm, student, goal):
        response = client.post("/api/ai/session-plan", json={"studentId": student.id})

        assert response.status_code == 200
        assert response.json() == {
            "content": "Emma Carter will sort /r/ picture cards.",
            "model": "gemini-test",
        }
        prompt = mock_llm.simple_chat.call_args[0][1]
        assert "Emma Carter" not in prompt

    def test_unknown_student(self, client, mock_llm):
        response = client.post("/api/ai/session-plan", json={"studentId": "ghost"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "studentId"

    def test_student_without_goals(self, client, mock_llm, student):
        response = client.post("/api/ai/progress-note", json={"studentId": student.id})

        assert response.status_code == 400
        mock_llm.simple_chat.assert_not_called()

    def test_treatment_ideas(self, client, mock_llm):
        response = client.post(
            "/api/ai/treatment-ideas", json={"goalArea": "Fluency", "ageRange": "8-10"}
        )
        assert response.status_code == 200

    def test_goal_suggestions_need_area(self, client, mock_llm, student):
        response = client.post(
            "/api/ai/goal-suggestions", json={"studentId": student.id, "goalArea": ""}
        )
        assert response.status_code == 400

    def test_model_error_is_502(self, client, mock_llm, student, goal):
        mock_llm.simple_chat.side_effect = LLMAuthenticationError("Invalid API key", 401)

        response = client.post("/api/ai/session-plan", json={"studentId": student.id})

        assert response.status_code == 502
        assert response.json() == {"error": "Invalid API key"}

    def test_missing_api_key(self, client, student, goal):
        response = client.post("/api/ai/session-plan", json={"studentId": student.id})

        assert response.status_code == 400
        assert response.json() == {"error": "Gemini API key is required"}


def _docx_upload(text):
    document = Document()
    document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestDocumentParser:
    """Tests for POST /api/document-parser/parse."""

    def test_parse_docx(self, client, mock_llm):
        response = client.post(
            "/api/document-parser/parse",
            files={"document": ("staff.docx", _docx_upload("Ms. Rivera, grade 3"))},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["schoolName"] == "Lincoln Elementary"
        assert data["people"][0]["name"] == "Ms. Rivera"

    def test_missing_file(self, client, mock_llm):
        response = client.post("/api/document-parser/parse", data={"schoolName": "Lincoln"})

        assert response.status_code == 400
        assert response.json() == {"error": "No file uploaded"}

    def test_unsupported_type(self, client, mock_llm):
        response = client.post(
            "/api/document-parser/parse",
            files={"document": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400

    def test_too_large(self, client, mock_llm):
        response = client.post(
            "/api/document-parser/parse",
            files={"document": ("big.pdf", b"x" * (MAX_UPLOAD_BYTES + 1), "application/pdf")},
        )

        assert response.status_code == 413
        mock_llm.simple_json.assert_not_called()

    def test_upload_checked_before_api_key(self, client):
        too_large = client.post(
            "/api/document-parser/parse",
            files={"document": ("big.pdf", b"x" * (MAX_UPLOAD_BYTES + 1), "application/pdf")},
        )
        legacy_doc = client.post(
            "/api/document-parser/parse",
            files={"document": ("staff.doc", b"binary", "application/msword")},
        )

        assert too_large.status_code == 413
        assert legacy_doc.status_code == 400
        assert "Legacy .doc" in legacy_doc.json()["error"]

    def test_valid_upload_without_api_key(self, client):
        response = client.post(
            "/api/document-parser/parse",
            files={"document": ("staff.docx", _docx_upload("Ms. Rivera, grade 3"))},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Gemini API key is required"}


class TestBackupEndpoints:
    """Tests for /api/backup."""

    def test_create_list_download(self, client, student):
        created = client.post("/api/backup")
        assert created.status_code == 201
        name = created.json()["name"]

        assert [b["name"] for b in client.get("/api/backup").json()] == [name]

        download = client.get(f"/api/backup/{name}")
        assert download.status_code == 200
        assert download.content.startswith(b"SQLite format 3")

    def test_restore(self, client, student):
        name = client.post("/api/backup").json()["name"]
        client.delete(f"/api/students/{student.id}")

        response = client.post(f"/api/backup/{name}/restore")

        assert response.status_code == 200
        assert response.json()["restored"] == name
        assert client.get(f"/api/students/{student.id}").status_code == 200

    def test_missing_backup(self, client):
        response = client.get("/api/backup/slp-caseload-backup-missing.db")
        assert response.status_code == 404

    def test_invalid_name(self, client):
        assert client.delete("/api/backup/notes.txt").status_code == 400
