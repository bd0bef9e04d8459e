"""Tests for staff-directory extraction from documents."""

import io
from unittest.mock import MagicMock

import pytest
from docx import Document

from caseload.core.document_parser import (
    MAX_UPLOAD_BYTES,
    DocumentParseError,
    DocumentTooLargeError,
    UnsupportedDocumentError,
    clean_extraction,
    detect_document_type,
    extract_docx_text,
    extract_text,
    parse_document,
)


def _docx_bytes(*paragraphs, table_rows=()):
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for row, values in zip(table.rows, table_rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def mock_llm_client():
    """Mock LLM client returning a fixed extraction."""
    client = MagicMock()
    client.simple_json.return_value = {
        "schoolName": None,
        "people": [
            {
                "name": "Ms. Rivera",
                "type": "teacher",
                "email": "rivera@school.example",
                "phoneNumber": "(555) 123-4567",
                "grade": "3",
            }
        ],
    }
    return client


class TestDetectDocumentType:
    """File type resolution."""

    @pytest.mark.parametrize(
        "filename, content_type, expected",
        [
            ("staff.pdf", None, "pdf"),
            ("upload", "application/pdf", "pdf"),
            ("Staff.DOCX", None, "docx"),
            ("old.doc", None, "doc"),
            (
                None,
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "docx",
            ),
        ],
    )
    def test_known_types(self, filename, content_type, expected):
        assert detect_document_type(filename, content_type) == expected

    def test_unknown_type(self):
        with pytest.raises(UnsupportedDocumentError, match="Only PDF and Word"):
            detect_document_type("notes.txt", "text/plain")


class TestExtractText:
    """Text extraction per format."""

    def test_docx_paragraphs_and_tables(self):
        data = _docx_bytes(
            "Staff Directory", "", table_rows=[("Name", "Email"), ("Ms. Rivera", "r@x.org")]
        )
        text = extract_docx_text(data)

        assert text.splitlines() == ["Staff Directory", "Name | Email", "Ms. Rivera | r@x.org"]

    def test_legacy_doc_is_rejected(self):
        with pytest.raises(UnsupportedDocumentError, match="save the document as .docx"):
            extract_text(b"\xd0\xcf\x11\xe0", "doc")

    def test_corrupt_docx(self):
        with pytest.raises(DocumentParseError, match="Could not open Word document"):
            extract_text(b"not a zip", "docx")

    def test_empty_document(self):
        with pytest.raises(DocumentParseError, match="No text"):
            extract_text(_docx_bytes(), "docx")


class TestCleanExtraction:
    """Normalization of the model's JSON."""

    def test_cleans_people(self):
        parsed = clean_extraction(
            {
                "schoolName": " Lincoln Elementary ",
                "people": [
                    {"name": "Mr. Cho", "type": "principal", "phoneNumber": "555.987.6543"},
                    {"name": "  ", "type": "teacher"},
                    {"name": "Ms. Patel", "type": "case-manager", "email": "null"},
                    "garbage",
                ],
            }
        )

        assert parsed.school_name == "Lincoln Elementary"
        assert [(p.name, p.type) for p in parsed.people] == [
            ("Mr. Cho", "staff"),
            ("Ms. Patel", "case-manager"),
        ]
        assert parsed.people[0].phone_number == "5559876543"
        assert parsed.people[1].email is None

    def test_missing_people(self):
        parsed = clean_extraction({})
        assert parsed.school_name is None
        assert parsed.people == []


class TestParseDocument:
    """End-to-end parsing with a mocked model."""

    def test_parse_docx(self, mock_llm_client):
        data = _docx_bytes("Ms. Rivera, 3rd grade, rivera@school.example")
        parsed = parse_document(
            mock_llm_client, data, "staff.docx", None, school_name=" Lincoln Elementary "
        )

        assert parsed.school_name == "Lincoln Elementary"
        assert parsed.people[0].phone_number == "5551234567"
        prompt = mock_llm_client.simple_json.call_args[0][1]
        assert "Ms. Rivera, 3rd grade" in prompt
        assert "Lincoln Elementary" in prompt

    def test_too_large(self, mock_llm_client):
        with pytest.raises(DocumentTooLargeError):
            parse_document(mock_llm_client, b"x" * (MAX_UPLOAD_BYTES + 1), "a.pdf", None)
        mock_llm_client.simple_json.assert_not_called()
