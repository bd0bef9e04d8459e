"""Staff-directory extraction from uploaded school documents.

Pulls text out of a PDF (PyMuPDF) or Word .docx (python-docx) file and asks
the LLM to list the teachers, case managers and other staff it mentions.
"""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from typing import Any

import fitz  # pymupdf
import structlog
from docx import Document

from caseload.llm.client import LLMClient
from caseload.prompts.registry import get_prompt

logger = structlog.get_logger(__name__)

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
# Keep prompts well inside model context windows
MAX_DOCUMENT_CHARS = 60_000

PDF_MIME = "application/pdf"
DOC_MIME = "application/msword"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ALLOWED_MIME_TYPES = (PDF_MIME, DOC_MIME, DOCX_MIME)

PERSON_TYPES = ("teacher", "case-manager", "staff")


class DocumentParseError(Exception):
    """Error extracting or interpreting an uploaded document."""

    pass


class UnsupportedDocumentError(DocumentParseError):
    """The file type cannot be processed."""

    pass


class DocumentTooLargeError(DocumentParseError):
    """The upload exceeds the size limit."""

    pass


@dataclass
class ExtractedPerson:
    """A staff member found in a document."""

    name: str
    type: str = "staff"
    email: str | None = None
    phone_number: str | None = None
    grade: str | None = None
    role: str | None = None


@dataclass
class ParsedDocument:
    """Result of parsing one document."""

    school_name: str | None
    people: list[ExtractedPerson] = field(default_factory=list)


def detect_document_type(filename: str | None, content_type: str | None) -> str:
    """Resolve the upload to ``pdf``, ``docx`` or ``doc``.

    Raises:
        UnsupportedDocumentError: For anything else
    """
    name = (filename or "").lower()
    if content_type == PDF_MIME or name.endswith(".pdf"):
        return "pdf"
    if content_type == DOCX_MIME or name.endswith(".docx"):
        return "docx"
    if content_type == DOC_MIME or name.endswith(".doc"):
        return "doc"
    raise UnsupportedDocumentError(
        "Invalid file type. Only PDF and Word documents are allowed."
    )


def extract_pdf_text(data: bytes) -> str:
    """Extract text from all pages of a PDF.

    Raises:
        DocumentParseError: If the PDF cannot be opened
    """
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except Exception as e:
        raise DocumentParseError(f"Could not open PDF: {e}") from e

    try:
        pages = [page.get_text("text") for page in doc]
    finally:
        doc.close()
    return "\n".join(pages).strip()


def extract_docx_text(data: bytes) -> str:
    """Extract paragraph and table text from a .docx file.

    Raises:
        DocumentParseError: If the file is not a valid .docx
    """
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        raise DocumentParseError(f"Could not open Word document: {e}") from e

    lines = [p.text for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines).strip()


def extract_text(data: bytes, doc_type: str) -> str:
    """Extract plain text for a resolved document type.

    Raises:
        UnsupportedDocumentError: For legacy .doc files
        DocumentParseError: If no text could be extracted
    """
    if doc_type == "pdf":
        text = extract_pdf_text(data)
    elif doc_type == "docx":
        text = extract_docx_text(data)
    else:
        raise UnsupportedDocumentError(
            "Legacy .doc files cannot be read. Please save the document as .docx or PDF."
        )

    if not text:
        raise DocumentParseError("No text could be extracted from the document")
    return text


def _clean_phone(value: Any) -> str | None:
    if not value:
        return None
    digits = re.sub(r"\D", "", str(value))
    return digits or None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text and text.lower() != "null" else None


def clean_extraction(payload: dict[str, Any]) -> ParsedDocument:
    """Normalize the model's JSON into a ParsedDocument.

    People without a name are dropped, phone numbers are reduced to digits
    and unknown person types become ``staff``.
    """
    people = []
    for raw in payload.get("people") or []:
        if not isinstance(raw, dict):
            continue
        name = _clean_text(raw.get("name"))
        if not name:
            continue
        person_type = _clean_text(raw.get("type")) or "staff"
        people.append(
            ExtractedPerson(
                name=name,
                type=person_type if person_type in PERSON_TYPES else "staff",
                email=_clean_text(raw.get("email")),
                phone_number=_clean_phone(raw.get("phoneNumber")),
                grade=_clean_text(raw.get("grade")),
                role=_clean_text(raw.get("role")),
            )
        )
    return ParsedDocument(school_name=_clean_text(payload.get("schoolName")), people=people)


def read_upload_text(
    data: bytes, filename: str | None, content_type: str | None
) -> str:
    """Validate an upload and return its text, capped for the prompt.

    Raises:
        DocumentParseError: If the file is too large, unsupported or unreadable
    """
    if len(data) > MAX_UPLOAD_BYTES:
        raise DocumentTooLargeError("File too large. Maximum size is 10MB.")

    doc_type = detect_document_type(filename, content_type)
    text = extract_text(data, doc_type)
    logger.debug("document_parser.text_extracted", doc_type=doc_type, chars=len(text))
    return text[:MAX_DOCUMENT_CHARS]


def extract_contacts(
    client: LLMClient, text: str, school_name: str | None = None
) -> ParsedDocument:
    """Ask the model for the school name and staff listed in ``text``.

    Raises:
        LLMError: If the model call fails
    """
    school_hint = (
        f"The document belongs to the school: {school_name.strip()}\n"
        if school_name and school_name.strip()
        else ""
    )
    prompt = get_prompt(
        "documents/extract_contacts", school_hint=school_hint, document_text=text
    )

    payload = client.simple_json(
        "You extract structured contact data and reply with JSON only.",
        prompt,
        temperature=0.1,
        action="parse document",
    )

    result = clean_extraction(payload)
    if result.school_name is None and school_name:
        result.school_name = school_name.strip()

    logger.info("document_parser.parsed", chars=len(text), people=len(result.people))
    return result


def parse_document(
    client: LLMClient,
    data: bytes,
    filename: str | None,
    content_type: str | None,
    school_name: str | None = None,
) -> ParsedDocument:
    """Extract staff contacts from an uploaded document.

    Args:
        client: LLM client to interpret the text
        data: Raw file bytes
        filename: Original file name (used for type detection)
        content_type: MIME type reported by the upload
        school_name: School the document is known to belong to

    Returns:
        ParsedDocument with the school name and people found

    Raises:
        DocumentParseError: If the file is too large, unsupported or unreadable
        LLMError: If the model call fails
    """
    text = read_upload_text(data, filename, content_type)
    return extract_contacts(client, text, school_name)
