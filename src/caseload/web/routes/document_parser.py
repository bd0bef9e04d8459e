"""Document upload endpoint that extracts staff contacts."""

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status

from caseload.core.document_parser import (
    MAX_UPLOAD_BYTES,
    DocumentParseError,
    DocumentTooLargeError,
    ParsedDocument,
    extract_contacts,
    read_upload_text,
)
from caseload.llm.client import LLMError
from caseload.web.routes import common
from caseload.web.schemas import ParsedDocumentResponse

router = APIRouter(prefix="/api/document-parser", tags=["document-parser"])


@router.post("/parse", response_model=ParsedDocumentResponse)
def parse_uploaded_document(
    document: UploadFile | None = File(default=None),
    api_key: str | None = Form(default=None, alias="apiKey"),
    school_name: str | None = Form(default=None, alias="schoolName"),
) -> ParsedDocument:
    """Extract the school name and staff list from a PDF or Word upload."""
    if document is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    # One byte past the limit is enough to reject without reading everything
    data = document.file.read(MAX_UPLOAD_BYTES + 1)
    try:
        text = read_upload_text(data, document.filename, document.content_type)
    except DocumentTooLargeError as e:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e)
        ) from e
    except DocumentParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    client = common.build_llm_client(api_key)
    try:
        return extract_contacts(client, text, school_name)
    except LLMError as e:
        raise common.llm_http_error(e) from e
