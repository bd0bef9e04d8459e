"""Helpers shared by the resource routers."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel

from caseload.config import load_app_config
from caseload.db.students_repository import student_exists
from caseload.llm.client import LLMClient, LLMConfig, LLMError
from caseload.web.errors import ApiValidationError

# Nested models stored as camelCase JSON so stored rows match the wire format
CAMEL_JSON_FIELDS = ("performance_data", "school_hours")


def not_found(label: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def require_student(student_id: str) -> None:
    """Raise a 400 validation error when the student id is unknown."""
    if not student_exists(student_id):
        raise ApiValidationError("studentId", f"Student '{student_id}' does not exist")


def _dump_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, list):
        return [_dump_value(v) for v in value]
    return value


def payload_fields(body: BaseModel, partial: bool = False) -> dict[str, Any]:
    """Snake_case field values of a request body.

    Args:
        body: Validated request model
        partial: Only fields the client actually sent (for PUT)

    Returns:
        Mapping ready for a record constructor or ``merge_changes``
    """
    fields = body.model_fields_set if partial else type(body).model_fields.keys()
    data: dict[str, Any] = {}
    for name in fields:
        value = getattr(body, name)
        data[name] = _dump_value(value) if name in CAMEL_JSON_FIELDS else value
    return data


def build_llm_client(api_key: str | None) -> LLMClient:
    """LLM client for a request, keyed by the request's API key or the environment.

    Raises:
        HTTPException: 400 when no API key is available
    """
    ai_config = load_app_config().ai
    key = api_key or ai_config.get_api_key()
    if not key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Gemini API key is required"
        )
    return LLMClient(LLMConfig.from_app_config(ai_config, api_key=key))


def llm_http_error(error: LLMError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
