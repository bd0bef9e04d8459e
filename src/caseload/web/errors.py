"""Exception handlers that render every error as ``{"error": ...}``."""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from caseload.config import load_app_config

logger = structlog.get_logger(__name__)

_LOCATION_PREFIXES = ("body", "query", "path", "form")


class ApiValidationError(Exception):
    """Validation failure detected inside a handler (e.g. unknown studentId)."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def validation_response(details: list[dict[str, str]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = list(loc)
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(str(p) for p in parts) or "body"


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info("request.validation_failed", path=request.url.path, errors=len(details))
    return validation_response(details)


async def _handle_api_validation(request: Request, exc: ApiValidationError) -> JSONResponse:
    return validation_response([{"field": exc.field, "message": exc.message}])


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(
        status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None)
    )


async def _handle_integrity_error(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.info("request.integrity_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "Record conflicts with existing data", "message": str(exc)},
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "request.unhandled_error",
        method=request.method,
        path=request.url.path,
        error=str(exc),
    )
    content: dict[str, str] = {"error": "Internal server error"}
    if not load_app_config().is_production:
        content["message"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to an app."""
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(ApiValidationError, _handle_api_validation)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(sqlite3.IntegrityError, _handle_integrity_error)
    app.add_exception_handler(Exception, _handle_unexpected)
