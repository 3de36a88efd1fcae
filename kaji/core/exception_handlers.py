"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain, framework and unexpected) and return one JSON shape:

    {"error": <reason phrase>, "message": ..., "code": ..., "request_id": ..., "timestamp": ...}

Design:
- AppError subclasses carry their own HTTP status
- Downstream failures (database, AI provider) are redacted for clients
- Unmatched routes fall through to a 404 naming the requested path
- Unexpected Exception -> generic 500 (safety net)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Mapping

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kaji.core.errors import AppError
from kaji.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_SERVER_MESSAGE = "An unexpected error occurred. Please try again later."


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def error_response(
    status_code: int,
    *,
    code: str,
    message: str,
    details: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the uniform JSON error response."""

    content: dict[str, Any] = {
        "error": _reason_phrase(status_code),
        "message": message,
        "code": code,
        "request_id": get_request_id(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        content["details"] = jsonable_encoder(dict(details))

    return JSONResponse(status_code=status_code, content=content, headers=dict(headers or {}))


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors.

    Client faults are logged at warning level. Server faults are logged at
    error level with full detail, and the client only sees a generic message.
    """
    status_code = exc.status_code

    if exc.expose_message:
        logger.warning(
            "app_error_handled",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "status_code": status_code,
                "request_path": request.url.path,
            },
        )
        return error_response(status_code, code=exc.code, message=exc.message, details=exc.details)

    logger.error(
        "downstream_failure",
        extra={
            "error_type": type(exc).__name__,
            "error_code": exc.code,
            "error_message": exc.message,
            "error_details": exc.details,
            "status_code": status_code,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return error_response(status_code, code=exc.code, message=GENERIC_SERVER_MESSAGE)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors, including the unmatched-route fallback."""

    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(
            status.HTTP_404_NOT_FOUND,
            code="route_not_found",
            message=f"Route {request.url.path} not found",
        )

    code = _reason_phrase(exc.status_code).lower().replace(" ", "_")
    message = exc.detail if isinstance(exc.detail, str) else _reason_phrase(exc.status_code)
    return error_response(exc.status_code, code=code, message=message, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Translate request validation failures into 400 responses."""

    errors = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    first = errors[0] if errors else {"loc": [], "msg": "Invalid request"}
    field = ".".join(part for part in first["loc"] if part != "body")
    message = f"{field}: {first['msg']}" if field else first["msg"]

    logger.info(
        "request_validation_failed",
        extra={"request_path": request.url.path, "error_count": len(errors)},
    )
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        code="validation_error",
        message=message,
        details={"context": {"errors": errors}},
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="internal_server_error",
        message=GENERIC_SERVER_MESSAGE,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
