"""HTTP middleware for the request/response pipeline.

Contains the cross-cutting layers that wrap every endpoint:
- request id propagation and per-request access logging
- security headers
- request body size enforcement
- a last-resort translation of unhandled exceptions into the JSON 500 body

The rate limiter lives in ``kaji.core.rate_limit``; the ordering of all layers
is fixed in ``kaji.core.app_factory``.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import HTTPException, Request, Response, status
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from kaji.core.exception_handlers import error_response, general_exception_handler
from kaji.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is stored in contextvars for log correlation and echoed
    back on the response together with the total duration.

    Side Effects:
        - Logs one ``request.incoming`` line per request
        - Adds X-Request-ID and X-Request-Duration-ms headers to the response
    """

    header_name = request.app.state.settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    logger.info(
        "request.incoming",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent"),
        },
    )
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add standard security headers to every response.

    HSTS is only sent when running with APP_ENVIRONMENT=production.
    """

    response = await call_next(request)
    headers = response.headers

    headers.setdefault("X-Content-Type-Options", "nosniff")
    headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    headers.setdefault("X-DNS-Prefetch-Control", "off")
    headers.setdefault("Referrer-Policy", "no-referrer")
    headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
    headers.setdefault(
        "Content-Security-Policy",
        "default-src 'self'; base-uri 'self'; frame-ancestors 'self'; object-src 'none'",
    )

    if request.app.state.settings.app.environment == "production":
        headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")

    return response


async def unhandled_exception_middleware(request: Request, call_next) -> Response:
    """Turn exceptions no handler claimed into the uniform 500 response.

    Registered innermost so the outer layers still decorate the 500 with
    request id, security, CORS and rate limit headers.
    """

    try:
        return await call_next(request)
    except Exception as exc:
        return await general_exception_handler(request, exc)


def _too_large_detail(max_body_bytes: int) -> str:
    return f"Request body exceeds the {max_body_bytes // (1024 * 1024)}MB limit"


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_bytes``.

    A declared Content-Length over the limit is answered with 413 before the
    app sees the request. Bodies without a length (chunked uploads) are
    counted while streamed; crossing the limit aborts body parsing with 413.
    """

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                declared = int(content_length)
            except ValueError:
                response = error_response(
                    status.HTTP_400_BAD_REQUEST,
                    code="invalid_content_length",
                    message="Content-Length header must be an integer",
                )
                await response(scope, receive, send)
                return

            if declared > self.max_body_bytes:
                logger.warning(
                    "request.body_too_large",
                    extra={
                        "declared_bytes": declared,
                        "max_bytes": self.max_body_bytes,
                        "path": scope.get("path"),
                    },
                )
                response = error_response(
                    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                    code="payload_too_large",
                    message=_too_large_detail(self.max_body_bytes),
                    details={"max_bytes": self.max_body_bytes},
                )
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.warning(
                        "request.body_too_large",
                        extra={
                            "received_bytes": received,
                            "max_bytes": self.max_body_bytes,
                            "path": scope.get("path"),
                        },
                    )
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=_too_large_detail(self.max_body_bytes),
                    )
            return message

        await self.app(scope, limited_receive, send)
