"""Rate limiting middleware for the HTTP pipeline.

This module wires the rate limiting adapter into the HTTP layer.

Strategy:
- One window per client address, shared across every endpoint.
- Clients without a resolvable address share the ``"unknown"`` bucket.
- X-RateLimit-* headers are set on every response, allowed or not.
- The limiter instance lives on ``app.state`` so each app owns its table.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from kaji.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from kaji.adapters.rate_limit.in_memory import InMemoryRateLimiter
from kaji.core.config import RateLimitSettings

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_KEY = "unknown"


def build_rate_limiter(rate_limit_settings: RateLimitSettings) -> AbstractRateLimiter:
    """Create the limiter described by configuration."""

    return InMemoryRateLimiter(
        max_requests=rate_limit_settings.max_requests,
        window_ms=rate_limit_settings.window_ms,
    )


def client_key(request: Request) -> str:
    """Derive the limiter key from the request's source address."""

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT_KEY


def format_reset(reset_at: float) -> str:
    """Render an epoch timestamp as ISO-8601 UTC with millisecond precision."""

    moment = datetime.fromtimestamp(reset_at, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": format_reset(result.reset_at),
    }


def _rejection_response(result: RateLimitResult) -> JSONResponse:
    retry_after = result.retry_after_seconds or 0
    headers = rate_limit_headers(result)
    headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "Too Many Requests",
            "message": "Rate limit exceeded. Please try again later.",
            "retryAfter": retry_after,
        },
        headers=headers,
    )


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing the per-client request window.

    Rejected requests never reach body parsing or the router.

    Usage:
        app.middleware("http")(rate_limit_middleware)
    """

    limiter: AbstractRateLimiter | None = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return await call_next(request)

    key = client_key(request)
    result = limiter.hit(key)

    if not result.allowed:
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "client": key,
                "path": request.url.path,
                "method": request.method,
                "limit": result.limit,
                "retry_after_s": result.retry_after_seconds,
            },
        )
        return _rejection_response(result)

    response = await call_next(request)
    response.headers.update(rate_limit_headers(result))
    return response
