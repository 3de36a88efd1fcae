"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses. Each subclass carries
the HTTP status it maps to so the exception handlers stay table-free.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    field: str
    hint: str
    min_length: int
    actual_length: int
    resource: str
    resource_id: str
    max_bytes: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400
    # Downstream failures hide their message from clients
    expose_message: ClassVar[bool] = True

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401


class AuthorizationAppError(AppError):
    """Raised when an authenticated user lacks the required role."""

    status_code = 403


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class ConflictAppError(AppError):
    """Raised when a write would violate a uniqueness rule."""

    status_code = 409


class DatabaseAppError(AppError):
    """Raised when the database gateway fails."""

    status_code = 500
    expose_message = False


class LLMAppError(AppError):
    """Raised when the AI completion provider fails."""

    status_code = 500
    expose_message = False
