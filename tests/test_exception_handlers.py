"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from kaji.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    ConflictAppError,
    DatabaseAppError,
    LLMAppError,
    NotFoundAppError,
    ValidationAppError,
)
from kaji.core.exception_handlers import GENERIC_SERVER_MESSAGE, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    """Create test client with handlers enabled."""
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="no_fields", message="No fields to update")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Bad Request"
        assert data["code"] == "no_fields"
        assert data["message"] == "No fields to update"
        assert "request_id" in data
        assert "timestamp" in data

    def test_validation_error_includes_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation-details")
        async def test_endpoint():
            raise ValidationAppError(
                code="title_too_long",
                message="Title exceeds maximum length",
                details={"field": "title", "actual_length": 300},
            )

        data = client.get("/test-validation-details").json()

        assert data["details"] == {"field": "title", "actual_length": 300}

    @pytest.mark.parametrize(
        ("error_cls", "expected_status"),
        [
            (AuthenticationAppError, 401),
            (AuthorizationAppError, 403),
            (NotFoundAppError, 404),
            (ConflictAppError, 409),
        ],
    )
    def test_client_errors_map_to_status(self, client, app_with_handlers, error_cls, expected_status):
        @app_with_handlers.get("/test-status")
        async def test_endpoint():
            raise error_cls(code="some_code", message="Specific message")

        response = client.get("/test-status")

        assert response.status_code == expected_status
        assert response.json()["message"] == "Specific message"

    @pytest.mark.parametrize("error_cls", [DatabaseAppError, LLMAppError])
    def test_downstream_errors_are_redacted(self, client, app_with_handlers, error_cls):
        @app_with_handlers.get("/test-downstream")
        async def test_endpoint():
            raise error_cls(code="downstream", message="connection to 10.0.0.5:5432 refused")

        response = client.get("/test-downstream")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal Server Error"
        assert data["message"] == GENERIC_SERVER_MESSAGE
        assert "10.0.0.5" not in response.text


class TestFrameworkErrors:
    def test_unmatched_route_names_path(self, client: TestClient):
        response = client.get("/does/not/exist")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Not Found"
        assert data["message"] == "Route /does/not/exist not found"

    def test_request_validation_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        class Payload(BaseModel):
            message: str = Field(..., min_length=1)

        @app_with_handlers.post("/test-body")
        async def test_endpoint(payload: Payload):
            return payload

        response = client.post("/test-body", json={"message": ""})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "validation_error"
        assert data["message"].startswith("message:")
        assert data["details"]["context"]["errors"][0]["loc"] == ["body", "message"]


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_unexpected_exception_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers

    def test_unexpected_exception_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("database password is hunter2")

        response = client.get("/test-crash")

        assert response.status_code == 500
        assert response.json()["code"] == "internal_server_error"
        assert "hunter2" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        from kaji.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = ValueError("Test error with details")
        response = asyncio.run(general_exception_handler(request, exc))

        response_text = bytes(response.body).decode()
        data = json.loads(response_text)
        assert response.status_code == 500
        assert "Traceback" not in response_text
        assert "ValueError" not in response_text
        assert "Test error" not in data["message"]


class TestErrorHandlerIntegration:
    def test_setup_exception_handlers_registers_handlers(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers

    def test_multiple_handler_setups_does_not_fail(self):
        app = FastAPI()

        setup_exception_handlers(app)
        setup_exception_handlers(app)

        assert AppError in app.exception_handlers
