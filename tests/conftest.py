"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It pins the environment before settings are imported so no developer
.env file or real AI key leaks into the test run.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.pop("LLM_API_KEY", None)
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("JWT_BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from unittest.mock import Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from kaji.adapters.llm.base import AbstractLLMClient, LLMCompletion
from kaji.adapters.rate_limit.in_memory import InMemoryRateLimiter
from kaji.core.app_factory import create_app
from kaji.core.security import create_access_token


class FakeDatabase:
    """Stand-in for ``DatabaseGateway`` returning queued results.

    Every call is recorded as ``(method, query, params)``. ``fetch_one`` and
    ``fetch_all`` pop from their queues; an empty queue yields None / [].
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.one_results: list[Any] = []
        self.all_results: list[list[dict[str, Any]]] = []
        self.execute_results: list[int] = []
        self.healthy = True
        self.closed = False

    async def fetch_one(self, query: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append(("fetch_one", query, dict(params or {})))
        return self.one_results.pop(0) if self.one_results else None

    async def fetch_all(self, query: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        self.calls.append(("fetch_all", query, dict(params or {})))
        return self.all_results.pop(0) if self.all_results else []

    async def execute(self, query: str, params: dict[str, Any] | None = None) -> int:
        self.calls.append(("execute", query, dict(params or {})))
        return self.execute_results.pop(0) if self.execute_results else 1

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["FakeDatabase"]:
        yield self

    async def test_connection(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


class FakeLLM(AbstractLLMClient):
    """Completion client that replays a fixed reply and records prompts."""

    def __init__(self, content: str = "Keep ChromeOS updated.", model: str = "openai/gpt-4o") -> None:
        self.content = content
        self.model = model
        self.calls: list[dict[str, Any]] = []

    async def complete(self, messages, *, temperature=None, max_tokens=None) -> LLMCompletion:
        self.calls.append({"messages": messages, "temperature": temperature, "max_tokens": max_tokens})
        return LLMCompletion(content=self.content, model=self.model)


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1_000.0)


@pytest.fixture
def app(fake_db: FakeDatabase, clock: Mock) -> FastAPI:
    """Application with fake collaborators and a small, clock-driven limiter."""
    application = create_app()
    application.state.database = fake_db
    application.state.rate_limiter = InMemoryRateLimiter(max_requests=100, window_ms=900_000, clock=clock)
    return application


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def bearer(role: str = "user", user_id: str = "11111111-1111-1111-1111-111111111111") -> dict[str, str]:
    token = create_access_token(user_id=user_id, username=f"{role}-account", role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Build an ``Authorization`` header for a signed-in user of the given role."""
    return bearer
