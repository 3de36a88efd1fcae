"""FastAPI dependencies exposing per-application collaborators.

The database gateway and AI client hang off ``app.state``; routes reach them
through these functions so tests can swap them via ``dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from kaji.adapters.database.gateway import DatabaseGateway
from kaji.adapters.llm.base import AbstractLLMClient
from kaji.adapters.llm.factory import create_llm_client
from kaji.core.errors import LLMAppError
from kaji.services.ai_service import AIService

logger = logging.getLogger(__name__)


def get_database(request: Request) -> DatabaseGateway:
    return request.app.state.database


def get_llm_client(request: Request) -> AbstractLLMClient:
    """Return the app's completion client, building it on first use.

    Raises:
        LLMAppError: If the provider is not configured.
    """
    client = getattr(request.app.state, "llm_client", None)
    if client is None:
        client = create_llm_client()
        request.app.state.llm_client = client
    return client


def get_ai_service(llm: Annotated[AbstractLLMClient, Depends(get_llm_client)]) -> AIService:
    return AIService(llm)


def get_optional_ai_service(request: Request) -> AIService | None:
    """Like ``get_ai_service`` but None when no provider is configured."""
    try:
        return AIService(get_llm_client(request))
    except LLMAppError as exc:
        logger.warning("ai.unavailable", extra={"error_code": exc.code})
        return None


Database = Annotated[DatabaseGateway, Depends(get_database)]
AI = Annotated[AIService, Depends(get_ai_service)]
OptionalAI = Annotated[AIService | None, Depends(get_optional_ai_service)]
