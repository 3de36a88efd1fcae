"""Pydantic schemas for the AI chat proxy and chat sessions."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=8000)
    context: dict[str, Any] | None = None


class ChatResponse(BaseModel):
    response: str
    timestamp: datetime
    model: str


class SessionCreate(BaseModel):
    session_name: str | None = Field(None, max_length=255)


class SuggestionsRequest(BaseModel):
    query: str | None = None
    context: dict[str, Any] | None = None


class SuggestionsResponse(BaseModel):
    suggestions: list[str]


class SessionExchange(BaseModel):
    """The stored user message and the assistant's stored reply."""

    user_message: dict[str, Any]
    ai_message: dict[str, Any]
