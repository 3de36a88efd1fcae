from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from kaji.api.deps import AI
from kaji.schemas.chat import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/chat", response_model=ChatResponse)
async def chat(payload: ChatRequest, ai: AI) -> ChatResponse:
    """Ask the security assistant a one-off question.

    Raises:
        LLMAppError: 500 with a generic message when the provider fails.
    """
    completion = await ai.answer_question(payload.message, context=payload.context)
    logger.info(
        "ai.chat_answered",
        extra={"model": completion.model, "response_length": len(completion.content)},
    )
    return ChatResponse(
        response=completion.content,
        timestamp=datetime.now(timezone.utc),
        model=completion.model,
    )
