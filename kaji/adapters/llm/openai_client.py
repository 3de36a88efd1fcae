"""OpenAI-compatible chat completion adapter (OpenRouter by default)."""

import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from kaji.adapters.llm.base import AbstractLLMClient, ChatTurn, LLMCompletion
from kaji.core.errors import LLMAppError

logger = logging.getLogger(__name__)


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI-compatible chat completions returning plain text.

    Uses the official OpenAI Python SDK with async support. Pointing
    ``base_url`` at OpenRouter routes the same calls through it.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        default_temperature: float = 0.7,
        default_max_tokens: int = 4000,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            default_headers=default_headers,
        )
        self.model = model
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

    async def complete(
        self,
        messages: list[ChatTurn],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletion:
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.default_temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.default_max_tokens,
            "stream": False,
        }

        try:
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as exc:
            logger.error(
                "llm.request_failed",
                extra={"model": self.model, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise LLMAppError(
                code="ai_request_failed",
                message=f"AI service request failed: {exc}",
            ) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise LLMAppError(code="ai_empty_response", message="AI service returned an empty response")

        usage = response.usage.model_dump() if getattr(response, "usage", None) is not None else {}
        return LLMCompletion(
            content=response.choices[0].message.content.strip(),
            model=getattr(response, "model", None) or self.model,
            usage=usage,
        )
