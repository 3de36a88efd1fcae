"""AI assistant operations built on the completion client.

Prompts are intentionally short and fixed; this module only shapes the
conversation and interprets replies.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from kaji.adapters.llm.base import AbstractLLMClient, ChatTurn, LLMCompletion
from kaji.schemas.reports import ReportValidation

logger = logging.getLogger(__name__)

ASSISTANT_SYSTEM_PROMPT = (
    "You are Kaji, an AI assistant specializing in ChromeOS security research and "
    "vulnerability analysis. Give accurate, detailed answers. If you are unsure, say so "
    "and suggest where to find more information."
)

REPORT_SYSTEM_PROMPT = (
    "You are Kaji, a ChromeOS security expert responsible for validating user reports. "
    'Reply with JSON only: {"isValid": bool, "analysis": str, "confidence": 0.0-1.0}.'
)


def _strip_code_fence(content: str) -> str:
    content = content.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[-1]
        content = content.rsplit("```", 1)[0]
    return content.strip()


class AIService:
    """Chat answers and report triage backed by an ``AbstractLLMClient``."""

    def __init__(self, llm: AbstractLLMClient) -> None:
        self.llm = llm

    async def answer_question(
        self,
        question: str,
        *,
        context: dict[str, Any] | None = None,
        history: list[ChatTurn] | None = None,
    ) -> LLMCompletion:
        """Answer a user question, optionally continuing a conversation.

        Args:
            question: The user's latest message.
            context: Extra structured context (e.g. an exploit row) rendered as JSON.
            history: Prior turns, oldest first, excluding ``question``.

        Raises:
            LLMAppError: If the provider call fails.
        """
        messages: list[ChatTurn] = [{"role": "system", "content": ASSISTANT_SYSTEM_PROMPT}]
        messages.extend(history or [])

        user_content = question
        if context:
            user_content = (
                f"{question}\n\nContext:\n{json.dumps(context, indent=2, default=str)}"
            )
        messages.append({"role": "user", "content": user_content})

        return await self.llm.complete(messages, temperature=0.7)

    async def validate_report(self, report: str, *, exploit_id: str | None = None) -> ReportValidation:
        """Ask the model whether a user report describes a real issue.

        An unparseable reply yields a negative verdict rather than an error.

        Raises:
            LLMAppError: If the provider call fails.
        """
        prompt = f"Report: {report}"
        if exploit_id:
            prompt += f"\nRelated Exploit ID: {exploit_id}"

        completion = await self.llm.complete(
            [
                {"role": "system", "content": REPORT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.4,
        )

        try:
            raw = json.loads(_strip_code_fence(completion.content))
            return ReportValidation(
                is_valid=bool(raw.get("isValid", False)),
                analysis=str(raw.get("analysis", "")),
                confidence=float(raw.get("confidence", 0.0)),
            )
        except (json.JSONDecodeError, AttributeError, TypeError, ValueError, ValidationError):
            logger.warning("ai.report_validation_unparseable", extra={"model": completion.model})
            return ReportValidation()
