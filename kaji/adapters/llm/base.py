from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict


class ChatTurn(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class LLMCompletion:
    """Text returned by the completion provider plus bookkeeping."""

    content: str
    model: str
    usage: dict[str, Any] = field(default_factory=dict)


class AbstractLLMClient(ABC):
    """Interface for chat completion clients."""

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatTurn],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMCompletion:
        """Send a conversation to the model and return its reply.

        Args:
            messages: Ordered chat turns, system prompt first.
            temperature: Sampling temperature; provider default when None.
            max_tokens: Completion token cap; provider default when None.

        Returns:
            LLMCompletion with the reply text.

        Raises:
            LLMAppError: If the provider call fails or returns no content.
        """
        ...
