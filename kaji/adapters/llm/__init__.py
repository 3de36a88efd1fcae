"""LLM adapter layer - abstracts over OpenAI-compatible completion providers."""

from kaji.adapters.llm.base import AbstractLLMClient, ChatTurn, LLMCompletion
from kaji.adapters.llm.factory import create_llm_client
from kaji.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "ChatTurn",
    "LLMCompletion",
    "OpenAIClient",
    "create_llm_client",
]
