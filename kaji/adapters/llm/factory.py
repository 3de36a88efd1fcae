"""Factory for creating the AI completion client."""

from kaji.adapters.llm.base import AbstractLLMClient
from kaji.adapters.llm.openai_client import OpenAIClient
from kaji.core.config import LLMSettings, settings
from kaji.core.errors import LLMAppError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://kaji-security.com",
    "X-Title": "Kaji ChromeOS Security Research",
}


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the completion client for the configured provider.

    Returns:
        AbstractLLMClient: Configured client instance.

    Raises:
        LLMAppError: If the provider is unknown or its API key is missing.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider not in {"openrouter", "openai"}:
        raise LLMAppError(
            code="ai_unknown_provider",
            message=f"Unknown LLM provider: '{provider}'. Supported providers: openrouter, openai",
        )

    if not cfg.api_key:
        raise LLMAppError(
            code="ai_not_configured",
            message=f"{provider} provider requires LLM_API_KEY environment variable",
        )

    return OpenAIClient(
        api_key=cfg.api_key,
        model=cfg.model,
        base_url=cfg.base_url or (OPENROUTER_BASE_URL if provider == "openrouter" else None),
        timeout_seconds=cfg.timeout_seconds,
        default_temperature=cfg.temperature,
        default_max_tokens=cfg.max_tokens,
        default_headers=OPENROUTER_HEADERS if provider == "openrouter" else None,
    )
