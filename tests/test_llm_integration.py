"""Integration tests for LLM adapter layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from kaji.adapters.llm import OpenAIClient, create_llm_client
from kaji.adapters.llm.factory import OPENROUTER_BASE_URL
from kaji.core.config import LLMSettings
from kaji.core.errors import LLMAppError


def _completion(content, model="openai/gpt-4o"):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.model = model
    response.usage = None
    return response


class TestOpenAIClientIntegration:
    """Test OpenAI client integration with mocked API calls."""

    @pytest.mark.asyncio
    async def test_complete_success(self) -> None:
        client = OpenAIClient(api_key="test-key-123", model="openai/gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion("  Update to the latest stable channel.  "),
        ) as mock_create:
            result = await client.complete(
                [{"role": "user", "content": "How do I stay safe?"}],
                temperature=0.4,
            )

        assert result.content == "Update to the latest stable channel."
        assert result.model == "openai/gpt-4o"
        assert result.usage == {}

        call_kwargs = mock_create.call_args.kwargs
        assert call_kwargs["model"] == "openai/gpt-4o"
        assert call_kwargs["temperature"] == 0.4
        assert call_kwargs["max_tokens"] == 4000
        assert call_kwargs["stream"] is False

    @pytest.mark.asyncio
    async def test_default_temperature_applies(self) -> None:
        client = OpenAIClient(api_key="k", model="m", default_temperature=0.2, default_max_tokens=100)

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion("ok", model="m"),
        ) as mock_create:
            await client.complete([{"role": "user", "content": "hi"}])

        assert mock_create.call_args.kwargs["temperature"] == 0.2
        assert mock_create.call_args.kwargs["max_tokens"] == 100

    @pytest.mark.asyncio
    async def test_provider_error_becomes_llm_app_error(self) -> None:
        client = OpenAIClient(api_key="test-key", model="openai/gpt-4o")
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://openrouter.ai/api/v1"))

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.complete([{"role": "user", "content": "hi"}])

        assert exc.value.code == "ai_request_failed"

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self) -> None:
        client = OpenAIClient(api_key="test-key", model="openai/gpt-4o")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion(None),
        ):
            with pytest.raises(LLMAppError) as exc:
                await client.complete([{"role": "user", "content": "hi"}])

        assert exc.value.code == "ai_empty_response"


class TestLLMFactory:
    """Test LLM client factory pattern."""

    def test_openrouter_defaults(self) -> None:
        client = create_llm_client(LLMSettings(provider="openrouter", api_key="test-key"))

        assert isinstance(client, OpenAIClient)
        assert client.model == "openai/gpt-4o"
        assert str(client.client.base_url).startswith(OPENROUTER_BASE_URL)

    def test_openai_provider_uses_sdk_default_endpoint(self) -> None:
        client = create_llm_client(LLMSettings(provider="openai", api_key="test-key", model="gpt-4o-mini"))

        assert client.model == "gpt-4o-mini"
        assert "openrouter" not in str(client.client.base_url)

    def test_missing_api_key_raises_error(self) -> None:
        with pytest.raises(LLMAppError, match="requires LLM_API_KEY") as exc:
            create_llm_client(LLMSettings(provider="openrouter", api_key=None))
        assert exc.value.code == "ai_not_configured"

    def test_unknown_provider_raises_error(self) -> None:
        with pytest.raises(LLMAppError, match="Unknown LLM provider") as exc:
            create_llm_client(LLMSettings(provider="unknown-provider", api_key="test-key"))
        assert exc.value.code == "ai_unknown_provider"
