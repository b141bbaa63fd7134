"""Tests for the OpenAI client adapter and the LLM factory."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from cart_whisperer.adapters.llm import OpenAIClient, create_llm_client
from cart_whisperer.core.config import LLMSettings
from cart_whisperer.core.errors import LLMAppError, ValidationAppError


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=123)
    return response


class TestOpenAIClient:
    """Test chat completion calls with a mocked SDK."""

    @pytest.mark.asyncio
    async def test_generate_text_success(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion("  SUBJECT: Hi\n<p>Body</p>  "),
        ) as mock_create:
            result = await client.generate_text(
                system_prompt="You write emails",
                user_prompt="Write one",
                temperature=0.7,
                max_tokens=500,
            )

        assert result == "SUBJECT: Hi\n<p>Body</p>"
        kwargs = mock_create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 500
        assert kwargs["messages"] == [
            {"role": "system", "content": "You write emails"},
            {"role": "user", "content": "Write one"},
        ]

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            side_effect=OpenAIError("rate limited upstream"),
        ):
            with pytest.raises(LLMAppError) as exc_info:
                await client.generate_text(
                    system_prompt="s", user_prompt="u", temperature=0.7, max_tokens=10
                )

        assert exc_info.value.code == "llm_request_failed"
        assert exc_info.value.details["provider"] == "openai"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_completion(self, content) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion(content),
        ):
            with pytest.raises(LLMAppError) as exc_info:
                await client.generate_text(
                    system_prompt="s", user_prompt="u", temperature=0.7, max_tokens=10
                )

        assert exc_info.value.code == "llm_empty_response"


class TestLLMFactory:
    """Test provider selection."""

    def test_creates_openai_client(self) -> None:
        client = create_llm_client(
            LLMSettings(provider="OpenAI", model="gpt-4o-mini", api_key="test-key")
        )

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    def test_missing_api_key(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client(LLMSettings(provider="openai", api_key=None))

        assert exc_info.value.code == "llm_missing_api_key"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client(LLMSettings(provider="cohere", api_key="k"))

        assert exc_info.value.code == "llm_unknown_provider"
