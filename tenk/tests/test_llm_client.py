"""Tests for LLMClient provider abstraction."""

import logging
from unittest.mock import AsyncMock, Mock

import pytest
from tenk.common.llm_client import LLMClient


def _openai_response(text):
    message = Mock()
    message.content = text
    choice = Mock()
    choice.message = message
    response = Mock()
    response.choices = [choice]
    return response


def _anthropic_response(text):
    block = Mock()
    block.text = text
    response = Mock()
    response.content = [block]
    return response


class TestLLMClientInit:
    def test_missing_openai_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="tenk.common.llm_client"):
            client = LLMClient(provider="openai")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_anthropic_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="tenk.common.llm_client"):
            client = LLMClient(provider="anthropic")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_missing_google_key_logs_info(self, caplog):
        with caplog.at_level(logging.INFO, logger="tenk.common.llm_client"):
            client = LLMClient(provider="google")
        assert not client.is_available
        assert "API key not provided" in caplog.text

    def test_unsupported_provider_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tenk.common.llm_client"):
            client = LLMClient(provider="unsupported_xyz")
        assert not client.is_available
        assert "Unsupported" in caplog.text

    def test_provider_name_is_normalized(self):
        client = LLMClient(provider="OpenAI")
        assert client.provider == "openai"


class TestLLMClientGenerate:
    @pytest.mark.asyncio
    async def test_generate_raises_when_unavailable(self):
        client = LLMClient(provider="openai")
        with pytest.raises(RuntimeError, match="not available"):
            await client.generate("test", model="gpt-4o-mini")

    @pytest.mark.asyncio
    async def test_generate_json_raises_when_unavailable(self):
        client = LLMClient(provider="openai")
        with pytest.raises(RuntimeError, match="not available"):
            await client.generate_json("test", model="gpt-4o-mini")

    @pytest.mark.asyncio
    async def test_openai_json_mode_requested(self):
        client = LLMClient(provider="openai")
        client._client = Mock()
        client._client.chat.completions.create = AsyncMock(
            return_value=_openai_response('  {"selected_indices": [1]}  ')
        )

        raw = await client.generate_json("pick", model="gpt-4o-mini", system="be strict")

        assert raw == '{"selected_indices": [1]}'
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "be strict"}
        assert kwargs["messages"][1] == {"role": "user", "content": "pick"}

    @pytest.mark.asyncio
    async def test_openai_free_text_has_no_response_format(self):
        client = LLMClient(provider="openai")
        client._client = Mock()
        client._client.chat.completions.create = AsyncMock(return_value=_openai_response(None))

        text = await client.generate("answer", model="gpt-4o-mini")

        assert text == ""
        kwargs = client._client.chat.completions.create.call_args.kwargs
        assert "response_format" not in kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "answer"}]

    @pytest.mark.asyncio
    async def test_anthropic_omits_empty_system(self):
        client = LLMClient(provider="anthropic")
        client._client = Mock()
        client._client.messages.create = AsyncMock(return_value=_anthropic_response(" ok "))

        text = await client.generate("q", model="claude-sonnet-4-20250514")

        assert text == "ok"
        kwargs = client._client.messages.create.call_args.kwargs
        assert "system" not in kwargs

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self):
        client = LLMClient(provider="openai")
        client._client = Mock()
        client._client.chat.completions.create = AsyncMock(side_effect=TimeoutError("slow"))

        with pytest.raises(TimeoutError):
            await client.generate("q", model="gpt-4o-mini")
