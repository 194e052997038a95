"""Tests for LLMClient error mapping."""

import pytest

from src.llm.client import LLMClient, LLMError, LLMRequestError, LLMUnavailableError
from src.providers.config import ProviderConfig
from tests.test_llm.conftest import USER_MESSAGES, ScriptedChatBackend


class TestChat:
    async def test_returns_completion(self, provider_config):
        backend = ScriptedChatBackend("hello")
        client = LLMClient(backend, provider_config)

        assert await client.chat(USER_MESSAGES) == "hello"
        assert backend.transcripts == [USER_MESSAGES]
        assert client.provider == "scripted"

    async def test_no_provider(self, provider_config):
        client = LLMClient(None, provider_config)

        assert not client.available
        assert client.provider is None
        with pytest.raises(LLMUnavailableError):
            await client.chat(USER_MESSAGES)

    async def test_provider_error_becomes_request_error(self, provider_config, provider_error):
        client = LLMClient(ScriptedChatBackend(provider_error), provider_config)

        with pytest.raises(LLMRequestError, match="upstream 503"):
            await client.chat(USER_MESSAGES)

    async def test_timeout(self, provider_config):
        client = LLMClient(ScriptedChatBackend("__hang__"), provider_config)

        with pytest.raises(LLMRequestError, match="timed out"):
            await client.chat(USER_MESSAGES)

    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_completion(self, provider_config, text):
        client = LLMClient(ScriptedChatBackend(text), provider_config)

        with pytest.raises(LLMRequestError, match="empty"):
            await client.chat(USER_MESSAGES)

    async def test_all_failures_share_base_class(self, provider_config, provider_error):
        client = LLMClient(ScriptedChatBackend(provider_error), provider_config)

        with pytest.raises(LLMError):
            await client.chat(USER_MESSAGES)

    @pytest.mark.parametrize(
        "messages",
        [
            [],
            [{"role": "tool", "content": "x"}],
            [{"role": "user"}],
        ],
    )
    async def test_malformed_messages(self, provider_config, messages):
        backend = ScriptedChatBackend("unused")
        client = LLMClient(backend, provider_config)

        with pytest.raises(ValueError):
            await client.chat(messages)
        assert backend.transcripts == []


class TestCircuit:
    async def test_open_circuit_is_unavailable(self, provider_config, provider_error):
        backend = ScriptedChatBackend(provider_error, provider_error, "never")
        client = LLMClient(backend, provider_config)

        for _ in range(2):
            with pytest.raises(LLMRequestError):
                await client.chat(USER_MESSAGES)

        with pytest.raises(LLMUnavailableError, match="OPEN"):
            await client.chat(USER_MESSAGES)
        assert len(backend.transcripts) == 2


class TestLifecycle:
    def test_from_config_without_credentials(self):
        client = LLMClient.from_config(ProviderConfig(_env_file=None))

        assert not client.available

    async def test_close(self, provider_config):
        backend = ScriptedChatBackend()
        await LLMClient(backend, provider_config).close()

        assert backend.closed
