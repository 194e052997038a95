"""Anthropic chat backend.

The Messages API takes the system prompt as a separate argument, so system
entries are lifted out of the transcript before the call.
"""

import logging
from typing import Any

from src.providers.base import ChatBackend, ChatMessage, ProviderError, split_system
from src.providers.config import ProviderConfig

logger = logging.getLogger(__name__)


class AnthropicChatBackend(ChatBackend):
    """Claude chat completions via the anthropic SDK."""

    name = "anthropic"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize Anthropic async client."""
        if self._client is None:
            import anthropic

            self._client = anthropic.AsyncAnthropic(
                api_key=self._config.secret(self._config.anthropic_api_key),
                timeout=self._config.request_timeout,
            )
        return self._client

    async def complete(self, messages: list[ChatMessage]) -> str:
        system, transcript = split_system(messages)
        if not transcript:
            raise ProviderError("Anthropic requires at least one non-system message", provider=self.name)

        client = self._get_client()
        kwargs: dict[str, Any] = {
            "model": self._config.anthropic_model,
            "max_tokens": self._config.anthropic_max_tokens,
            "temperature": self._config.temperature,
            "messages": transcript,
        }
        if system:
            kwargs["system"] = system
        response = await client.messages.create(**kwargs)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        if not text:
            logger.warning("Anthropic response contained no text block")
            raise ProviderError("Anthropic response contained no text", provider=self.name)
        return text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
