"""OpenAI chat and embedding backends.

SDK import is deferred to first use (lazy loading) so the package imports
cleanly when no OpenAI key is configured.
"""

import logging
from typing import Any

from src.providers.base import ChatBackend, ChatMessage, EmbeddingBackend, ProviderError
from src.providers.config import ProviderConfig

logger = logging.getLogger(__name__)


class _OpenAIClientMixin:
    """Shared lazy AsyncOpenAI client."""

    _config: ProviderConfig
    _client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize OpenAI async client."""
        if self._client is None:
            import openai

            self._client = openai.AsyncOpenAI(
                api_key=self._config.secret(self._config.openai_api_key),
                timeout=self._config.request_timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class OpenAIEmbeddingBackend(_OpenAIClientMixin, EmbeddingBackend):
    """``text-embedding-3-small`` (1536-dim) embeddings."""

    name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = None

    async def embed_raw(self, text: str) -> list[float]:
        client = self._get_client()
        response = await client.embeddings.create(
            model=self._config.openai_embedding_model,
            input=text,
        )
        if not response.data:
            raise ProviderError("OpenAI embedding response contained no data", provider=self.name)
        return list(response.data[0].embedding)


class OpenAIChatBackend(_OpenAIClientMixin, ChatBackend):
    """Chat completions (``gpt-4o-mini`` by default)."""

    name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self._client = None

    async def complete(self, messages: list[ChatMessage]) -> str:
        client = self._get_client()
        response = await client.chat.completions.create(
            model=self._config.openai_chat_model,
            messages=messages,
            temperature=self._config.temperature,
        )
        if not response.choices:
            raise ProviderError("OpenAI response contained no choices", provider=self.name)
        content = response.choices[0].message.content
        if content is None:
            raise ProviderError("OpenAI response contained no content", provider=self.name)
        return content
