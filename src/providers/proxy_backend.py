"""Backends that route through the server-side proxy endpoint.

Used where the caller cannot hold provider credentials. The proxy accepts
``{action: "chat"|"embed", messages|input}`` and answers ``{content}``,
``{embedding}`` or ``{error}`` regardless of which provider backs it.
"""

import logging

import httpx

from src.providers.base import ChatBackend, ChatMessage, EmbeddingBackend, ProviderError
from src.providers.config import ProviderConfig
from src.providers.http import post_json
from src.providers.schemas import ProxyResponse

logger = logging.getLogger(__name__)


class _ProxyBase:
    name = "proxy"

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.proxy_url:
            raise ValueError("proxy_url must be configured for proxy backends")
        self._config = config
        self._url = config.proxy_url
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.request_timeout)
        return self._client

    async def _call(self, payload: dict) -> ProxyResponse:
        response = await post_json(
            self._get_client(), self._url, payload, ProxyResponse, provider=self.name,
        )
        if response.error:
            raise ProviderError(f"proxy error: {response.error}", provider=self.name)
        return response

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class ProxyEmbeddingBackend(_ProxyBase, EmbeddingBackend):
    async def embed_raw(self, text: str) -> list[float]:
        response = await self._call({"action": "embed", "input": text})
        if not response.embedding:
            raise ProviderError("proxy returned no embedding", provider=self.name)
        return response.embedding


class ProxyChatBackend(_ProxyBase, ChatBackend):
    async def complete(self, messages: list[ChatMessage]) -> str:
        response = await self._call({"action": "chat", "messages": messages})
        if response.content is None:
            raise ProviderError("proxy returned no content", provider=self.name)
        return response.content
