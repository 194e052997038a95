"""Google Gemini chat and embedding backends (REST via httpx)."""

import logging

import httpx

from src.providers.base import ChatBackend, ChatMessage, EmbeddingBackend, split_system
from src.providers.config import ProviderConfig
from src.providers.http import post_json
from src.providers.schemas import GeminiEmbeddingResponse, GeminiGenerateResponse

logger = logging.getLogger(__name__)


class _GeminiBase:
    name = "gemini"

    def __init__(self, config: ProviderConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.request_timeout)
        return self._client

    def _url(self, model: str, method: str) -> str:
        return f"{self._config.gemini_base_url}/models/{model}:{method}"

    @property
    def _params(self) -> dict[str, str]:
        return {"key": self._config.secret(self._config.gemini_api_key) or ""}

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class GeminiEmbeddingBackend(_GeminiBase, EmbeddingBackend):
    """``text-embedding-004`` embeddings (768-dim native)."""

    async def embed_raw(self, text: str) -> list[float]:
        response = await post_json(
            self._get_client(),
            self._url(self._config.gemini_embedding_model, "embedContent"),
            {"content": {"parts": [{"text": text}]}},
            GeminiEmbeddingResponse,
            provider=self.name,
            params=self._params,
        )
        return response.embedding.values


class GeminiChatBackend(_GeminiBase, ChatBackend):
    """``generateContent`` chat; assistant turns map to the ``model`` role."""

    async def complete(self, messages: list[ChatMessage]) -> str:
        system, transcript = split_system(messages)
        payload: dict = {
            "contents": [
                {
                    "role": "model" if m["role"] == "assistant" else "user",
                    "parts": [{"text": m["content"]}],
                }
                for m in transcript
            ],
            "generationConfig": {"temperature": self._config.temperature},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        response = await post_json(
            self._get_client(),
            self._url(self._config.gemini_chat_model, "generateContent"),
            payload,
            GeminiGenerateResponse,
            provider=self.name,
            params=self._params,
        )
        return response.text
