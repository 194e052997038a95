"""Pytest fixtures for embedding tests."""

from unittest.mock import AsyncMock

import pytest

from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService
from src.providers.base import EmbeddingBackend, ProviderError


class StubEmbeddingBackend(EmbeddingBackend):
    """Deterministic backend: vector derived from text length, records every call."""

    name = "stub"

    def __init__(self, dimension: int = 4, fail: bool = False):
        self.dimension = dimension
        self.fail = fail
        self.calls: list[str] = []
        self.closed = False

    async def embed_raw(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise ProviderError("stub failure", provider=self.name, status_code=503)
        return [float(len(text) % 7 + 1)] + [0.5] * (self.dimension - 1)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    """Small dimension, no cache, no pacing."""
    return EmbeddingConfig(dimension=4, cache_enabled=False, call_delay_seconds=0.0)


@pytest.fixture
def stub_backend() -> StubEmbeddingBackend:
    return StubEmbeddingBackend(dimension=4)


@pytest.fixture
def embedding_service(stub_backend, embedding_config) -> EmbeddingService:
    return EmbeddingService(stub_backend, embedding_config)


@pytest.fixture
def mock_redis():
    """Redis client with get/setex as AsyncMocks (empty cache)."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    return client
