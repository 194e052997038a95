"""
Embedding generation service.

Turns free text into a fixed-dimension vector through whichever
EmbeddingBackend was resolved at startup:
- Whitespace normalization and a character budget before every call
- Dimension reconciliation so only ``config.dimension`` vectors are returned
- Redis caching keyed by the hash of the normalized text
- Failure isolation: every error becomes ``None`` plus a warning

Embeddings are an optimization, not a correctness requirement, so
``embed()`` never raises. Callers treat ``None`` as "skip".
"""

import hashlib
import json
import re
from typing import TYPE_CHECKING, Any, Literal

import numpy as np
import redis.asyncio as redis
import structlog

from src.embedding.config import EmbeddingConfig
from src.providers.base import EmbeddingBackend
from src.providers.config import ProviderConfig
from src.providers.factory import build_embedding_backend

if TYPE_CHECKING:
    from src.matching.schemas import FeedbackItem, Idea
    from src.routing.schemas import ProductArea

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None, max_chars: int) -> str:
    """Collapse whitespace, trim and cut to ``max_chars``."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()[:max_chars]


def reconcile_dimension(
    vector: list[float],
    dimension: int,
    strategy: Literal["zero_pad", "tile"] = "zero_pad",
) -> list[float]:
    """
    Fit ``vector`` to exactly ``dimension`` components.

    Shorter vectors are widened (zero padding or tiling); longer vectors are
    truncated and re-normalized. Both widening strategies preserve cosine
    similarity between two vectors widened the same way.

    Raises:
        ValueError: If the vector is empty or contains non-finite values.
    """
    arr = np.asarray(vector, dtype=np.float64)
    if arr.ndim != 1 or arr.size == 0:
        raise ValueError("embedding must be a non-empty 1-d vector")
    if not np.all(np.isfinite(arr)):
        raise ValueError("embedding contains non-finite values")

    if arr.size == dimension:
        return arr.tolist()

    if arr.size > dimension:
        cut = arr[:dimension]
        norm = np.linalg.norm(cut)
        return (cut / norm if norm > 0 else cut).tolist()

    if strategy == "tile":
        reps = -(-dimension // arr.size)
        return np.tile(arr, reps)[:dimension].tolist()

    return np.concatenate([arr, np.zeros(dimension - arr.size)]).tolist()


class EmbeddingService:
    """
    Service for generating fixed-dimension embeddings.

    Usage:
        service = EmbeddingService.from_config(ProviderConfig())
        vector = await service.embed("Bulk export to CSV times out")
        if vector is None:
            ...  # no provider, empty text or provider failure
    """

    def __init__(
        self,
        backend: EmbeddingBackend | None,
        config: EmbeddingConfig | None = None,
        redis_client: redis.Redis | None = None,
    ):
        """
        Args:
            backend: Resolved embedding backend, or None when unconfigured
            config: Embedding configuration (uses defaults if None)
            redis_client: Redis client for caching (optional)
        """
        self._backend = backend
        self._config = config or EmbeddingConfig()
        self._redis = redis_client
        self._stats = {"generated": 0, "cache_hits": 0, "skipped": 0, "errors": 0}

    @classmethod
    def from_config(
        cls,
        provider_config: ProviderConfig,
        config: EmbeddingConfig | None = None,
        redis_client: redis.Redis | None = None,
    ) -> "EmbeddingService":
        """Resolve the embedding provider once and build the service."""
        return cls(build_embedding_backend(provider_config), config, redis_client)

    @property
    def available(self) -> bool:
        """Whether an embedding provider is configured."""
        return self._backend is not None

    @property
    def dimension(self) -> int:
        return self._config.dimension

    @property
    def config(self) -> EmbeddingConfig:
        return self._config

    def _make_cache_key(self, text: str) -> str:
        """Cache key with backend prefix to avoid cross-provider collisions."""
        content_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]
        backend = self._backend.name if self._backend else "none"
        return f"{self._config.cache_key_prefix}{backend}:{self._config.dimension}:{content_hash}"

    async def _get_cached(self, text: str) -> list[float] | None:
        if not self._config.cache_enabled or not self._redis:
            return None
        try:
            cached = await self._redis.get(self._make_cache_key(text))
        except Exception as e:
            logger.warning("Embedding cache read failed", error=str(e))
            return None
        if not cached:
            return None
        try:
            vector = json.loads(cached)
            if not isinstance(vector, list) or len(vector) != self._config.dimension:
                raise ValueError("cached embedding has the wrong shape")
            if not np.all(np.isfinite(np.asarray(vector, dtype=np.float64))):
                raise ValueError("cached embedding contains non-finite values")
        except (ValueError, TypeError) as e:
            logger.warning("Discarding invalid cached embedding", error=str(e))
            return None
        self._stats["cache_hits"] += 1
        return vector

    async def _set_cached(self, text: str, vector: list[float]) -> None:
        if not self._config.cache_enabled or not self._redis:
            return
        try:
            await self._redis.setex(
                self._make_cache_key(text),
                self._config.cache_ttl_seconds,
                json.dumps(vector),
            )
        except Exception as e:
            logger.warning("Embedding cache write failed", error=str(e))

    async def embed(self, text: str | None) -> list[float] | None:
        """
        Embed ``text`` into a ``config.dimension`` vector.

        Returns:
            The vector, or None when no provider is configured, the
            normalized text is empty, or the provider call failed.
        """
        if self._backend is None:
            self._stats["skipped"] += 1
            return None

        clean = normalize_text(text, self._config.max_chars)
        if not clean:
            self._stats["skipped"] += 1
            return None

        cached = await self._get_cached(clean)
        if cached is not None:
            return cached

        try:
            raw = await self._backend.embed_raw(clean)
            vector = reconcile_dimension(raw, self._config.dimension, self._config.reconcile_strategy)
        except Exception as e:
            self._stats["errors"] += 1
            logger.warning(
                "Embedding generation failed",
                provider=self._backend.name,
                error=str(e),
            )
            return None

        self._stats["generated"] += 1
        await self._set_cached(clean, vector)
        return vector

    async def embed_record(self, record: Any) -> list[float] | None:
        """Embed a FeedbackItem, Idea or ProductArea via its ``embedding_text``."""
        return await self.embed(record.embedding_text)

    async def embed_feedback(self, feedback: "FeedbackItem") -> list[float] | None:
        return await self.embed_record(feedback)

    async def embed_idea(self, idea: "Idea") -> list[float] | None:
        return await self.embed_record(idea)

    async def embed_product_area(self, area: "ProductArea") -> list[float] | None:
        return await self.embed_record(area)

    def get_stats(self) -> dict[str, Any]:
        """Get service statistics."""
        return {
            **self._stats,
            "provider": self._backend.name if self._backend else None,
            "dimension": self._config.dimension,
            "cache_enabled": self._config.cache_enabled and self._redis is not None,
        }

    async def close(self) -> None:
        """Release the backend client. Redis client is managed externally."""
        if self._backend is not None:
            await self._backend.close()
        logger.info("EmbeddingService closed")
