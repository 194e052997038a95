"""
In-memory vector store over a caller-supplied candidate pool.

The matching engine receives its corpus as plain data (the candidate pool),
so Stage-1 retrieval runs over that pool directly.
"""

from typing import Any, Iterable

import structlog

from src.vectorstore.base import VectorSearchFilter, VectorSearchResult, VectorStore
from src.vectorstore.config import VectorStoreConfig
from src.vectorstore.similarity import cosine_similarity

logger = structlog.get_logger(__name__)


def _record_status(record: Any) -> str | None:
    status = getattr(record, "triage_status", None) or getattr(record, "status", None)
    return getattr(status, "value", status)


class InMemoryVectorStore(VectorStore):
    """
    Brute-force cosine search over records exposing ``id`` and ``embedding``.

    Records without an embedding stay in the store but never match.
    """

    def __init__(self, records: Iterable[Any] = (), config: VectorStoreConfig | None = None):
        self._config = config or VectorStoreConfig()
        self._records: dict[str, Any] = {}
        for record in records:
            self._records[str(record.id)] = record

    def __len__(self) -> int:
        return len(self._records)

    @property
    def embedded_count(self) -> int:
        return sum(1 for r in self._records.values() if r.embedding)

    def add(self, record: Any) -> None:
        self._records[str(record.id)] = record

    async def search(
        self,
        query_embedding: list[float],
        limit: int | None = None,
        threshold: float | None = None,
        filters: VectorSearchFilter | None = None,
    ) -> list[VectorSearchResult]:
        limit = self._config.default_limit if limit is None else limit
        threshold = self._config.default_threshold if threshold is None else threshold
        if limit <= 0 or not query_embedding:
            return []

        filters = filters or VectorSearchFilter()
        scored: list[tuple[float, str, Any]] = []

        for record_id, record in self._records.items():
            if record_id in filters.exclude_ids:
                continue
            if filters.statuses is not None and _record_status(record) not in filters.statuses:
                continue
            if not record.embedding:
                continue
            score = cosine_similarity(query_embedding, record.embedding)
            if score >= threshold:
                scored.append((score, record_id, record))

        # Stable on ties: insertion order of the pool
        scored.sort(key=lambda item: item[0], reverse=True)

        return [
            VectorSearchResult(record_id=record_id, score=max(0.0, score), record=record)
            for score, record_id, record in scored[:limit]
        ]

    async def upsert(self, ids: list[str], embeddings: list[list[float]]) -> int:
        if len(ids) != len(embeddings):
            raise ValueError(
                f"ids and embeddings must have same length: {len(ids)} != {len(embeddings)}"
            )
        updated = 0
        for record_id, embedding in zip(ids, embeddings):
            record = self._records.get(str(record_id))
            if record is not None:
                record.embedding = embedding
                updated += 1
        return updated

    async def get_by_ids(self, ids: list[str]) -> list[VectorSearchResult]:
        return [
            VectorSearchResult(record_id=str(record_id), score=1.0, record=self._records[str(record_id)])
            for record_id in ids
            if str(record_id) in self._records
        ]
