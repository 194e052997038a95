"""
Embedding backfill for records created without a vector.

Feedback is imported in bulk and ideas are created interactively; both get
their embeddings afterwards. Each run fetches one page of records missing
an embedding, embeds them one at a time with a short pause between
provider calls, and persists each vector as soon as it exists. A failure
on one record is logged and skipped; the run continues.
"""

import asyncio
from typing import Any, Awaitable, Callable

import structlog

from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService
from src.storage.repository import TriageRepository

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[dict[str, int]], None]


class EmbeddingBackfill:
    """
    Populate missing embeddings for feedback, ideas and product areas.

    Usage:
        backfill = EmbeddingBackfill(embedding_service, repository)
        result = await backfill.backfill_feedback(on_progress=print)
        # {"processed": 97, "total": 100}
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        repository: TriageRepository,
        config: EmbeddingConfig | None = None,
    ):
        self._embedder = embedding_service
        self._repo = repository
        self._config = config or embedding_service.config

    async def backfill_feedback(self, on_progress: ProgressCallback | None = None) -> dict[str, int]:
        records = await self._repo.list_feedback_without_embedding(self._config.backfill_page_size)
        return await self._run("feedback", records, self._repo.update_feedback_embedding, on_progress)

    async def backfill_ideas(self, on_progress: ProgressCallback | None = None) -> dict[str, int]:
        records = await self._repo.list_ideas_without_embedding(self._config.backfill_page_size)
        return await self._run("ideas", records, self._repo.update_idea_embedding, on_progress)

    async def backfill_product_areas(self, on_progress: ProgressCallback | None = None) -> dict[str, int]:
        areas = await self._repo.list_product_areas()
        records = [area for area in areas if not area.embedding]
        return await self._run(
            "product_areas", records, self._repo.update_product_area_embedding, on_progress,
        )

    async def _run(
        self,
        kind: str,
        records: list[Any],
        persist: Callable[[str, list[float]], Awaitable[bool]],
        on_progress: ProgressCallback | None,
    ) -> dict[str, int]:
        total = len(records)
        processed = 0

        if total == 0 or not self._embedder.available:
            if total and not self._embedder.available:
                logger.warning("Backfill skipped: no embedding provider", kind=kind, total=total)
            return {"processed": 0, "total": total}

        for index, record in enumerate(records):
            if index > 0:
                await asyncio.sleep(self._config.call_delay_seconds)
            try:
                vector = await self._embedder.embed_record(record)
                if vector is not None and await persist(record.id, vector):
                    record.embedding = vector
                    processed += 1
            except Exception as e:
                logger.warning("Backfill item failed", kind=kind, record_id=record.id, error=str(e))

            if on_progress is not None:
                on_progress({"processed": processed, "total": total})

        logger.info("Backfill complete", kind=kind, processed=processed, total=total)
        return {"processed": processed, "total": total}
