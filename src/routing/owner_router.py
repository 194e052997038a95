"""
Owner routing via product-area embeddings.

Each feedback item is compared with every routable product area (one with
both an embedding and an owner); the most similar area wins if its boosted
confidence clears the floor. No LLM is involved.

Every input produces exactly one OwnerSuggestion, in input order. Items
that cannot be embedded, or that match nothing confidently, get an
unmatched suggestion with a reason instead of being dropped.
"""

import asyncio
from typing import AsyncIterator, Callable, Sequence

import structlog

from src.embedding.service import EmbeddingService
from src.matching.schemas import FeedbackItem
from src.routing.config import RoutingConfig
from src.routing.schemas import OwnerSuggestion, ProductArea
from src.vectorstore.similarity import cosine_similarity

logger = structlog.get_logger(__name__)

NO_ROUTABLE_AREAS = "No product areas with embeddings"
EMBEDDING_FAILED = "Could not generate embedding"
NO_CONFIDENT_MATCH = "No confident match"

ProgressCallback = Callable[[dict[str, int]], None]


class OwnerRouter:
    """
    Suggest owners for feedback through product-area similarity.

    Usage:
        router = OwnerRouter(embedding_service)
        suggestions = await router.match_feedback_to_product_areas(items, areas)

        async for batch in router.stream_owner_suggestions(items, areas):
            render(batch)
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        config: RoutingConfig | None = None,
    ):
        self._embedder = embedding_service
        self._config = config or RoutingConfig()

    @property
    def config(self) -> RoutingConfig:
        return self._config

    def to_confidence(self, similarity: float) -> float:
        """Boost raw cosine into a confidence in [0, 1]."""
        return min(max(similarity, 0.0) * self._config.similarity_boost, 1.0)

    def classify(
        self,
        feedback_id: str,
        embedding: list[float],
        areas: Sequence[ProductArea],
    ) -> OwnerSuggestion:
        """Pick the best area for one embedded item. Pure; no provider calls."""
        best_area: ProductArea | None = None
        best_score = 0.0
        for area in areas:
            score = cosine_similarity(embedding, area.embedding)
            if score > best_score:
                best_score = score
                best_area = area

        confidence = self.to_confidence(best_score)
        if best_area is not None and confidence >= self._config.min_confidence:
            return OwnerSuggestion(
                feedback_id=feedback_id,
                product_area_id=best_area.id,
                product_area_name=best_area.name,
                owner_id=best_area.owner_id,
                confidence=confidence,
                reasoning=f"Vector similarity: {best_score * 100:.0f}%",
            )
        return OwnerSuggestion(
            feedback_id=feedback_id,
            confidence=confidence,
            reasoning=NO_CONFIDENT_MATCH,
        )

    async def _route_one(
        self,
        item: FeedbackItem,
        areas: Sequence[ProductArea],
        delay: float = 0.0,
    ) -> OwnerSuggestion:
        embedding = item.embedding
        if not embedding:
            if delay > 0:
                await asyncio.sleep(delay)
            try:
                embedding = await self._embedder.embed_feedback(item)
            except Exception as e:
                logger.warning("Routing embed failed", feedback_id=item.id, error=str(e))
                embedding = None
        if not embedding:
            return OwnerSuggestion(feedback_id=item.id, reasoning=EMBEDDING_FAILED)
        return self.classify(item.id, embedding, areas)

    @staticmethod
    def _unroutable(items: Sequence[FeedbackItem]) -> list[OwnerSuggestion]:
        return [OwnerSuggestion(feedback_id=item.id, reasoning=NO_ROUTABLE_AREAS) for item in items]

    async def match_feedback_to_product_areas(
        self,
        feedback_items: Sequence[FeedbackItem],
        product_areas: Sequence[ProductArea],
    ) -> list[OwnerSuggestion]:
        """
        Route every item sequentially.

        Returns:
            One OwnerSuggestion per input item, in input order
        """
        areas = [area for area in product_areas if area.routable]
        if not areas:
            logger.warning("No routable product areas", areas=len(product_areas))
            return self._unroutable(feedback_items)

        results: list[OwnerSuggestion] = []
        calls = 0
        for item in feedback_items:
            needs_call = not item.embedding
            delay = self._config.call_delay_seconds if needs_call and calls else 0.0
            results.append(await self._route_one(item, areas, delay))
            calls += int(needs_call)
        return results

    async def stream_owner_suggestions(
        self,
        feedback_items: Sequence[FeedbackItem],
        product_areas: Sequence[ProductArea],
        batch_size: int | None = None,
    ) -> AsyncIterator[list[OwnerSuggestion]]:
        """
        Route items in fixed-size batches, yielding each batch's results.

        Batches run one after another; items inside a batch run concurrently,
        with embedding calls staggered by ``call_delay_seconds``. Per-item
        results are identical to ``match_feedback_to_product_areas``.
        """
        size = batch_size or self._config.batch_size
        if size < 1:
            raise ValueError(f"batch_size must be >= 1, got {size}")

        areas = [area for area in product_areas if area.routable]
        for start in range(0, len(feedback_items), size):
            batch = list(feedback_items[start : start + size])
            if not areas:
                yield self._unroutable(batch)
                continue

            tasks = []
            pending_calls = 0
            for item in batch:
                delay = 0.0
                if not item.embedding:
                    delay = pending_calls * self._config.call_delay_seconds
                    if start > 0:
                        delay += self._config.call_delay_seconds
                    pending_calls += 1
                tasks.append(self._route_one(item, areas, delay))

            results = await asyncio.gather(*tasks)
            logger.info(
                "Routed batch",
                batch_start=start,
                batch_size=len(batch),
                matched=sum(1 for r in results if r.matched),
            )
            yield list(results)

    async def embed_product_areas(
        self,
        product_areas: Sequence[ProductArea],
        on_progress: ProgressCallback | None = None,
    ) -> dict[str, int]:
        """
        Embed every area in place, pausing between provider calls.

        Returns:
            {"processed": <areas embedded>, "total": <areas given>}
        """
        processed = 0
        total = len(product_areas)
        for index, area in enumerate(product_areas):
            if index > 0:
                await asyncio.sleep(self._config.call_delay_seconds)
            vector = await self._embedder.embed_product_area(area)
            if vector is not None:
                area.embedding = vector
                processed += 1
            if on_progress is not None:
                on_progress({"processed": processed, "total": total})
        return {"processed": processed, "total": total}
