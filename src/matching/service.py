"""
Matching facade: the functions UI and CRUD callers use.

Plain data in, plain data out. Nothing here persists; the caller decides
whether to materialize matches as links (see ``TriageRepository``).

Strategy per call:
1. MatchRefiner (vector recall + LLM rerank, similarity on LLM failure)
2. FallbackMatcher when Stage 1 could not run or found nothing
"""

from dataclasses import dataclass, field
from typing import Any, Sequence

import redis.asyncio as redis
import structlog

from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService
from src.llm.client import LLMClient, LLMError
from src.matching import prompts
from src.matching.config import MatchingConfig
from src.matching.fallback import FallbackMatcher
from src.matching.refiner import MatchRefiner
from src.matching.schemas import (
    EvidenceResult,
    FeedbackItem,
    Idea,
    IdeaSuggestionResult,
    TriageStatus,
)
from src.providers.config import ProviderConfig
from src.vectorstore.base import VectorStore

logger = structlog.get_logger(__name__)

# Archived feedback is never offered as evidence.
EVIDENCE_STATUSES = frozenset({TriageStatus.NEW.value, TriageStatus.TRIAGED.value})


@dataclass
class MatchOptions:
    """
    Per-call overrides.

    Attributes:
        exclude_ids: Ids that must never be suggested (e.g. already linked)
        limit: Stage-1 candidate limit (defaults per direction)
        threshold: Stage-1 similarity threshold
        index: Persisted VectorStore to search in Stage 1 instead of the
            pool; the pool still backs FallbackMatcher
    """

    exclude_ids: set[str] = field(default_factory=set)
    limit: int | None = None
    threshold: float | None = None
    index: VectorStore | None = None

    def __post_init__(self) -> None:
        self.exclude_ids = {str(i) for i in self.exclude_ids}


class MatchingService:
    """
    Entry point for evidence search, idea suggestion and summaries.

    Usage:
        service = MatchingService.from_config(ProviderConfig())
        result = await service.find_evidence_for_idea(
            idea.title, idea.description, feedback_pool,
            MatchOptions(exclude_ids=linked_ids),
        )
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        llm_client: LLMClient,
        config: MatchingConfig | None = None,
    ):
        self._config = config or MatchingConfig()
        self._embedder = embedding_service
        self._llm = llm_client
        self._refiner = MatchRefiner(embedding_service, llm_client, self._config)
        self._fallback = FallbackMatcher(llm_client, self._config)
        self._stats = {
            "two_stage": 0,
            "similarity_only": 0,
            "llm_only": 0,
            "ai_unavailable": 0,
            "no_matches": 0,
        }

    @classmethod
    def from_config(
        cls,
        provider_config: ProviderConfig,
        embedding_config: EmbeddingConfig | None = None,
        config: MatchingConfig | None = None,
        redis_client: redis.Redis | None = None,
    ) -> "MatchingService":
        """Resolve providers once and wire the pipeline."""
        return cls(
            EmbeddingService.from_config(provider_config, embedding_config, redis_client),
            LLMClient.from_config(provider_config),
            config,
        )

    @property
    def embedding_service(self) -> EmbeddingService:
        return self._embedder

    @property
    def llm_client(self) -> LLMClient:
        return self._llm

    def _record(self, status: str, strategy: str) -> None:
        if strategy in self._stats:
            self._stats[strategy] += 1
        if status in ("ai_unavailable", "no_matches"):
            self._stats[status] += 1

    async def find_evidence_for_idea(
        self,
        title: str,
        description: str,
        candidate_pool: Sequence[FeedbackItem],
        options: MatchOptions | None = None,
    ) -> EvidenceResult:
        """
        Find feedback that supports an idea.

        Args:
            title: Idea title
            description: Idea description
            candidate_pool: Feedback to search (archived items are ignored)
            options: Exclusions and Stage-1 overrides

        Returns:
            EvidenceResult with matches sorted by confidence
        """
        options = options or MatchOptions()
        statuses = set(EVIDENCE_STATUSES)

        result = await self._refiner.find_evidence(
            title,
            description,
            options.index if options.index is not None else candidate_pool,
            exclude_ids=options.exclude_ids,
            limit=options.limit,
            threshold=options.threshold,
            statuses=statuses,
        )
        if result is None:
            result = await self._fallback.find_evidence(
                title, description, candidate_pool, options.exclude_ids, statuses,
            )

        self._record(result.status, result.strategy)
        logger.info(
            "Evidence search complete",
            matches=len(result.matches),
            status=result.status,
            strategy=result.strategy,
        )
        return result

    async def suggest_matching_ideas(
        self,
        description: str,
        idea_pool: Sequence[Idea],
        options: MatchOptions | None = None,
    ) -> IdeaSuggestionResult:
        """
        Suggest ideas for one feedback item.

        Returns:
            IdeaSuggestionResult with matches and a new-idea hint
        """
        options = options or MatchOptions()

        result = await self._refiner.suggest_ideas(
            description,
            options.index if options.index is not None else idea_pool,
            exclude_ids=options.exclude_ids,
            limit=options.limit,
            threshold=options.threshold,
        )
        if result is None:
            result = await self._fallback.suggest_ideas(description, idea_pool, options.exclude_ids)

        self._record(result.status, result.strategy)
        logger.info(
            "Idea suggestion complete",
            matches=len(result.matches),
            status=result.status,
            strategy=result.strategy,
            should_create=bool(result.suggested_new_idea and result.suggested_new_idea.should_create),
        )
        return result

    async def summarize(self, linked_items: Sequence[FeedbackItem], title: str = "") -> str | None:
        """
        Summarize the key themes across feedback linked to an idea.

        Returns:
            Summary text, or None when there is nothing to summarize or the
            LLM is unavailable.
        """
        items = [item for item in linked_items if item.description.strip()]
        if not items:
            return None

        numbered = "\n".join(
            f'{i}. "{" ".join(item.description.split())}"'
            for i, item in enumerate(items[: self._config.summary_max_items], start=1)
        )
        messages = [
            {"role": "system", "content": prompts.SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": prompts.SUMMARY_USER_PROMPT.format(title=title or "(untitled)", items=numbered)},
        ]
        try:
            text = await self._llm.chat(messages)
        except LLMError as e:
            logger.warning("Summary unavailable", error=str(e))
            return None
        return text.strip()

    def get_stats(self) -> dict[str, Any]:
        """Get service statistics."""
        return {
            **self._stats,
            "embedding": self._embedder.get_stats(),
            "llm_available": self._llm.available,
        }

    async def close(self) -> None:
        await self._embedder.close()
        await self._llm.close()
        logger.info("MatchingService closed")
