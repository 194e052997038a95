"""
Two-stage matching: vector recall followed by LLM re-ranking.

The pipeline is symmetric. ``find_evidence`` matches one idea against
feedback; ``suggest_ideas`` matches one feedback item against ideas.

Stage 1 embeds the query and searches the candidate corpus with a low
threshold and a generous limit. Stage 2 sends only those candidates to the
LLM with a banded rubric. Every LLM failure (unavailable, transport,
unparseable output) degrades to the Stage-1 candidates scored by raw
similarity. Whatever path produced them, matches below the confidence
floor, ids that were never candidates, and duplicates are dropped before
the result is returned.

A refiner method returns ``None`` when Stage 1 produced no candidates (the
query could not be embedded or retrieval came back empty). The LLM is not
called in that case; the caller decides whether to use FallbackMatcher.
"""

from typing import Any, Iterable, Sequence

import structlog

from src.aggregation.thresholds import passes_match_floor
from src.embedding.service import EmbeddingService
from src.llm.client import LLMClient, LLMError
from src.matching import prompts
from src.matching.config import MatchingConfig
from src.matching.parsing import (
    LLMIdeaSuggestionResponse,
    LLMMatch,
    LLMMatchResponse,
    LLMNewIdeaProposal,
    ParseFallback,
    parse_llm_json,
)
from src.matching.schemas import (
    EvidenceResult,
    FeedbackItem,
    Idea,
    IdeaSuggestionResult,
    MatchCandidate,
    SuggestedNewIdea,
)
from src.providers.base import ChatMessage
from src.vectorstore.base import VectorSearchFilter, VectorSearchResult, VectorStore
from src.vectorstore.memory_store import InMemoryVectorStore

logger = structlog.get_logger(__name__)

FALLBACK_REASON = "Semantically similar, AI refinement unavailable"


# ── Shared helpers (also used by FallbackMatcher) ───────────


def _truncate(text: str | None, max_chars: int) -> str:
    text = " ".join((text or "").split())
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3].rstrip() + "..."


def _format_arr(value: float | None) -> str:
    return f"${value:,.0f}" if value else "n/a"


def _format_similarity(similarity: float | None) -> str:
    return f" | similarity: {similarity:.2f}" if similarity is not None else ""


def render_feedback_candidates(
    items: Sequence[tuple[FeedbackItem, float | None]],
    preview_chars: int,
) -> str:
    if not items:
        return prompts.NO_CANDIDATES
    return "\n".join(
        prompts.EVIDENCE_CANDIDATE_LINE.format(
            id=item.id,
            account=item.account_name or "Unknown",
            arr=_format_arr(item.account_arr),
            segment=item.account_segment or "n/a",
            similarity=_format_similarity(similarity),
            description=_truncate(item.embedding_text, preview_chars),
        )
        for item, similarity in items
    )


def render_idea_candidates(
    items: Sequence[tuple[Idea, float | None]],
    preview_chars: int,
) -> str:
    if not items:
        return prompts.NO_CANDIDATES
    return "\n".join(
        prompts.IDEA_CANDIDATE_LINE.format(
            id=idea.id,
            title=idea.title,
            similarity=_format_similarity(similarity),
            description=_truncate(idea.description, preview_chars) or "(no description)",
        )
        for idea, similarity in items
    )


def evidence_messages(title: str, description: str, candidates: str) -> list[ChatMessage]:
    return [
        {"role": "system", "content": prompts.EVIDENCE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": prompts.EVIDENCE_USER_PROMPT.format(
                title=title, description=description or "(none)", candidates=candidates,
            ),
        },
    ]


def idea_messages(description: str, candidates: str) -> list[ChatMessage]:
    return [
        {"role": "system", "content": prompts.IDEA_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": prompts.IDEA_USER_PROMPT.format(description=description, candidates=candidates),
        },
    ]


def finalize_matches(
    proposed: Iterable[LLMMatch | MatchCandidate],
    records: dict[str, Any],
    similarities: dict[str, float] | None = None,
) -> list[MatchCandidate]:
    """Apply the post-filter shared by every matcher.

    Drops matches below the matching floor and ids absent from ``records``
    (ids the model invented, or records excluded before retrieval). Keeps the
    highest-confidence entry per id, sorts by confidence descending and
    attaches the full record.
    """
    similarities = similarities or {}
    best: dict[str, MatchCandidate] = {}
    for match in proposed:
        record = records.get(match.id)
        if record is None:
            logger.debug("Dropping match for unknown id", match_id=match.id)
            continue
        if not passes_match_floor(match.confidence):
            continue
        current = best.get(match.id)
        if current is not None and current.confidence >= match.confidence:
            continue
        best[match.id] = MatchCandidate(
            id=match.id,
            confidence=match.confidence,
            reason=match.reason,
            record=record,
            similarity=similarities.get(match.id),
        )
    return sorted(best.values(), key=lambda m: m.confidence, reverse=True)


def new_idea_hint(
    description: str,
    matches: Sequence[MatchCandidate],
    proposal: LLMNewIdeaProposal | None,
    config: MatchingConfig,
) -> SuggestedNewIdea:
    """Deterministic "create a new idea?" hint.

    ``should_create`` depends only on the best surviving confidence. The
    model's proposed title/description is used when present, otherwise
    both are derived from the feedback text.
    """
    best = matches[0].confidence if matches else 0.0
    should_create = best < config.new_idea_threshold

    clean = " ".join(description.split())
    title = (proposal.title.strip() if proposal else "") or clean[: config.proposal_title_max_chars]
    body = (proposal.description.strip() if proposal else "") or description
    return SuggestedNewIdea(should_create=should_create, title=title, description=body)


def as_store(candidates: Sequence[Any] | VectorStore) -> VectorStore:
    if isinstance(candidates, VectorStore):
        return candidates
    return InMemoryVectorStore(candidates)


class MatchRefiner:
    """
    Stage-1 retrieval plus Stage-2 LLM refinement.

    Usage:
        refiner = MatchRefiner(embedding_service, llm_client)
        result = await refiner.find_evidence(idea.title, idea.description, feedback_pool)
        if result is None:
            ...  # nothing retrievable, use FallbackMatcher
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        llm_client: LLMClient,
        config: MatchingConfig | None = None,
    ):
        self._embedder = embedding_service
        self._llm = llm_client
        self._config = config or MatchingConfig()

    @property
    def config(self) -> MatchingConfig:
        return self._config

    async def retrieve(
        self,
        query_text: str,
        candidates: Sequence[Any] | VectorStore,
        limit: int,
        threshold: float | None = None,
        exclude_ids: Iterable[str] | None = None,
        statuses: set[str] | None = None,
    ) -> list[VectorSearchResult] | None:
        """
        Stage 1: embed ``query_text`` and search the corpus.

        Exclusions are applied as a retrieval filter, so excluded records
        never occupy a slot in ``limit``.

        Returns:
            None if the query could not be embedded, otherwise the ranked
            candidates (possibly empty).
        """
        query_vector = await self._embedder.embed(query_text)
        if query_vector is None:
            logger.info("Stage 1 skipped: query could not be embedded")
            return None

        store = as_store(candidates)
        filters = VectorSearchFilter(exclude_ids=set(exclude_ids or ()), statuses=statuses)
        results = await store.search(
            query_vector,
            limit=limit,
            threshold=self._config.recall_threshold if threshold is None else threshold,
            filters=filters,
        )
        logger.info("Stage 1 complete", candidates=len(results), limit=limit)
        return results

    async def find_evidence(
        self,
        title: str,
        description: str,
        candidates: Sequence[FeedbackItem] | VectorStore,
        exclude_ids: Iterable[str] | None = None,
        limit: int | None = None,
        threshold: float | None = None,
        statuses: set[str] | None = None,
    ) -> EvidenceResult | None:
        """Find feedback that supports the idea ``title``/``description``."""
        query = f"{title}. {description}".strip() if description else title
        results = await self.retrieve(
            query,
            candidates,
            limit=limit or self._config.evidence_limit,
            threshold=threshold,
            exclude_ids=exclude_ids,
            statuses=statuses,
        )
        if not results:
            return None

        records = {r.record_id: r.record for r in results}
        similarities = {r.record_id: r.score for r in results}
        rendered = render_feedback_candidates(
            [(r.record, r.score) for r in results], self._config.description_preview_chars,
        )

        proposed = await self._refine(
            evidence_messages(title, description, rendered), LLMMatchResponse,
        )
        if proposed is None:
            matches = finalize_matches(self._similarity_matches(results), records, similarities)
            return EvidenceResult(
                matches=matches,
                status="matched" if matches else "no_matches",
                strategy="similarity_only",
            )

        matches = finalize_matches(proposed.matches, records, similarities)
        return EvidenceResult(
            matches=matches,
            status="matched" if matches else "no_matches",
            strategy="two_stage",
        )

    async def suggest_ideas(
        self,
        description: str,
        ideas: Sequence[Idea] | VectorStore,
        exclude_ids: Iterable[str] | None = None,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> IdeaSuggestionResult | None:
        """Suggest existing ideas for one feedback ``description``."""
        results = await self.retrieve(
            description,
            ideas,
            limit=limit or self._config.idea_limit,
            threshold=threshold,
            exclude_ids=exclude_ids,
        )
        if not results:
            return None

        records = {r.record_id: r.record for r in results}
        similarities = {r.record_id: r.score for r in results}
        rendered = render_idea_candidates(
            [(r.record, r.score) for r in results], self._config.description_preview_chars,
        )

        proposed = await self._refine(idea_messages(description, rendered), LLMIdeaSuggestionResponse)
        if proposed is None:
            matches = finalize_matches(self._similarity_matches(results), records, similarities)
            return IdeaSuggestionResult(
                matches=matches,
                suggested_new_idea=new_idea_hint(description, matches, None, self._config),
                status="matched" if matches else "no_matches",
                strategy="similarity_only",
            )

        matches = finalize_matches(proposed.matches, records, similarities)
        return IdeaSuggestionResult(
            matches=matches,
            suggested_new_idea=new_idea_hint(
                description, matches, proposed.suggested_new_idea, self._config,
            ),
            status="matched" if matches else "no_matches",
            strategy="two_stage",
        )

    async def _refine(self, messages: list[ChatMessage], model: type) -> Any:
        """Stage 2. Returns the parsed response, or None to degrade to similarity."""
        try:
            text = await self._llm.chat(messages)
        except LLMError as e:
            logger.warning("Stage 2 unavailable, using similarity scores", error=str(e))
            return None

        parsed = parse_llm_json(text, model)
        if isinstance(parsed, ParseFallback):
            logger.warning("Stage 2 response unparseable, using similarity scores", reason=parsed.reason)
            return None
        return parsed.value

    @staticmethod
    def _similarity_matches(results: Sequence[VectorSearchResult]) -> list[MatchCandidate]:
        return [
            MatchCandidate(id=r.record_id, confidence=r.score, reason=FALLBACK_REASON, similarity=r.score)
            for r in results
        ]
