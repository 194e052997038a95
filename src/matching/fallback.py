"""
LLM-only matching over a capped slice of the raw corpus.

Used when Stage 1 cannot help: no embeddings exist yet, the query could
not be embedded, or retrieval returned nothing. The whole (capped) pool is
inlined into a single prompt with the same rubric and confidence floor as
Stage 2. There is no similarity fallback here, so any LLM failure yields an
empty ``ai_unavailable`` result.
"""

from typing import Any, Iterable, Sequence

import structlog

from src.llm.client import LLMClient, LLMError
from src.matching.config import MatchingConfig
from src.matching.parsing import (
    LLMIdeaSuggestionResponse,
    LLMMatchResponse,
    ParseFallback,
    parse_llm_json,
)
from src.matching.refiner import (
    evidence_messages,
    finalize_matches,
    idea_messages,
    new_idea_hint,
    render_feedback_candidates,
    render_idea_candidates,
)
from src.matching.schemas import EvidenceResult, FeedbackItem, Idea, IdeaSuggestionResult
from src.providers.base import ChatMessage

logger = structlog.get_logger(__name__)


def _record_status(record: Any) -> str | None:
    status = getattr(record, "triage_status", None) or getattr(record, "status", None)
    return getattr(status, "value", status)


class FallbackMatcher:
    """Single-call LLM matcher with the same output shape as MatchRefiner."""

    def __init__(self, llm_client: LLMClient, config: MatchingConfig | None = None):
        self._llm = llm_client
        self._config = config or MatchingConfig()

    def cap_pool(
        self,
        pool: Iterable[Any],
        exclude_ids: Iterable[str] | None = None,
        statuses: set[str] | None = None,
    ) -> list[Any]:
        """Apply exclusions and status filters, then cap to ``fallback_max_items``."""
        excluded = set(exclude_ids or ())
        eligible = [
            record
            for record in pool
            if record.id not in excluded
            and (statuses is None or _record_status(record) in statuses)
        ]
        return eligible[: self._config.fallback_max_items]

    async def find_evidence(
        self,
        title: str,
        description: str,
        pool: Sequence[FeedbackItem],
        exclude_ids: Iterable[str] | None = None,
        statuses: set[str] | None = None,
    ) -> EvidenceResult:
        items = self.cap_pool(pool, exclude_ids, statuses)
        if not items:
            return EvidenceResult(status="no_matches", strategy="none")
        if not self._llm.available:
            return EvidenceResult(status="ai_unavailable", strategy="none")

        rendered = render_feedback_candidates(
            [(item, None) for item in items], self._config.description_preview_chars,
        )
        response = await self._ask(evidence_messages(title, description, rendered), LLMMatchResponse)
        if response is None:
            return EvidenceResult(status="ai_unavailable", strategy="none")

        matches = finalize_matches(response.matches, {item.id: item for item in items})
        return EvidenceResult(
            matches=matches,
            status="matched" if matches else "no_matches",
            strategy="llm_only",
        )

    async def suggest_ideas(
        self,
        description: str,
        ideas: Sequence[Idea],
        exclude_ids: Iterable[str] | None = None,
    ) -> IdeaSuggestionResult:
        items = self.cap_pool(ideas, exclude_ids)
        if not items:
            return IdeaSuggestionResult(
                suggested_new_idea=new_idea_hint(description, [], None, self._config),
                status="no_matches",
                strategy="none",
            )
        if not self._llm.available:
            return IdeaSuggestionResult(
                suggested_new_idea=new_idea_hint(description, [], None, self._config),
                status="ai_unavailable",
                strategy="none",
            )

        rendered = render_idea_candidates(
            [(idea, None) for idea in items], self._config.description_preview_chars,
        )
        response = await self._ask(idea_messages(description, rendered), LLMIdeaSuggestionResponse)
        if response is None:
            return IdeaSuggestionResult(
                suggested_new_idea=new_idea_hint(description, [], None, self._config),
                status="ai_unavailable",
                strategy="none",
            )

        matches = finalize_matches(response.matches, {idea.id: idea for idea in items})
        return IdeaSuggestionResult(
            matches=matches,
            suggested_new_idea=new_idea_hint(
                description, matches, response.suggested_new_idea, self._config,
            ),
            status="matched" if matches else "no_matches",
            strategy="llm_only",
        )

    async def _ask(self, messages: list[ChatMessage], model: type) -> Any:
        try:
            text = await self._llm.chat(messages)
        except LLMError as e:
            logger.warning("Fallback matcher LLM call failed", error=str(e))
            return None

        parsed = parse_llm_json(text, model)
        if isinstance(parsed, ParseFallback):
            logger.warning("Fallback matcher response unparseable", reason=parsed.reason)
            return None
        return parsed.value
