"""Deterministic roll-ups over feedback, ideas and links.

No AI and no I/O: every function takes plain records and returns plain
results. Derived idea metrics are always recomputed from the link list,
which is the source of truth.

Scoring model:
  score = feedback_count * 15 + total_arr * 0.0001 + customer_count * 20

ARR is deduplicated per account (max, not sum) so one account reporting
the same need many times cannot inflate an idea. Feedback without an
account name still counts as a request but contributes neither ARR nor a
customer.
"""

import logging
import math
from collections import Counter
from typing import Iterable, Mapping, Sequence

from src.aggregation.schemas import (
    ArrRollup,
    IdeaMetrics,
    Insights,
    RankedIdea,
    StatusCount,
    TriageStats,
)
from src.matching.schemas import (
    IDEA_STATUS_ORDER,
    FeedbackIdeaLink,
    FeedbackItem,
    Idea,
    TriageStatus,
)

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────

SCORE_PER_REQUEST = 15
SCORE_PER_ARR_DOLLAR = 0.0001  # $10,000 ARR ~ 1 point
SCORE_PER_CUSTOMER = 20

TOP_IDEAS_LIMIT = 10


def _round_half_up(value: float) -> int:
    """Round half away from zero (Python's round() is banker's rounding)."""
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def compute_idea_score(feedback_count: int, total_arr: float, customer_count: int) -> int:
    """Priority score for an idea, rounded to the nearest integer."""
    raw = (
        feedback_count * SCORE_PER_REQUEST
        + (total_arr or 0.0) * SCORE_PER_ARR_DOLLAR
        + customer_count * SCORE_PER_CUSTOMER
    )
    return _round_half_up(raw)


def dedupe_links(links: Iterable[FeedbackIdeaLink]) -> list[FeedbackIdeaLink]:
    """One link per (feedback_id, idea_id); the first occurrence wins."""
    seen: set[tuple[str, str]] = set()
    unique: list[FeedbackIdeaLink] = []
    for link in links:
        if link.key in seen:
            continue
        seen.add(link.key)
        unique.append(link)
    return unique


def rollup_arr(feedback: Iterable[FeedbackItem]) -> ArrRollup:
    """Sum ARR over named accounts, counting each account at its max ARR."""
    best: dict[str, FeedbackItem] = {}
    for item in feedback:
        if not item.account_name:
            continue
        current = best.get(item.account_name)
        if current is None or item.arr > current.arr:
            best[item.account_name] = item

    return ArrRollup(
        total_arr=sum(item.arr for item in best.values()),
        potential_arr=sum(item.potential for item in best.values()),
        customer_count=len(best),
        accounts={name: item.arr for name, item in best.items()},
    )


def compute_idea_metrics(
    idea_id: str,
    links: Iterable[FeedbackIdeaLink],
    feedback_by_id: Mapping[str, FeedbackItem],
) -> IdeaMetrics:
    """Recompute feedback count, ARR, customers and score for one idea.

    Links whose feedback is missing from ``feedback_by_id`` are ignored.
    """
    linked_ids: list[str] = []
    seen: set[str] = set()
    for link in links:
        if link.idea_id != idea_id or link.feedback_id in seen:
            continue
        if link.feedback_id not in feedback_by_id:
            logger.debug("Link %s -> %s has no feedback row", link.feedback_id, idea_id)
            continue
        seen.add(link.feedback_id)
        linked_ids.append(link.feedback_id)

    linked = [feedback_by_id[fid] for fid in linked_ids]
    rollup = rollup_arr(linked)
    segments = Counter(item.account_segment for item in linked if item.account_segment)

    return IdeaMetrics(
        idea_id=idea_id,
        feedback_count=len(linked),
        total_arr=rollup.total_arr,
        potential_arr=rollup.potential_arr,
        customer_count=rollup.customer_count,
        score=compute_idea_score(len(linked), rollup.total_arr, rollup.customer_count),
        segments=dict(segments),
    )


def compute_all_idea_metrics(
    ideas: Iterable[Idea],
    links: Iterable[FeedbackIdeaLink],
    feedback: Iterable[FeedbackItem],
) -> dict[str, IdeaMetrics]:
    """Metrics for every idea (ideas without links get zeroed metrics)."""
    feedback_by_id = {item.id: item for item in feedback}
    by_idea: dict[str, list[FeedbackIdeaLink]] = {}
    for link in dedupe_links(links):
        by_idea.setdefault(link.idea_id, []).append(link)

    return {
        idea.id: compute_idea_metrics(idea.id, by_idea.get(idea.id, []), feedback_by_id)
        for idea in ideas
    }


def _ranked(ideas: Sequence[Idea], metrics: Mapping[str, IdeaMetrics]) -> list[RankedIdea]:
    return [
        RankedIdea(
            idea_id=idea.id,
            title=idea.title,
            status=idea.status.value,
            metrics=metrics.get(idea.id) or IdeaMetrics(idea_id=idea.id),
        )
        for idea in ideas
    ]


def rank_ideas_by_score(
    ideas: Sequence[Idea],
    metrics: Mapping[str, IdeaMetrics],
) -> list[RankedIdea]:
    """All ideas, highest score first (ties keep input order)."""
    return sorted(_ranked(ideas, metrics), key=lambda r: r.metrics.score, reverse=True)


def top_ideas_by_arr(
    ideas: Sequence[Idea],
    metrics: Mapping[str, IdeaMetrics],
    limit: int = TOP_IDEAS_LIMIT,
) -> list[RankedIdea]:
    """Ideas with positive ARR, highest ARR first, truncated to ``limit``."""
    ranked = [r for r in _ranked(ideas, metrics) if r.metrics.total_arr > 0]
    ranked.sort(key=lambda r: r.metrics.total_arr, reverse=True)
    return ranked[:limit]


def triage_stats(feedback: Iterable[FeedbackItem]) -> TriageStats:
    """Status counts and the percentage triaged.

    Legacy ``linked`` rows are already normalized to triaged on the record,
    so they land in the same bucket.
    """
    counts = Counter(item.triage_status for item in feedback)
    total = sum(counts.values())
    triaged = counts[TriageStatus.TRIAGED]
    return TriageStats(
        total=total,
        new=counts[TriageStatus.NEW],
        triaged=triaged,
        archived=counts[TriageStatus.ARCHIVED],
        percent_triaged=_round_half_up(100 * triaged / total) if total else 0,
    )


def idea_status_breakdown(ideas: Iterable[Idea]) -> list[StatusCount]:
    """Idea counts per status in roadmap order, omitting empty statuses."""
    counts = Counter(idea.status for idea in ideas)
    return [
        StatusCount(status=status.value, label=status.label, count=counts[status])
        for status in IDEA_STATUS_ORDER
        if counts[status]
    ]


def insights(
    feedback: Sequence[FeedbackItem],
    ideas: Sequence[Idea],
    links: Sequence[FeedbackIdeaLink],
    top_limit: int = TOP_IDEAS_LIMIT,
) -> Insights:
    """Pipeline overview: triage progress, linked ARR and top ideas."""
    feedback_by_id = {item.id: item for item in feedback}
    unique_links = dedupe_links(links)

    linked_feedback_ids = {link.feedback_id for link in unique_links}
    linked = [feedback_by_id[fid] for fid in feedback_by_id if fid in linked_feedback_ids]
    rollup = rollup_arr(linked)

    metrics = compute_all_idea_metrics(ideas, unique_links, feedback)
    stats = triage_stats(feedback)

    return Insights(
        total_feedback=stats.total,
        percent_triaged=stats.percent_triaged,
        total_ideas=len(ideas),
        linked_account_arr=rollup.total_arr,
        linked_potential_arr=rollup.potential_arr,
        total_customers=rollup.customer_count,
        status_breakdown=idea_status_breakdown(ideas),
        top_ideas=top_ideas_by_arr(ideas, metrics, top_limit),
    )

