"""
Deterministic aggregation over triage records.

Components:
- thresholds: display / match-floor / auto-accept confidence constants
- engine: ARR roll-up with per-account dedupe, idea scoring, triage stats
  and the insights overview
"""

from src.aggregation.engine import (
    SCORE_PER_ARR_DOLLAR,
    SCORE_PER_CUSTOMER,
    SCORE_PER_REQUEST,
    compute_all_idea_metrics,
    compute_idea_metrics,
    compute_idea_score,
    dedupe_links,
    insights,
    rank_ideas_by_score,
    rollup_arr,
    top_ideas_by_arr,
    triage_stats,
)
from src.aggregation.schemas import ArrRollup, IdeaMetrics, Insights, TriageStats
from src.aggregation.thresholds import (
    AUTO_ACCEPT_THRESHOLD,
    DISPLAY_THRESHOLD,
    MATCH_CONFIDENCE_FLOOR,
    is_auto_accept,
    is_displayable,
    select_auto_accepted,
)

__all__ = [
    "AUTO_ACCEPT_THRESHOLD",
    "DISPLAY_THRESHOLD",
    "MATCH_CONFIDENCE_FLOOR",
    "SCORE_PER_ARR_DOLLAR",
    "SCORE_PER_CUSTOMER",
    "SCORE_PER_REQUEST",
    "ArrRollup",
    "IdeaMetrics",
    "Insights",
    "TriageStats",
    "compute_all_idea_metrics",
    "compute_idea_metrics",
    "compute_idea_score",
    "dedupe_links",
    "insights",
    "is_auto_accept",
    "is_displayable",
    "rank_ideas_by_score",
    "rollup_arr",
    "select_auto_accepted",
    "top_ideas_by_arr",
    "triage_stats",
]
