"""Result types for the aggregation engine."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ArrRollup:
    """ARR across a set of feedback, deduplicated per account.

    Attributes:
        total_arr: Sum over named accounts of each account's max ARR.
        potential_arr: Potential ARR carried by each account's max-ARR row.
        customer_count: Distinct named accounts.
        accounts: account name -> counted ARR.
    """

    total_arr: float = 0.0
    potential_arr: float = 0.0
    customer_count: int = 0
    accounts: dict[str, float] = field(default_factory=dict)


@dataclass
class IdeaMetrics:
    """Derived metrics for one idea, recomputed from its links."""

    idea_id: str
    feedback_count: int = 0
    total_arr: float = 0.0
    potential_arr: float = 0.0
    customer_count: int = 0
    score: int = 0
    segments: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "idea_id": self.idea_id,
            "feedback_count": self.feedback_count,
            "total_arr": self.total_arr,
            "potential_arr": self.potential_arr,
            "customer_count": self.customer_count,
            "score": self.score,
            "segments": dict(self.segments),
        }


@dataclass
class TriageStats:
    total: int = 0
    new: int = 0
    triaged: int = 0
    archived: int = 0
    percent_triaged: int = 0


@dataclass
class StatusCount:
    status: str
    label: str
    count: int


@dataclass
class RankedIdea:
    idea_id: str
    title: str
    status: str
    metrics: IdeaMetrics


@dataclass
class Insights:
    """Pipeline overview across all feedback, ideas and links."""

    total_feedback: int = 0
    percent_triaged: int = 0
    total_ideas: int = 0
    linked_account_arr: float = 0.0
    linked_potential_arr: float = 0.0
    total_customers: int = 0
    status_breakdown: list[StatusCount] = field(default_factory=list)
    top_ideas: list[RankedIdea] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_feedback": self.total_feedback,
            "percent_triaged": self.percent_triaged,
            "total_ideas": self.total_ideas,
            "linked_account_arr": self.linked_account_arr,
            "linked_potential_arr": self.linked_potential_arr,
            "total_customers": self.total_customers,
            "status_breakdown": [
                {"status": s.status, "label": s.label, "count": s.count}
                for s in self.status_breakdown
            ],
            "top_ideas": [
                {"idea_id": r.idea_id, "title": r.title, "status": r.status, **r.metrics.to_dict()}
                for r in self.top_ideas
            ],
        }
