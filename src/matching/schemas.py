"""Schema definitions for triage records and match results.

FeedbackItem, Idea and FeedbackIdeaLink map 1:1 to the ``feedback``,
``ideas`` and ``feedback_idea_links`` tables. MatchCandidate and the result
containers are transient: produced by the matchers and handed straight to
the caller, which decides whether to materialize links.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal


class TriageStatus(str, Enum):
    """Workflow state of a feedback item. ``new`` → ``triaged`` | ``archived``."""

    NEW = "new"
    TRIAGED = "triaged"
    ARCHIVED = "archived"


# Older rows and imports still carry "linked"; it always means triaged.
LEGACY_TRIAGE_ALIASES: dict[str, TriageStatus] = {"linked": TriageStatus.TRIAGED}


def normalize_triage_status(value: "str | TriageStatus | None") -> TriageStatus:
    """Collapse legacy aliases into the canonical status.

    Raises:
        ValueError: For unknown status values.
    """
    if isinstance(value, TriageStatus):
        return value
    if value is None:
        return TriageStatus.NEW
    key = value.strip().lower()
    if key in LEGACY_TRIAGE_ALIASES:
        return LEGACY_TRIAGE_ALIASES[key]
    try:
        return TriageStatus(key)
    except ValueError:
        raise ValueError(
            f"Invalid triage_status {value!r}. "
            f"Must be one of: {[s.value for s in TriageStatus] + sorted(LEGACY_TRIAGE_ALIASES)}"
        ) from None


class IdeaStatus(str, Enum):
    """Idea lifecycle, in roadmap order."""

    BACKLOG = "backlog"
    UNDER_CONSIDERATION = "under_consideration"
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    SHIPPED = "shipped"
    WONT_DO = "wont_do"

    @property
    def label(self) -> str:
        return IDEA_STATUS_LABELS[self]


IDEA_STATUS_LABELS: dict[IdeaStatus, str] = {
    IdeaStatus.BACKLOG: "Backlog",
    IdeaStatus.UNDER_CONSIDERATION: "Under Consideration",
    IdeaStatus.PLANNED: "Planned",
    IdeaStatus.IN_PROGRESS: "In Progress",
    IdeaStatus.SHIPPED: "Shipped",
    IdeaStatus.WONT_DO: "Won't Do",
}

IDEA_STATUS_ORDER: tuple[IdeaStatus, ...] = tuple(IdeaStatus)


class Importance(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_money(value: Any) -> float | None:
    """Parse an ARR value; blanks and garbage become None."""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class FeedbackItem:
    """A single customer-reported note needing triage.

    Attributes:
        description: Free-text body (required).
        id: Unique identifier.
        title: Optional short title.
        embedding: Stored vector, populated asynchronously after creation.
        account_name: Customer account; drives ARR dedupe and customer counts.
        account_arr: Account ARR; None is treated as 0.
        potential_arr: Expansion ARR attached to the account.
        triage_status: Canonical status (``linked`` is normalized to triaged).
        assigned_to: Owner id once assigned.
        suggested_owner_id: Owner proposed by routing.
        suggestion_confidence: Confidence of the routing proposal.
        product_area_id: Confirmed product area.
        suggested_product_area_id: Product area proposed by routing.
    """

    description: str
    id: str = field(default_factory=_new_id)
    title: str | None = None
    embedding: list[float] | None = None
    account_name: str | None = None
    account_segment: str | None = None
    account_status: str | None = None
    account_arr: float | None = None
    potential_arr: float | None = None
    importance: Importance | None = None
    triage_status: TriageStatus = TriageStatus.NEW
    assigned_to: str | None = None
    suggested_owner_id: str | None = None
    suggestion_confidence: float | None = None
    product_area_id: str | None = None
    suggested_product_area_id: str | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.description or not self.description.strip():
            raise ValueError("FeedbackItem.description must not be empty")
        self.triage_status = normalize_triage_status(self.triage_status)
        if self.importance is not None and not isinstance(self.importance, Importance):
            self.importance = Importance(str(self.importance).lower())
        self.account_arr = _coerce_money(self.account_arr)
        self.potential_arr = _coerce_money(self.potential_arr)
        if self.account_name is not None:
            self.account_name = self.account_name.strip() or None

    @property
    def arr(self) -> float:
        return self.account_arr or 0.0

    @property
    def potential(self) -> float:
        return self.potential_arr or 0.0

    @property
    def is_triaged(self) -> bool:
        return self.triage_status == TriageStatus.TRIAGED

    @property
    def embedding_text(self) -> str:
        if self.title:
            return f"{self.title}. {self.description}"
        return self.description


@dataclass
class Idea:
    """A product hypothesis that feedback can provide evidence for.

    Derived metrics (feedback count, ARR, customers) are not stored here;
    they are recomputed from links by ``src.aggregation``.
    """

    title: str
    id: str = field(default_factory=_new_id)
    description: str = ""
    status: IdeaStatus = IdeaStatus.BACKLOG
    embedding: list[float] | None = None
    summary: str | None = None
    summary_updated_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("Idea.title must not be empty")
        self.status = IdeaStatus(self.status)
        self.description = self.description or ""

    @property
    def embedding_text(self) -> str:
        return f"{self.title}. {self.description}".strip()


@dataclass
class FeedbackIdeaLink:
    """Join record between a feedback item and an idea."""

    feedback_id: str
    idea_id: str
    confidence: float | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.confidence is not None and not (0.0 <= self.confidence <= 1.0):
            raise ValueError(
                f"Invalid confidence {self.confidence}. Must be between 0 and 1."
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.feedback_id, self.idea_id)


# ── Transient match results ──────────────────────────────

MatchStatus = Literal["matched", "no_matches", "ai_unavailable"]
MatchStrategy = Literal["two_stage", "similarity_only", "llm_only", "none"]


@dataclass
class MatchCandidate:
    """A proposed match between the query item and one corpus record.

    Attributes:
        id: Id of the matched record.
        confidence: Final confidence in [0, 1].
        reason: Short explanation shown to the reviewer.
        record: The full matched record (FeedbackItem or Idea).
        similarity: Stage-1 cosine similarity, when retrieval ran.
    """

    id: str
    confidence: float
    reason: str = ""
    record: Any = None
    similarity: float | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "confidence": self.confidence,
            "reason": self.reason,
            "similarity": self.similarity,
        }


@dataclass
class SuggestedNewIdea:
    """Hint that the feedback deserves a new idea rather than a link."""

    should_create: bool
    title: str = ""
    description: str = ""


@dataclass
class EvidenceResult:
    """Outcome of searching feedback that supports an idea."""

    matches: list[MatchCandidate] = field(default_factory=list)
    status: MatchStatus = "no_matches"
    strategy: MatchStrategy = "none"


@dataclass
class IdeaSuggestionResult:
    """Outcome of suggesting ideas for one feedback item."""

    matches: list[MatchCandidate] = field(default_factory=list)
    suggested_new_idea: SuggestedNewIdea | None = None
    status: MatchStatus = "no_matches"
    strategy: MatchStrategy = "none"
