"""
Request and response models for the triage API.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from src.aggregation.thresholds import is_auto_accept
from src.matching.schemas import FeedbackItem, Idea, MatchCandidate, SuggestedNewIdea
from src.routing.schemas import OwnerSuggestion, ProductArea


# ── Record payloads ──────────────────────────────────────


class FeedbackPayload(BaseModel):
    """A feedback row as sent by the client."""

    id: str
    description: str = Field(..., min_length=1)
    title: str | None = None
    embedding: list[float] | None = None
    account_name: str | None = None
    account_segment: str | None = None
    account_arr: float | None = None
    potential_arr: float | None = None
    triage_status: str | None = None

    def to_record(self) -> FeedbackItem:
        return FeedbackItem(
            id=self.id,
            description=self.description,
            title=self.title,
            embedding=self.embedding,
            account_name=self.account_name,
            account_segment=self.account_segment,
            account_arr=self.account_arr,
            potential_arr=self.potential_arr,
            triage_status=self.triage_status,
        )


class IdeaPayload(BaseModel):
    id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    status: str = "backlog"
    embedding: list[float] | None = None

    def to_record(self) -> Idea:
        return Idea(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            embedding=self.embedding,
        )


class ProductAreaPayload(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    description: str = ""
    keywords: list[str] = Field(default_factory=list)
    owner_id: str | None = None
    embedding: list[float] | None = None

    def to_record(self) -> ProductArea:
        return ProductArea(
            id=self.id,
            name=self.name,
            description=self.description,
            keywords=self.keywords,
            owner_id=self.owner_id,
            embedding=self.embedding,
        )


# ── Matching ─────────────────────────────────────────────


class EvidenceRequest(BaseModel):
    """Find feedback supporting an idea."""

    title: str = Field(..., min_length=1)
    description: str = ""
    candidates: list[FeedbackPayload] = Field(default_factory=list)
    exclude_ids: list[str] = Field(
        default_factory=list,
        description="Feedback already linked to the idea",
    )
    limit: int | None = Field(default=None, ge=1, le=500)


class IdeaSuggestionRequest(BaseModel):
    """Suggest ideas for one feedback item."""

    description: str = Field(..., min_length=1)
    ideas: list[IdeaPayload] = Field(default_factory=list)
    exclude_ids: list[str] = Field(
        default_factory=list,
        description="Ideas the feedback is already linked to",
    )
    limit: int | None = Field(default=None, ge=1, le=500)


class MatchResponseItem(BaseModel):
    id: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    reason: str = ""
    similarity: float | None = None
    auto_accept: bool = Field(
        default=False,
        description="Confidence is high enough to pre-select for the reviewer",
    )

    @classmethod
    def from_candidate(cls, candidate: MatchCandidate) -> "MatchResponseItem":
        return cls(
            id=candidate.id,
            confidence=candidate.confidence,
            reason=candidate.reason,
            similarity=candidate.similarity,
            auto_accept=is_auto_accept(candidate.confidence),
        )


class SuggestedNewIdeaModel(BaseModel):
    should_create: bool
    title: str = ""
    description: str = ""

    @classmethod
    def from_hint(cls, hint: SuggestedNewIdea) -> "SuggestedNewIdeaModel":
        return cls(should_create=hint.should_create, title=hint.title, description=hint.description)


class MatchResponse(BaseModel):
    status: Literal["matched", "no_matches", "ai_unavailable"]
    strategy: Literal["two_stage", "similarity_only", "llm_only", "none"]
    matches: list[MatchResponseItem] = Field(default_factory=list)
    suggested_new_idea: SuggestedNewIdeaModel | None = None


# ── Routing ──────────────────────────────────────────────


class OwnerRoutingRequest(BaseModel):
    feedback: list[FeedbackPayload] = Field(..., min_length=1, max_length=500)
    product_areas: list[ProductAreaPayload] = Field(default_factory=list)


class OwnerSuggestionModel(BaseModel):
    feedback_id: str
    product_area_id: str | None = None
    product_area_name: str | None = None
    owner_id: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    displayable: bool = False

    @classmethod
    def from_suggestion(cls, suggestion: OwnerSuggestion, displayable: bool) -> "OwnerSuggestionModel":
        return cls(
            feedback_id=suggestion.feedback_id,
            product_area_id=suggestion.product_area_id,
            product_area_name=suggestion.product_area_name,
            owner_id=suggestion.owner_id,
            confidence=suggestion.confidence,
            reasoning=suggestion.reasoning,
            displayable=displayable,
        )


class OwnerRoutingResponse(BaseModel):
    suggestions: list[OwnerSuggestionModel]


# ── Summary ──────────────────────────────────────────────


class SummarizeRequest(BaseModel):
    title: str = ""
    items: list[FeedbackPayload] = Field(default_factory=list)


class SummarizeResponse(BaseModel):
    summary: str | None = None
    status: Literal["ok", "empty", "ai_unavailable"]


# ── Health ───────────────────────────────────────────────


class ComponentHealth(BaseModel):
    """Health status of an individual infrastructure component."""

    status: str = Field(..., description="healthy, unhealthy, disabled or unconfigured")
    latency_ms: float | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy, degraded, or unhealthy",
    )
    chat_provider: str | None = None
    embedding_provider: str | None = None
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    service_stats: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
    error_type: str | None = Field(default=None, description="Type of error")
