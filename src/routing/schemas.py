"""Schemas for owner routing.

ProductArea maps 1:1 to the ``product_areas`` table. It is purely a routing
target: feedback is routed to an area, and the area's owner becomes the
suggested owner.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ProductArea:
    """A routing bucket with an owner.

    Attributes:
        name: Display name (required).
        id: Unique identifier.
        description: What the area covers.
        keywords: Terms folded into the embedding text.
        owner_id: Team member who owns the area.
        color: Display color.
        embedding: Vector of ``embedding_text``.
    """

    name: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    owner_id: str | None = None
    color: str | None = None
    embedding: list[float] | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("ProductArea.name must not be empty")
        self.description = self.description or ""
        self.keywords = [k.strip() for k in (self.keywords or []) if k and k.strip()]

    @property
    def routable(self) -> bool:
        """Only areas with both an embedding and an owner can receive feedback."""
        return bool(self.embedding) and self.owner_id is not None

    @property
    def embedding_text(self) -> str:
        parts = [self.name, self.description, *self.keywords]
        return ". ".join(p for p in parts if p)


@dataclass
class OwnerSuggestion:
    """Routing outcome for one feedback item. Always produced, possibly empty."""

    feedback_id: str
    product_area_id: str | None = None
    product_area_name: str | None = None
    owner_id: str | None = None
    confidence: float = 0.0
    reasoning: str = ""

    @property
    def matched(self) -> bool:
        return self.product_area_id is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "feedbackId": self.feedback_id,
            "productAreaId": self.product_area_id,
            "productAreaName": self.product_area_name,
            "ownerId": self.owner_id,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
        }
