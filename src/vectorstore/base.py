"""
Abstract base class and data models for vector store implementations.

Defines the interface that all vector store backends must implement,
plus shared data structures for search results and filters.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VectorSearchResult:
    """
    Result from a vector similarity search.

    Attributes:
        record_id: Id of the matched record
        score: Cosine similarity (0.0-1.0, higher is more similar)
        record: The full matched record (FeedbackItem, Idea, ...)
    """

    record_id: str
    score: float
    record: Any = None

    def __post_init__(self) -> None:
        """Validate score is in valid range."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Score must be between 0.0 and 1.0, got {self.score}")


@dataclass
class VectorSearchFilter:
    """
    Filter criteria for vector searches, combined with AND logic.

    Filters apply to the corpus before ranking, so an excluded record can
    never take a slot in the ``limit``.

    Attributes:
        exclude_ids: Record ids that must not be returned
        statuses: Only records whose status is one of these
    """

    exclude_ids: set[str] = field(default_factory=set)
    statuses: set[str] | None = None

    def __post_init__(self) -> None:
        self.exclude_ids = set(self.exclude_ids)
        if self.statuses is not None:
            self.statuses = set(self.statuses)

    @property
    def is_empty(self) -> bool:
        """Check if no filters are set."""
        return not self.exclude_ids and self.statuses is None


class VectorStore(ABC):
    """
    Abstract base class for vector store implementations.

    A search is logically a pure function of (query vector, corpus): only
    records with similarity >= threshold, ordered by similarity descending,
    truncated to ``limit``. A corpus without stored embeddings yields ``[]``.
    """

    @abstractmethod
    async def search(
        self,
        query_embedding: list[float],
        limit: int | None = None,
        threshold: float | None = None,
        filters: VectorSearchFilter | None = None,
    ) -> list[VectorSearchResult]:
        """
        Search for records similar to ``query_embedding``.

        Args:
            query_embedding: Query vector
            limit: Maximum number of results (VectorStoreConfig.default_limit if None)
            threshold: Minimum similarity score, 0.0-1.0
                (VectorStoreConfig.default_threshold if None)
            filters: Optional filter criteria

        Returns:
            List of search results sorted by similarity (descending)
        """
        ...

    @abstractmethod
    async def upsert(self, ids: list[str], embeddings: list[list[float]]) -> int:
        """
        Store embeddings for existing records (last write wins).

        Returns:
            Number of records updated
        """
        ...

    @abstractmethod
    async def get_by_ids(self, ids: list[str]) -> list[VectorSearchResult]:
        """Retrieve records by id (score is 1.0 for exact id matches)."""
        ...
