"""
pgvector implementation of the VectorStore interface.

Searches the ``feedback`` or ``ideas`` table with the pgvector ``<=>``
operator (cosine distance), backed by the HNSW indexes created in
``TriageRepository.create_tables``.
"""

from typing import Any, Callable, Literal

import structlog

from src.storage.database import Database
from src.storage.repository import (
    TriageRepository,
    convert_rows,
    expand_status_values,
    row_to_feedback,
    row_to_idea,
)
from src.vectorstore.base import VectorSearchFilter, VectorSearchResult, VectorStore
from src.vectorstore.config import VectorStoreConfig
from src.vectorstore.similarity import to_pgvector

logger = structlog.get_logger(__name__)

TableName = Literal["feedback", "ideas"]

_STATUS_COLUMNS: dict[str, str] = {"feedback": "triage_status", "ideas": "status"}
_ROW_MAPPERS: dict[str, Callable[[Any], Any]] = {"feedback": row_to_feedback, "ideas": row_to_idea}


class PgVectorStore(VectorStore):
    """
    pgvector-based vector store over one triage table.

    Filters (exclusions, statuses) are applied in SQL before ranking, so the
    result contract matches InMemoryVectorStore.
    """

    def __init__(
        self,
        database: Database,
        table: TableName = "feedback",
        repository: TriageRepository | None = None,
        config: VectorStoreConfig | None = None,
    ):
        """
        Args:
            database: Connected Database instance
            table: ``feedback`` or ``ideas``
            repository: Optional TriageRepository (created if not provided)
            config: Optional configuration
        """
        if table not in _STATUS_COLUMNS:
            raise ValueError(f"Unsupported table {table!r}. Must be one of: {list(_STATUS_COLUMNS)}")
        self._db = database
        self._table = table
        self._repo = repository or TriageRepository(database)
        self._config = config or VectorStoreConfig()

    async def upsert(self, ids: list[str], embeddings: list[list[float]]) -> int:
        """
        Update embeddings for existing rows.

        Returns:
            Number of rows updated
        """
        if len(ids) != len(embeddings):
            raise ValueError(
                f"ids and embeddings must have same length: {len(ids)} != {len(embeddings)}"
            )

        update = (
            self._repo.update_feedback_embedding
            if self._table == "feedback"
            else self._repo.update_idea_embedding
        )
        updated = 0
        for record_id, embedding in zip(ids, embeddings):
            if await update(record_id, embedding):
                updated += 1

        logger.info("Upserted embeddings", table=self._table, updated=updated, total=len(ids))
        return updated

    async def search(
        self,
        query_embedding: list[float],
        limit: int | None = None,
        threshold: float | None = None,
        filters: VectorSearchFilter | None = None,
    ) -> list[VectorSearchResult]:
        """
        Search the table for rows similar to ``query_embedding``.

        Returns:
            List of search results sorted by similarity (descending)
        """
        limit = self._config.default_limit if limit is None else limit
        threshold = self._config.default_threshold if threshold is None else threshold
        if limit <= 0 or not query_embedding:
            return []

        conditions = ["embedding IS NOT NULL"]
        params: list[Any] = [to_pgvector(query_embedding)]
        param_idx = 2

        if filters:
            if filters.exclude_ids:
                conditions.append(f"id != ALL(${param_idx})")
                params.append(sorted(filters.exclude_ids))
                param_idx += 1

            if filters.statuses is not None:
                conditions.append(f"{_STATUS_COLUMNS[self._table]} = ANY(${param_idx})")
                params.append(expand_status_values(filters.statuses))
                param_idx += 1

        where_clause = " AND ".join(conditions)

        sql = f"""
            SELECT *, 1 - (embedding <=> $1) AS similarity
            FROM {self._table}
            WHERE {where_clause}
              AND 1 - (embedding <=> $1) >= ${param_idx}
            ORDER BY embedding <=> $1
            LIMIT ${param_idx + 1}
        """
        params.extend([threshold, limit])

        rows = await self._db.fetch(sql, *params)
        return convert_rows(rows, self._row_to_result)

    async def get_by_ids(self, ids: list[str]) -> list[VectorSearchResult]:
        """Retrieve rows by id (score is 1.0 for exact id matches)."""
        if not ids:
            return []
        rows = await self._db.fetch(f"SELECT * FROM {self._table} WHERE id = ANY($1)", ids)
        return [self._row_to_result(row, score=1.0) for row in rows]

    def _row_to_result(self, row: Any, score: float | None = None) -> VectorSearchResult:
        """Convert database row to VectorSearchResult."""
        result_score = score if score is not None else float(row.get("similarity", 0.0))
        return VectorSearchResult(
            record_id=row["id"],
            score=min(1.0, max(0.0, result_score)),
            record=_ROW_MAPPERS[self._table](row),
        )
