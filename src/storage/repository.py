"""
Triage repository for the feedback, ideas, links and product area tables.

The matching engine itself never persists anything; this repository is what
callers (API routes, CLI backfills) use to load candidate pools and to
materialize accepted matches. Legacy ``linked`` triage rows are normalized
to ``triaged`` as they are read.
"""

import logging
from typing import Any, Callable, Iterable, TypeVar

from src.matching.schemas import (
    FeedbackIdeaLink,
    FeedbackItem,
    Idea,
    TriageStatus,
    LEGACY_TRIAGE_ALIASES,
)
from src.routing.schemas import OwnerSuggestion, ProductArea
from src.storage.database import Database
from src.vectorstore.similarity import from_pgvector, to_pgvector

logger = logging.getLogger(__name__)

T = TypeVar("T")


def expand_status_values(statuses: Iterable[TriageStatus | str]) -> list[str]:
    """Expand canonical statuses to the raw values stored in older rows."""
    values: set[str] = set()
    for status in statuses:
        value = getattr(status, "value", status)
        values.add(value)
        values.update(alias for alias, canonical in LEGACY_TRIAGE_ALIASES.items() if canonical.value == value)
    return sorted(values)


def convert_rows(rows: Iterable[Any], converter: Callable[[Any], T]) -> list[T]:
    """Convert rows with ``converter``; rows that fail validation are logged and skipped."""
    converted: list[T] = []
    for row in rows:
        try:
            converted.append(converter(row))
        except (ValueError, TypeError) as e:
            logger.warning("Skipping invalid row %s: %s", row.get("id", "?"), e)
    return converted


class TriageRepository:
    """Repository for triage records.

    Tables:
        - feedback: customer feedback rows
        - ideas: product hypotheses
        - feedback_idea_links: many-to-many join, one row per pair
        - product_areas: routing targets with owners
    """

    def __init__(self, database: Database):
        self._db = database

    async def create_tables(self, dimension: int = 1536) -> None:
        """Create tables and indexes if they don't exist."""
        create_sql = f"""
        CREATE EXTENSION IF NOT EXISTS vector;

        CREATE TABLE IF NOT EXISTS product_areas (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT DEFAULT '',
            keywords TEXT[] DEFAULT '{{}}',
            owner_id TEXT,
            color TEXT,
            embedding vector({dimension})
        );

        CREATE TABLE IF NOT EXISTS feedback (
            id TEXT PRIMARY KEY,
            title TEXT,
            description TEXT NOT NULL,
            embedding vector({dimension}),
            account_name TEXT,
            account_segment TEXT,
            account_status TEXT,
            account_arr NUMERIC,
            potential_arr NUMERIC,
            importance TEXT,
            triage_status TEXT NOT NULL DEFAULT 'new',
            assigned_to TEXT,
            suggested_owner_id TEXT,
            suggestion_confidence REAL,
            product_area_id TEXT REFERENCES product_areas(id) ON DELETE SET NULL,
            suggested_product_area_id TEXT REFERENCES product_areas(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );

        CREATE TABLE IF NOT EXISTS ideas (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT DEFAULT '',
            status TEXT NOT NULL DEFAULT 'backlog',
            embedding vector({dimension}),
            summary TEXT,
            summary_updated_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );

        CREATE TABLE IF NOT EXISTS feedback_idea_links (
            feedback_id TEXT NOT NULL REFERENCES feedback(id) ON DELETE CASCADE,
            idea_id TEXT NOT NULL REFERENCES ideas(id) ON DELETE CASCADE,
            confidence REAL CHECK (confidence IS NULL OR (confidence >= 0 AND confidence <= 1)),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (feedback_id, idea_id)
        );

        CREATE INDEX IF NOT EXISTS idx_feedback_triage_status ON feedback(triage_status);
        CREATE INDEX IF NOT EXISTS idx_links_idea_id ON feedback_idea_links(idea_id);

        CREATE INDEX IF NOT EXISTS idx_feedback_embedding_hnsw
            ON feedback USING hnsw (embedding vector_cosine_ops);
        CREATE INDEX IF NOT EXISTS idx_ideas_embedding_hnsw
            ON ideas USING hnsw (embedding vector_cosine_ops);
        """
        await self._db.execute(create_sql)
        logger.info("Triage tables created (dimension=%d)", dimension)

    async def normalize_legacy_statuses(self) -> int:
        """Rewrite legacy ``linked`` rows to ``triaged``. Returns rows changed."""
        rows = await self._db.fetch(
            "UPDATE feedback SET triage_status = $1 WHERE triage_status = ANY($2) RETURNING id",
            TriageStatus.TRIAGED.value,
            list(LEGACY_TRIAGE_ALIASES),
        )
        return len(rows)

    # ── Feedback ─────────────────────────────────────────

    async def list_feedback(
        self,
        statuses: Iterable[TriageStatus | str] | None = None,
        limit: int | None = None,
    ) -> list[FeedbackItem]:
        """List feedback, newest first, optionally filtered by triage status."""
        conditions: list[str] = []
        params: list[Any] = []
        if statuses is not None:
            params.append(expand_status_values(statuses))
            conditions.append(f"triage_status = ANY(${len(params)})")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        limit_clause = ""
        if limit is not None:
            params.append(limit)
            limit_clause = f"LIMIT ${len(params)}"

        rows = await self._db.fetch(
            f"SELECT * FROM feedback {where} ORDER BY created_at DESC {limit_clause}",
            *params,
        )
        return convert_rows(rows, row_to_feedback)

    async def get_feedback_by_ids(self, ids: list[str]) -> list[FeedbackItem]:
        if not ids:
            return []
        rows = await self._db.fetch("SELECT * FROM feedback WHERE id = ANY($1)", ids)
        return convert_rows(rows, row_to_feedback)

    async def list_feedback_without_embedding(self, limit: int = 100) -> list[FeedbackItem]:
        rows = await self._db.fetch(
            "SELECT * FROM feedback WHERE embedding IS NULL ORDER BY created_at LIMIT $1",
            limit,
        )
        return convert_rows(rows, row_to_feedback)

    async def list_unassigned_feedback(self, limit: int = 100) -> list[FeedbackItem]:
        rows = await self._db.fetch(
            """
            SELECT * FROM feedback
            WHERE assigned_to IS NULL AND triage_status <> $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            TriageStatus.ARCHIVED.value,
            limit,
        )
        return convert_rows(rows, row_to_feedback)

    async def update_feedback_embedding(self, feedback_id: str, embedding: list[float]) -> bool:
        result = await self._db.fetchval(
            "UPDATE feedback SET embedding = $2 WHERE id = $1 RETURNING id",
            feedback_id,
            to_pgvector(embedding),
        )
        return result is not None

    async def save_owner_suggestion(self, suggestion: OwnerSuggestion) -> bool:
        """Store a routing proposal (not an assignment) on the feedback row."""
        result = await self._db.fetchval(
            """
            UPDATE feedback
            SET suggested_owner_id = $2,
                suggested_product_area_id = $3,
                suggestion_confidence = $4
            WHERE id = $1
            RETURNING id
            """,
            suggestion.feedback_id,
            suggestion.owner_id,
            suggestion.product_area_id,
            suggestion.confidence,
        )
        return result is not None

    # ── Ideas ────────────────────────────────────────────

    async def list_ideas(self) -> list[Idea]:
        rows = await self._db.fetch("SELECT * FROM ideas ORDER BY created_at DESC")
        return convert_rows(rows, row_to_idea)

    async def get_idea(self, idea_id: str) -> Idea | None:
        row = await self._db.fetchrow("SELECT * FROM ideas WHERE id = $1", idea_id)
        return row_to_idea(row) if row else None

    async def list_ideas_without_embedding(self, limit: int = 100) -> list[Idea]:
        rows = await self._db.fetch(
            "SELECT * FROM ideas WHERE embedding IS NULL ORDER BY created_at LIMIT $1",
            limit,
        )
        return convert_rows(rows, row_to_idea)

    async def update_idea_embedding(self, idea_id: str, embedding: list[float]) -> bool:
        result = await self._db.fetchval(
            "UPDATE ideas SET embedding = $2 WHERE id = $1 RETURNING id",
            idea_id,
            to_pgvector(embedding),
        )
        return result is not None

    async def update_idea_summary(self, idea_id: str, summary: str) -> bool:
        result = await self._db.fetchval(
            "UPDATE ideas SET summary = $2, summary_updated_at = NOW() WHERE id = $1 RETURNING id",
            idea_id,
            summary,
        )
        return result is not None

    # ── Links ────────────────────────────────────────────

    async def list_links(
        self,
        idea_id: str | None = None,
        feedback_id: str | None = None,
    ) -> list[FeedbackIdeaLink]:
        conditions: list[str] = []
        params: list[Any] = []
        if idea_id is not None:
            params.append(idea_id)
            conditions.append(f"idea_id = ${len(params)}")
        if feedback_id is not None:
            params.append(feedback_id)
            conditions.append(f"feedback_id = ${len(params)}")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self._db.fetch(
            f"SELECT * FROM feedback_idea_links {where} ORDER BY created_at DESC",
            *params,
        )
        return convert_rows(rows, row_to_link)

    async def list_linked_feedback(self, idea_id: str) -> list[FeedbackItem]:
        rows = await self._db.fetch(
            """
            SELECT f.* FROM feedback f
            JOIN feedback_idea_links l ON l.feedback_id = f.id
            WHERE l.idea_id = $1
            ORDER BY l.created_at DESC
            """,
            idea_id,
        )
        return convert_rows(rows, row_to_feedback)

    async def create_links(self, links: list[FeedbackIdeaLink]) -> int:
        """Insert links, ignoring pairs that already exist.

        Linked feedback still in ``new`` moves to ``triaged``.

        Returns:
            Number of links actually created.
        """
        if not links:
            return 0

        created = 0
        async with self._db.transaction() as conn:
            for link in links:
                inserted = await conn.fetchval(
                    """
                    INSERT INTO feedback_idea_links (feedback_id, idea_id, confidence, created_at)
                    VALUES ($1, $2, $3, $4)
                    ON CONFLICT (feedback_id, idea_id) DO NOTHING
                    RETURNING feedback_id
                    """,
                    link.feedback_id,
                    link.idea_id,
                    link.confidence,
                    link.created_at,
                )
                if inserted is not None:
                    created += 1
            await conn.execute(
                "UPDATE feedback SET triage_status = $1 WHERE id = ANY($2) AND triage_status = $3",
                TriageStatus.TRIAGED.value,
                list({link.feedback_id for link in links}),
                TriageStatus.NEW.value,
            )

        logger.info("Created %d/%d links", created, len(links))
        return created

    # ── Product areas ────────────────────────────────────

    async def list_product_areas(self) -> list[ProductArea]:
        rows = await self._db.fetch("SELECT * FROM product_areas ORDER BY name")
        return convert_rows(rows, row_to_product_area)

    async def update_product_area_embedding(self, area_id: str, embedding: list[float]) -> bool:
        result = await self._db.fetchval(
            "UPDATE product_areas SET embedding = $2 WHERE id = $1 RETURNING id",
            area_id,
            to_pgvector(embedding),
        )
        return result is not None


def row_to_feedback(row: Any) -> FeedbackItem:
    """Convert an asyncpg Record to a FeedbackItem."""
    return FeedbackItem(
        id=row["id"],
        description=row["description"],
        title=row.get("title"),
        embedding=from_pgvector(row.get("embedding")),
        account_name=row.get("account_name"),
        account_segment=row.get("account_segment"),
        account_status=row.get("account_status"),
        account_arr=row.get("account_arr"),
        potential_arr=row.get("potential_arr"),
        importance=row.get("importance"),
        triage_status=row.get("triage_status"),
        assigned_to=row.get("assigned_to"),
        suggested_owner_id=row.get("suggested_owner_id"),
        suggestion_confidence=row.get("suggestion_confidence"),
        product_area_id=row.get("product_area_id"),
        suggested_product_area_id=row.get("suggested_product_area_id"),
        created_at=row["created_at"],
    )


def row_to_idea(row: Any) -> Idea:
    """Convert an asyncpg Record to an Idea."""
    return Idea(
        id=row["id"],
        title=row["title"],
        description=row.get("description") or "",
        status=row.get("status") or "backlog",
        embedding=from_pgvector(row.get("embedding")),
        summary=row.get("summary"),
        summary_updated_at=row.get("summary_updated_at"),
        created_at=row["created_at"],
    )


def row_to_link(row: Any) -> FeedbackIdeaLink:
    """Convert an asyncpg Record to a FeedbackIdeaLink."""
    confidence = row.get("confidence")
    return FeedbackIdeaLink(
        feedback_id=row["feedback_id"],
        idea_id=row["idea_id"],
        confidence=float(confidence) if confidence is not None else None,
        created_at=row["created_at"],
    )


def row_to_product_area(row: Any) -> ProductArea:
    """Convert an asyncpg Record to a ProductArea."""
    return ProductArea(
        id=row["id"],
        name=row["name"],
        description=row.get("description") or "",
        keywords=list(row.get("keywords") or []),
        owner_id=row.get("owner_id"),
        color=row.get("color"),
        embedding=from_pgvector(row.get("embedding")),
    )
