"""
PostgreSQL connection pool for the triage tables.

Every pooled connection gets ``hnsw.ef_search`` raised to
``Settings.db_hnsw_ef_search`` so that filtered similarity queries
(exclusions, status filters) still return up to the Stage-1 limit. The
pgvector extension is created once, when the pool is opened.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import asyncpg

from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class Database:
    """
    Async PostgreSQL pool wrapper used by the repository and PgVectorStore.

    Usage:
        async with Database() as db:
            rows = await db.fetch("SELECT id FROM feedback")
    """

    def __init__(self, settings: Settings | None = None, database_url: str | None = None):
        self._settings = settings or get_settings()
        self._database_url = database_url or str(self._settings.database_url)
        self._pool: asyncpg.Pool | None = None

    async def _init_connection(self, conn: asyncpg.Connection) -> None:
        await conn.execute(f"SET hnsw.ef_search = {int(self._settings.db_hnsw_ef_search)}")

    async def connect(self) -> None:
        """Open the pool; the vector extension must exist before any query."""
        settings = self._settings
        try:
            conn = await asyncpg.connect(self._database_url)
            try:
                await conn.execute("CREATE EXTENSION IF NOT EXISTS vector")
            finally:
                await conn.close()

            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=settings.db_command_timeout,
                init=self._init_connection,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Failed to connect to database: %s", e)
            raise

        logger.info(
            "Database connected (pool %d-%d, ef_search %d)",
            settings.db_pool_min_size,
            settings.db_pool_max_size,
            settings.db_hnsw_ef_search,
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """Connection with an open transaction (link creation, migrations)."""
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        return await self.pool.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        return await self.pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        return await self.pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        return await self.pool.fetchval(query, *args)

    async def check(self) -> dict[str, Any]:
        """
        Report what matching needs from the database.

        Returns:
            ``pgvector``: installed extension version, or None if missing
            ``pool_size``: open connections in the pool

        Raises:
            RuntimeError: If not connected
            asyncpg.PostgresError / OSError: If the server cannot be reached
        """
        version = await self.fetchval(
            "SELECT extversion FROM pg_extension WHERE extname = 'vector'"
        )
        return {"pgvector": version, "pool_size": self.pool.get_size()}
