"""Unit tests for PgVectorStore implementation."""

from unittest.mock import AsyncMock

import pytest

from src.matching.schemas import FeedbackItem, Idea, TriageStatus
from src.vectorstore.base import VectorSearchFilter
from src.vectorstore.config import VectorStoreConfig
from src.vectorstore.pgvector_store import PgVectorStore


class TestPgVectorStoreInit:
    def test_rejects_unknown_table(self, mock_database, mock_repository):
        with pytest.raises(ValueError, match="Unsupported table"):
            PgVectorStore(mock_database, table="documents", repository=mock_repository)


class TestPgVectorStoreUpsert:
    """Tests for PgVectorStore.upsert()."""

    async def test_upsert_feedback_embeddings(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, table="feedback", repository=mock_repository)

        result = await store.upsert(ids=["fb_1", "fb_2"], embeddings=[[1.0, 0.0], [0.0, 1.0]])

        assert result == 2
        mock_repository.update_feedback_embedding.assert_any_call("fb_1", [1.0, 0.0])
        mock_repository.update_idea_embedding.assert_not_called()

    async def test_upsert_idea_embeddings(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, table="ideas", repository=mock_repository)

        await store.upsert(ids=["idea_1"], embeddings=[[1.0, 0.0]])

        mock_repository.update_idea_embedding.assert_called_once_with("idea_1", [1.0, 0.0])

    async def test_upsert_partial_success(self, mock_database, mock_repository):
        mock_repository.update_feedback_embedding = AsyncMock(side_effect=[True, False, True])
        store = PgVectorStore(mock_database, repository=mock_repository)

        result = await store.upsert(ids=["a", "b", "c"], embeddings=[[1.0]] * 3)

        assert result == 2

    async def test_upsert_mismatched_lengths(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, repository=mock_repository)

        with pytest.raises(ValueError, match="must have same length"):
            await store.upsert(ids=["a", "b"], embeddings=[[1.0]])


class TestPgVectorStoreSearch:
    """Tests for PgVectorStore.search()."""

    async def test_search_maps_feedback_rows(self, mock_database, mock_repository, feedback_row):
        mock_database.fetch = AsyncMock(return_value=[feedback_row])
        store = PgVectorStore(mock_database, repository=mock_repository)

        results = await store.search([1.0, 0.0], limit=5, threshold=0.45)

        assert len(results) == 1
        result = results[0]
        assert result.record_id == "fb_1"
        assert result.score == pytest.approx(0.87)
        assert isinstance(result.record, FeedbackItem)
        assert result.record.embedding == [0.6, 0.8]
        # Legacy status normalized on read
        assert result.record.triage_status == TriageStatus.TRIAGED

    async def test_search_maps_idea_rows(self, mock_database, mock_repository, idea_row):
        mock_database.fetch = AsyncMock(return_value=[idea_row])
        store = PgVectorStore(mock_database, table="ideas", repository=mock_repository)

        results = await store.search([1.0, 0.0])

        assert isinstance(results[0].record, Idea)
        sql = mock_database.fetch.call_args.args[0]
        assert "FROM ideas" in sql

    async def test_search_without_filters_passes_threshold_and_limit(
        self, mock_database, mock_repository
    ):
        store = PgVectorStore(mock_database, repository=mock_repository)

        await store.search([1.0, 0.0], limit=7, threshold=0.6)

        args = mock_database.fetch.call_args.args
        sql = args[0]
        assert "embedding <=> $1" in sql
        assert "ALL(" not in sql
        assert args[1] == "[1.0,0.0]"
        assert args[2:] == (0.6, 7)

    async def test_search_applies_filters_in_sql(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, repository=mock_repository)

        await store.search(
            [1.0, 0.0],
            limit=3,
            threshold=0.5,
            filters=VectorSearchFilter(exclude_ids={"b", "a"}, statuses={"triaged"}),
        )

        args = mock_database.fetch.call_args.args
        sql = args[0]
        assert "id != ALL($2)" in sql
        assert "triage_status = ANY($3)" in sql
        assert args[2] == ["a", "b"]
        # Legacy alias included so old rows still match
        assert args[3] == ["linked", "triaged"]
        assert args[4:] == (0.5, 3)

    async def test_search_defaults_from_config(
        self, mock_database, mock_repository, vector_store_config
    ):
        vector_store_config.default_limit = 4
        store = PgVectorStore(mock_database, repository=mock_repository, config=vector_store_config)

        await store.search([1.0, 0.0])

        args = mock_database.fetch.call_args.args
        assert args[2:] == (0.45, 4)

    def test_default_threshold_matches_recall_threshold(self):
        assert VectorStoreConfig(_env_file=None).default_threshold == 0.45

    async def test_search_skips_invalid_rows(self, mock_database, mock_repository, feedback_row):
        blank = {**feedback_row, "id": "fb_blank", "description": ""}
        mock_database.fetch = AsyncMock(return_value=[blank, feedback_row])
        store = PgVectorStore(mock_database, repository=mock_repository)

        results = await store.search([1.0, 0.0])

        assert [r.record_id for r in results] == ["fb_1"]

    async def test_search_zero_limit_skips_query(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, repository=mock_repository)

        assert await store.search([1.0, 0.0], limit=0) == []
        mock_database.fetch.assert_not_called()

    async def test_search_clamps_negative_similarity(self, mock_database, mock_repository, feedback_row):
        feedback_row["similarity"] = -0.0001
        mock_database.fetch = AsyncMock(return_value=[feedback_row])
        store = PgVectorStore(mock_database, repository=mock_repository)

        results = await store.search([1.0, 0.0], threshold=-1.0)

        assert results[0].score == 0.0


class TestPgVectorStoreGetByIds:
    async def test_get_by_ids(self, mock_database, mock_repository, feedback_row):
        mock_database.fetch = AsyncMock(return_value=[feedback_row])
        store = PgVectorStore(mock_database, repository=mock_repository)

        results = await store.get_by_ids(["fb_1"])

        assert results[0].score == 1.0
        assert results[0].record.id == "fb_1"

    async def test_get_by_ids_empty(self, mock_database, mock_repository):
        store = PgVectorStore(mock_database, repository=mock_repository)

        assert await store.get_by_ids([]) == []
        mock_database.fetch.assert_not_called()
