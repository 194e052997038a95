"""Tests for EmbeddingService."""

import json
from unittest.mock import AsyncMock

import pytest

from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService, normalize_text, reconcile_dimension
from src.matching.schemas import FeedbackItem, Idea
from src.providers.config import ProviderConfig
from src.routing.schemas import ProductArea
from src.vectorstore.similarity import cosine_similarity
from tests.test_embedding.conftest import StubEmbeddingBackend


class TestNormalizeText:
    def test_collapses_whitespace(self):
        assert normalize_text("  bulk\n\texport   times out ", 100) == "bulk export times out"

    def test_truncates_to_budget(self):
        assert normalize_text("abcdef", 3) == "abc"

    @pytest.mark.parametrize("text", [None, "", "   \n\t "])
    def test_empty_inputs(self, text):
        assert normalize_text(text, 100) == ""


class TestReconcileDimension:
    def test_exact_dimension_unchanged(self):
        assert reconcile_dimension([1.0, 2.0, 3.0], 3) == [1.0, 2.0, 3.0]

    def test_zero_pad(self):
        assert reconcile_dimension([1.0, 2.0], 4) == [1.0, 2.0, 0.0, 0.0]

    def test_tile(self):
        assert reconcile_dimension([1.0, 2.0, 3.0], 7, strategy="tile") == [
            1.0, 2.0, 3.0, 1.0, 2.0, 3.0, 1.0,
        ]

    def test_truncate_renormalizes(self):
        result = reconcile_dimension([3.0, 4.0, 12.0], 2)
        assert result == pytest.approx([0.6, 0.8])

    @pytest.mark.parametrize("strategy", ["zero_pad", "tile"])
    def test_widening_preserves_cosine(self, strategy):
        a, b = [0.2, 0.9, -0.4], [0.5, 0.1, 0.3]
        before = cosine_similarity(a, b)
        after = cosine_similarity(
            reconcile_dimension(a, 9, strategy), reconcile_dimension(b, 9, strategy)
        )
        assert after == pytest.approx(before)

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="non-empty"):
            reconcile_dimension([], 4)

    def test_rejects_non_finite(self):
        with pytest.raises(ValueError, match="non-finite"):
            reconcile_dimension([1.0, float("nan")], 4)


class TestEmbed:
    async def test_returns_configured_dimension(self, embedding_service):
        vector = await embedding_service.embed("Bulk export to CSV times out")

        assert vector is not None
        assert len(vector) == embedding_service.dimension

    async def test_backend_receives_normalized_text(self, embedding_service, stub_backend):
        await embedding_service.embed("  Bulk   export\n")

        assert stub_backend.calls == ["Bulk export"]

    async def test_max_chars_budget(self, stub_backend):
        service = EmbeddingService(
            stub_backend, EmbeddingConfig(dimension=4, max_chars=5, cache_enabled=False),
        )

        await service.embed("abcdefghij")

        assert stub_backend.calls == ["abcde"]

    async def test_idempotent(self, embedding_service):
        first = await embedding_service.embed("same text")
        second = await embedding_service.embed("same   text")

        assert first == second

    async def test_widens_short_backend_vectors(self, embedding_config):
        service = EmbeddingService(StubEmbeddingBackend(dimension=2), embedding_config)

        vector = await service.embed("short")

        assert len(vector) == 4
        assert vector[2:] == [0.0, 0.0]

    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_empty_text_returns_none(self, embedding_service, stub_backend, text):
        assert await embedding_service.embed(text) is None
        assert stub_backend.calls == []

    async def test_no_provider_returns_none(self, embedding_config):
        service = EmbeddingService(None, embedding_config)

        assert not service.available
        assert await service.embed("anything") is None
        assert service.get_stats()["skipped"] == 1

    async def test_provider_failure_returns_none(self, embedding_config):
        service = EmbeddingService(StubEmbeddingBackend(fail=True), embedding_config)

        assert await service.embed("anything") is None
        assert service.get_stats()["errors"] == 1

    def test_from_config_without_credentials(self):
        service = EmbeddingService.from_config(ProviderConfig(_env_file=None))

        assert not service.available


class TestRecordHelpers:
    async def test_feedback_uses_title_and_description(self, embedding_service, stub_backend):
        await embedding_service.embed_feedback(
            FeedbackItem(title="Export", description="CSV export times out")
        )

        assert stub_backend.calls == ["Export. CSV export times out"]

    async def test_idea_text(self, embedding_service, stub_backend):
        await embedding_service.embed_idea(Idea(title="SSO", description="SAML login"))

        assert stub_backend.calls == ["SSO. SAML login"]

    async def test_product_area_text_includes_keywords(self, embedding_service, stub_backend):
        await embedding_service.embed_product_area(
            ProductArea(name="Reporting", description="Dashboards", keywords=["csv", "pdf"])
        )

        assert stub_backend.calls == ["Reporting. Dashboards. csv. pdf"]


class TestCaching:
    def _service(self, backend, redis_client) -> EmbeddingService:
        return EmbeddingService(
            backend, EmbeddingConfig(dimension=4, cache_enabled=True), redis_client,
        )

    def test_cache_key_deterministic(self, stub_backend, mock_redis):
        service = self._service(stub_backend, mock_redis)

        key = service._make_cache_key("hello")

        assert key == service._make_cache_key("hello")
        assert key != service._make_cache_key("world")
        assert key.startswith("emb:stub:4:")

    async def test_cache_miss_writes_vector(self, stub_backend, mock_redis):
        service = self._service(stub_backend, mock_redis)

        vector = await service.embed("hello")

        mock_redis.setex.assert_called_once()
        _, ttl, payload = mock_redis.setex.call_args.args
        assert ttl == 168 * 3600
        assert json.loads(payload) == vector

    async def test_cache_hit_skips_backend(self, stub_backend, mock_redis):
        mock_redis.get = AsyncMock(return_value=json.dumps([0.1, 0.2, 0.3, 0.4]))
        service = self._service(stub_backend, mock_redis)

        vector = await service.embed("hello")

        assert vector == [0.1, 0.2, 0.3, 0.4]
        assert stub_backend.calls == []
        assert service.get_stats()["cache_hits"] == 1

    async def test_cached_vector_of_wrong_dimension_ignored(self, stub_backend, mock_redis):
        mock_redis.get = AsyncMock(return_value=json.dumps([0.1, 0.2]))
        service = self._service(stub_backend, mock_redis)

        vector = await service.embed("hello")

        assert len(vector) == 4
        assert stub_backend.calls == ["hello"]

    async def test_cache_errors_do_not_fail_embedding(self, stub_backend, mock_redis):
        mock_redis.get = AsyncMock(side_effect=ConnectionError("redis down"))
        mock_redis.setex = AsyncMock(side_effect=ConnectionError("redis down"))
        service = self._service(stub_backend, mock_redis)

        assert await service.embed("hello") is not None

    @pytest.mark.parametrize(
        "cached",
        [
            b"not-json{",
            b"42",
            b'{"vector": [1, 2, 3, 4]}',
            b"[1.0, 2.0]",
            b'["a", "b", "c", "d"]',
            b"[1.0, NaN, 0.5, 0.5]",
        ],
    )
    async def test_invalid_cache_entry_is_a_miss(self, stub_backend, mock_redis, cached):
        mock_redis.get = AsyncMock(return_value=cached)
        service = self._service(stub_backend, mock_redis)

        vector = await service.embed("hello")

        assert vector is not None
        assert len(vector) == 4
        assert stub_backend.calls == ["hello"]
        assert service.get_stats()["cache_hits"] == 0

    async def test_cache_disabled(self, stub_backend, mock_redis):
        service = EmbeddingService(
            stub_backend, EmbeddingConfig(dimension=4, cache_enabled=False), mock_redis,
        )

        await service.embed("hello")

        mock_redis.get.assert_not_called()
        mock_redis.setex.assert_not_called()


class TestServiceStats:
    async def test_stats(self, embedding_service):
        await embedding_service.embed("one")
        await embedding_service.embed("")

        stats = embedding_service.get_stats()

        assert stats["generated"] == 1
        assert stats["skipped"] == 1
        assert stats["provider"] == "stub"
        assert stats["dimension"] == 4
        assert stats["cache_enabled"] is False

    async def test_close_releases_backend(self, embedding_service, stub_backend):
        await embedding_service.close()

        assert stub_backend.closed
