"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.api.dependencies import (
    get_matching_service,
    get_owner_router,
    get_repository,
    get_upstream_chat_backend,
    get_upstream_embedding_backend,
)
from src.llm.circuit_breaker import CircuitState
from src.routing.config import RoutingConfig
from src.routing.owner_router import OwnerRouter


@pytest.fixture
def mock_chat_backend():
    """Upstream chat provider behind the proxy."""
    backend = MagicMock()
    backend.name = "openai"
    backend.complete = AsyncMock(return_value="Hello from upstream")
    return backend


@pytest.fixture
def mock_embedding_backend():
    """Upstream embedding provider behind the proxy."""
    backend = MagicMock()
    backend.name = "openai"
    backend.embed_raw = AsyncMock(return_value=[0.1, 0.2, 0.3])
    return backend


@pytest.fixture
def mock_matching_service():
    """MatchingService with scripted results."""
    service = MagicMock()
    service.find_evidence_for_idea = AsyncMock()
    service.suggest_matching_ideas = AsyncMock()
    service.summarize = AsyncMock(return_value="Customers want CSV exports.")
    service.llm_client.provider = "openai"
    service.llm_client.breaker.state = CircuitState.CLOSED
    service.get_stats = MagicMock(
        return_value={"two_stage": 0, "embedding": {"provider": "openai"}, "llm_available": True}
    )
    return service


@pytest.fixture
def mock_route_embedder():
    """Embedding service used by the owner router; never reached for pre-embedded feedback."""
    embedder = MagicMock()
    embedder.embed_feedback = AsyncMock(return_value=None)
    return embedder


@pytest.fixture
def mock_repository(sample_feedback, sample_ideas, sample_links):
    repo = MagicMock()
    repo.list_feedback = AsyncMock(return_value=sample_feedback)
    repo.list_ideas = AsyncMock(return_value=sample_ideas)
    repo.list_links = AsyncMock(return_value=sample_links)
    return repo


@pytest.fixture
def app(
    mock_chat_backend,
    mock_embedding_backend,
    mock_matching_service,
    mock_route_embedder,
    mock_repository,
):
    """App with every provider and store dependency overridden."""
    app = create_app()
    router = OwnerRouter(mock_route_embedder, RoutingConfig(_env_file=None, call_delay_seconds=0.0))

    app.dependency_overrides[get_upstream_chat_backend] = lambda: mock_chat_backend
    app.dependency_overrides[get_upstream_embedding_backend] = lambda: mock_embedding_backend
    app.dependency_overrides[get_matching_service] = lambda: mock_matching_service
    app.dependency_overrides[get_owner_router] = lambda: router
    app.dependency_overrides[get_repository] = lambda: mock_repository

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
