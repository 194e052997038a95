"""Pytest fixtures for vectorstore tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.vectorstore.config import VectorStoreConfig


@pytest.fixture
def vector_store_config() -> VectorStoreConfig:
    """Default vector store configuration for tests."""
    return VectorStoreConfig(default_limit=10, default_threshold=0.45)


@pytest.fixture
def mock_database():
    """Mock Database with the query helpers PgVectorStore uses."""
    db = MagicMock()
    db.fetch = AsyncMock(return_value=[])
    db.fetchval = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="UPDATE 1")
    return db


@pytest.fixture
def mock_repository():
    """Mock TriageRepository."""
    repo = MagicMock()
    repo.update_feedback_embedding = AsyncMock(return_value=True)
    repo.update_idea_embedding = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def feedback_row() -> dict:
    """A feedback row as returned by the similarity query."""
    return {
        "id": "fb_1",
        "title": "CSV export",
        "description": "Export dashboards to CSV",
        "embedding": "[0.6,0.8]",
        "account_name": "Acme",
        "account_arr": 1000.0,
        "potential_arr": None,
        "triage_status": "linked",
        "created_at": datetime(2026, 3, 1, tzinfo=timezone.utc),
        "similarity": 0.87,
    }


@pytest.fixture
def idea_row() -> dict:
    return {
        "id": "idea_1",
        "title": "Data export",
        "description": "CSV and PDF",
        "status": "planned",
        "embedding": None,
        "created_at": datetime(2026, 2, 1, tzinfo=timezone.utc),
        "similarity": 0.71,
    }
