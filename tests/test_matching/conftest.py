"""Pytest fixtures for matching tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.matching.config import MatchingConfig


def llm_reply(matches: list[dict], **extra) -> str:
    """A completion wrapped in prose and a markdown fence, as models tend to answer."""
    body = json.dumps({"matches": matches, **extra})
    return f"Here are the matches:\n```json\n{body}\n```"


@pytest.fixture
def matching_config() -> MatchingConfig:
    return MatchingConfig(_env_file=None)


@pytest.fixture
def mock_embedder():
    """Embedding service whose every query embeds to [1, 0]."""
    embedder = MagicMock()
    embedder.embed = AsyncMock(return_value=[1.0, 0.0])
    embedder.get_stats = MagicMock(return_value={"provider": "stub"})
    embedder.close = AsyncMock()
    return embedder


@pytest.fixture
def mock_llm():
    """Available chat client; set ``chat.return_value`` / ``side_effect`` per test."""
    llm = MagicMock()
    llm.available = True
    llm.chat = AsyncMock(return_value='{"matches": []}')
    llm.close = AsyncMock()
    return llm


def sent_user_prompt(llm) -> str:
    messages = llm.chat.call_args.args[0]
    return next(m["content"] for m in messages if m["role"] == "user")
