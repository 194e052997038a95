"""Pytest fixtures for LLM client tests."""

import asyncio

import pytest

from src.providers.base import ChatBackend, ChatMessage, ProviderError
from src.providers.config import ProviderConfig


class ScriptedChatBackend(ChatBackend):
    """Returns (or raises) queued outcomes in order, recording transcripts."""

    name = "scripted"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.transcripts: list[list[ChatMessage]] = []
        self.closed = False

    async def complete(self, messages: list[ChatMessage]) -> str:
        self.transcripts.append(messages)
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome == "__hang__":
            await asyncio.sleep(10)
        return outcome

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        _env_file=None,
        request_timeout=1.0,
        circuit_failure_threshold=2,
        circuit_recovery_timeout=5.0,
    )


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("upstream 503", provider="scripted", status_code=503)


USER_MESSAGES = [
    {"role": "system", "content": "You are terse."},
    {"role": "user", "content": "Say hi"},
]
