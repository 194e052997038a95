"""
Abstract provider capabilities.

Two capabilities cover every external AI service the engine talks to:
- EmbeddingBackend: text -> native vector
- ChatBackend: role-tagged transcript -> completion text

Each concrete backend normalizes its provider's typed response into one of
these shapes, so the matching code never branches on provider identity.
"""

from abc import ABC, abstractmethod
from typing import Literal

Role = Literal["system", "user", "assistant"]

# Role-tagged transcript entry: {"role": "system", "content": "..."}
ChatMessage = dict[str, str]

VALID_ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


class ProviderError(Exception):
    """Transport or provider failure (network, non-2xx, malformed payload)."""

    def __init__(self, message: str, provider: str = "", status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


def validate_messages(messages: list[ChatMessage]) -> None:
    """Reject transcripts with unknown roles or missing content."""
    if not messages:
        raise ValueError("messages must not be empty")
    for message in messages:
        role = message.get("role")
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid message role {role!r}. Must be one of: {sorted(VALID_ROLES)}")
        if not isinstance(message.get("content"), str):
            raise ValueError(f"Message content for role {role!r} must be a string")


def split_system(messages: list[ChatMessage]) -> tuple[str, list[ChatMessage]]:
    """Separate system entries from the rest of the transcript.

    Multiple system entries are joined with blank lines.
    """
    system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
    rest = [m for m in messages if m["role"] != "system"]
    return system, rest


class EmbeddingBackend(ABC):
    """A service that turns text into a vector of its native dimensionality."""

    name: str = "embedding"

    @abstractmethod
    async def embed_raw(self, text: str) -> list[float]:
        """
        Embed already-normalized text.

        Raises:
            ProviderError: On transport failure or malformed response.
        """
        ...

    async def close(self) -> None:
        """Release underlying clients."""


class ChatBackend(ABC):
    """A service that completes a role-tagged transcript."""

    name: str = "chat"

    @abstractmethod
    async def complete(self, messages: list[ChatMessage]) -> str:
        """
        Return the completion text for ``messages``.

        Raises:
            ProviderError: On transport failure or malformed response.
        """
        ...

    async def close(self) -> None:
        """Release underlying clients."""
