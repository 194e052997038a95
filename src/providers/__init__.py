"""Provider adapters for chat and embedding services.

Components:
- ProviderConfig: credentials, models and explicit provider resolution
- EmbeddingBackend / ChatBackend: capability interfaces
- OpenAI, Anthropic, Gemini and proxy implementations
- build_chat_backend / build_embedding_backend: factory helpers
"""

from src.providers.base import (
    ChatBackend,
    ChatMessage,
    EmbeddingBackend,
    ProviderError,
    validate_messages,
)
from src.providers.config import ProviderConfig, ProviderName
from src.providers.factory import build_chat_backend, build_embedding_backend

__all__ = [
    "ChatBackend",
    "ChatMessage",
    "EmbeddingBackend",
    "ProviderConfig",
    "ProviderError",
    "ProviderName",
    "build_chat_backend",
    "build_embedding_backend",
    "validate_messages",
]
