"""Build provider backends from a resolved ProviderConfig."""

import structlog

from src.providers.base import ChatBackend, EmbeddingBackend
from src.providers.config import ProviderConfig

logger = structlog.get_logger(__name__)


def build_chat_backend(config: ProviderConfig) -> ChatBackend | None:
    """Instantiate the chat backend for the resolved provider, or None."""
    provider = config.resolve_chat_provider()
    if provider is None:
        logger.warning("No chat provider configured")
        return None

    if provider == "openai":
        from src.providers.openai_backend import OpenAIChatBackend

        backend: ChatBackend = OpenAIChatBackend(config)
    elif provider == "anthropic":
        from src.providers.anthropic_backend import AnthropicChatBackend

        backend = AnthropicChatBackend(config)
    elif provider == "gemini":
        from src.providers.gemini_backend import GeminiChatBackend

        backend = GeminiChatBackend(config)
    else:
        from src.providers.proxy_backend import ProxyChatBackend

        backend = ProxyChatBackend(config)

    logger.info("Chat backend selected", provider=provider)
    return backend


def build_embedding_backend(config: ProviderConfig) -> EmbeddingBackend | None:
    """Instantiate the embedding backend for the resolved provider, or None."""
    provider = config.resolve_embedding_provider()
    if provider is None:
        logger.warning("No embedding provider configured")
        return None

    if provider == "openai":
        from src.providers.openai_backend import OpenAIEmbeddingBackend

        backend: EmbeddingBackend = OpenAIEmbeddingBackend(config)
    elif provider == "gemini":
        from src.providers.gemini_backend import GeminiEmbeddingBackend

        backend = GeminiEmbeddingBackend(config)
    else:
        from src.providers.proxy_backend import ProxyEmbeddingBackend

        backend = ProxyEmbeddingBackend(config)

    logger.info("Embedding backend selected", provider=provider)
    return backend
