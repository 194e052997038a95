"""
Dependency injection for FastAPI endpoints.

Providers are resolved once from ``ProviderConfig`` on first use and shared
by every request. The proxy route gets its own upstream backends, built
from a copy of the config that can never point back at the proxy.
"""

import redis.asyncio as redis

from src.config.settings import get_settings
from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService
from src.matching.config import MatchingConfig
from src.matching.service import MatchingService
from src.providers.base import ChatBackend, EmbeddingBackend
from src.providers.config import ProviderConfig
from src.providers.factory import build_chat_backend, build_embedding_backend
from src.routing.config import RoutingConfig
from src.routing.owner_router import OwnerRouter
from src.storage.database import Database
from src.storage.repository import TriageRepository

# Global service instances (initialized on first request)
_provider_config: ProviderConfig | None = None
_redis_client: redis.Redis | None = None
_matching_service: MatchingService | None = None
_owner_router: OwnerRouter | None = None
_upstream_chat: ChatBackend | None = None
_upstream_embedding: EmbeddingBackend | None = None
_upstream_resolved = False
_database: Database | None = None


def get_provider_config() -> ProviderConfig:
    global _provider_config

    if _provider_config is None:
        _provider_config = ProviderConfig()
    return _provider_config


def get_redis_client() -> redis.Redis | None:
    """Redis client for the embedding cache, or None when disabled."""
    global _redis_client

    settings = get_settings()
    if not settings.redis_enabled:
        return None
    if _redis_client is None:
        _redis_client = redis.from_url(
            str(settings.redis_url),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def get_matching_service() -> MatchingService:
    """
    Get matching service instance.

    Creates a singleton wired to the configured providers, with Redis
    caching when enabled.
    """
    global _matching_service

    if _matching_service is None:
        _matching_service = MatchingService.from_config(
            get_provider_config(),
            EmbeddingConfig(),
            MatchingConfig(),
            redis_client=get_redis_client(),
        )
    return _matching_service


async def get_embedding_service() -> EmbeddingService:
    service = await get_matching_service()
    return service.embedding_service


async def get_owner_router() -> OwnerRouter:
    global _owner_router

    if _owner_router is None:
        _owner_router = OwnerRouter(await get_embedding_service(), RoutingConfig())
    return _owner_router


def _resolve_upstream() -> None:
    global _upstream_chat, _upstream_embedding, _upstream_resolved

    if _upstream_resolved:
        return
    upstream = get_provider_config().model_copy(
        update={"proxy_url": None, "use_proxy": False},
    )
    _upstream_chat = build_chat_backend(upstream)
    _upstream_embedding = build_embedding_backend(upstream)
    _upstream_resolved = True


async def get_upstream_chat_backend() -> ChatBackend | None:
    """Chat backend the proxy forwards to (never the proxy itself)."""
    _resolve_upstream()
    return _upstream_chat


async def get_upstream_embedding_backend() -> EmbeddingBackend | None:
    """Embedding backend the proxy forwards to (never the proxy itself)."""
    _resolve_upstream()
    return _upstream_embedding


async def get_database() -> Database:
    """Get the shared database, connecting on first use."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()
    return _database


async def get_repository() -> TriageRepository:
    return TriageRepository(await get_database())


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _matching_service, _owner_router, _redis_client, _database
    global _upstream_chat, _upstream_embedding, _upstream_resolved

    _owner_router = None

    if _matching_service is not None:
        await _matching_service.close()
        _matching_service = None

    for backend in (_upstream_chat, _upstream_embedding):
        if backend is not None:
            await backend.close()
    _upstream_chat = None
    _upstream_embedding = None
    _upstream_resolved = False

    if _database is not None:
        await _database.close()
        _database = None

    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
