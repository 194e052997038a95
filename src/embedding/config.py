"""
Embedding service configuration.

Provides Pydantic settings for text normalization, the fixed storage
dimensionality, Redis caching and backfill pacing.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """
    Configuration for the embedding service.

    Settings can be overridden via environment variables prefixed with EMBEDDING_.
    """

    model_config = SettingsConfigDict(
        env_prefix="EMBEDDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    dimension: int = Field(
        default=1536,
        ge=1,
        description="Stored vector dimensionality (must match the pgvector columns)",
    )
    max_chars: int = Field(
        default=8000,
        ge=1,
        description="Character budget for normalized input (~2000 tokens)",
    )
    reconcile_strategy: Literal["zero_pad", "tile"] = Field(
        default="zero_pad",
        description=(
            "How to widen a backend vector shorter than dimension: "
            "zero_pad appends zeros, tile repeats the vector. Longer vectors are truncated"
        ),
    )

    # Caching configuration
    cache_enabled: bool = Field(
        default=True,
        description="Enable Redis caching for embeddings",
    )
    cache_ttl_hours: int = Field(
        default=168,
        ge=1,
        description="Cache TTL in hours (default: 1 week)",
    )
    cache_key_prefix: str = Field(
        default="emb:",
        description="Redis key prefix for cached embeddings",
    )

    # Backfill configuration
    backfill_page_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Records without embeddings fetched per backfill run",
    )
    call_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        le=10.0,
        description="Pause between successive provider calls in batch loops",
    )

    @property
    def cache_ttl_seconds(self) -> int:
        """Get cache TTL in seconds."""
        return self.cache_ttl_hours * 3600
