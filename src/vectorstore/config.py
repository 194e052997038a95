"""
Configuration for vector store operations.

Uses Pydantic BaseSettings for environment variable support.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class VectorStoreConfig(BaseSettings):
    """
    Defaults for VectorStore searches.

    All settings can be overridden via environment variables with
    VECTORSTORE_ prefix (e.g., VECTORSTORE_DEFAULT_LIMIT=20).
    """

    default_limit: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Default number of results to return",
    )
    default_threshold: float = Field(
        default=0.45,
        ge=0.0,
        le=1.0,
        description="Default minimum similarity threshold (Stage-1 recall)",
    )

    model_config = SettingsConfigDict(env_prefix="VECTORSTORE_")
