"""Configuration for embedding-based owner routing.

All settings can be overridden via ROUTING_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RoutingConfig(BaseSettings):
    """Calibration and batching for OwnerRouter."""

    model_config = SettingsConfigDict(
        env_prefix="ROUTING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    similarity_boost: float = Field(
        default=1.2,
        ge=0.0,
        description="Linear boost from raw cosine to confidence (cosine runs conservative)",
    )
    min_confidence: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum boosted confidence to accept a product area",
    )
    batch_size: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Items routed concurrently per batch",
    )
    call_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        le=10.0,
        description="Spacing between successive embedding calls",
    )
