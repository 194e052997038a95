"""Configuration for the two-stage matching pipeline.

All settings can be overridden via MATCHING_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MatchingConfig(BaseSettings):
    """Stage-1 retrieval, fallback and proposal settings.

    The confidence floor, display and auto-accept thresholds are fixed
    constants in ``src.aggregation.thresholds`` so every caller agrees.
    """

    model_config = SettingsConfigDict(
        env_prefix="MATCHING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Stage 1: vector recall
    recall_threshold: float = Field(
        default=0.45,
        ge=0.0,
        le=1.0,
        description="Minimum cosine similarity for Stage-1 candidates",
    )
    evidence_limit: int = Field(
        default=30,
        ge=1,
        le=500,
        description="Stage-1 candidates when searching evidence for an idea",
    )
    idea_limit: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Stage-1 candidates when suggesting ideas for feedback",
    )

    # Stage 2 / fallback prompt shaping
    description_preview_chars: int = Field(
        default=300,
        ge=20,
        description="Characters of each candidate description sent to the LLM",
    )
    fallback_max_items: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Pool cap for the single-call LLM fallback",
    )

    # New-idea proposal
    new_idea_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Propose a new idea when the best match is below this",
    )
    proposal_title_max_chars: int = Field(
        default=100,
        ge=10,
        description="Length of the title derived from feedback text",
    )
    summary_max_items: int = Field(
        default=50,
        ge=1,
        description="Linked feedback items included in an idea summary",
    )
