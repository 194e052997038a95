"""
Embedding generation for triage records.

This module provides:
- EmbeddingService: text to fixed-dimension vector, never raises
- EmbeddingBackfill: populates missing embeddings page by page
- EmbeddingConfig: Configuration settings for the embedding service
"""

from src.embedding.config import EmbeddingConfig
from src.embedding.service import EmbeddingService, normalize_text, reconcile_dimension

__all__ = [
    "EmbeddingConfig",
    "EmbeddingService",
    "normalize_text",
    "reconcile_dimension",
]
