"""
Vector index for Stage-1 semantic retrieval.

Main components:
- cosine_similarity: numpy cosine over plain float vectors
- VectorStore: Abstract base class defining the search interface
- InMemoryVectorStore: brute-force search over a caller-supplied pool
- PgVectorStore: pgvector implementation over the feedback / ideas tables
- VectorSearchResult / VectorSearchFilter: result and filter data classes
"""

from src.vectorstore.base import (
    VectorSearchFilter,
    VectorSearchResult,
    VectorStore,
)
from src.vectorstore.config import VectorStoreConfig
from src.vectorstore.memory_store import InMemoryVectorStore
from src.vectorstore.similarity import cosine_similarity

__all__ = [
    "VectorStore",
    "VectorSearchResult",
    "VectorSearchFilter",
    "VectorStoreConfig",
    "InMemoryVectorStore",
    "cosine_similarity",
]
