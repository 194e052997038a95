"""Cosine similarity over plain float vectors."""

from typing import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """
    Cosine similarity ``dot(a, b) / (|a| * |b|)``.

    Returns 0.0 instead of raising or yielding NaN when either vector is
    missing or empty, lengths differ, or either norm is zero. The result is
    clamped to [-1, 1] to absorb floating-point overshoot.
    """
    if a is None or b is None or len(a) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0 or not np.isfinite(norm):
        return 0.0

    score = float(np.dot(va, vb) / norm)
    if not np.isfinite(score):
        return 0.0
    return max(-1.0, min(1.0, score))


def to_pgvector(embedding: Sequence[float]) -> str:
    """Format a vector as a pgvector literal."""
    return f"[{','.join(str(float(x)) for x in embedding)}]"


def from_pgvector(value: object) -> list[float] | None:
    """Parse a pgvector column value (text literal or list) into floats."""
    if value is None:
        return None
    if isinstance(value, str):
        body = value.strip("[]").strip()
        return [float(x) for x in body.split(",")] if body else None
    return [float(x) for x in value]  # type: ignore[union-attr]
