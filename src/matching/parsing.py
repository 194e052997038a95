"""Extraction and validation of JSON objects embedded in LLM completions.

Models often wrap JSON in prose or markdown fences. ``extract_json_object``
finds the first balanced object; ``parse_llm_json`` then validates it
against a pydantic model and reports failure as a value, never an
exception, so callers can fall back deterministically.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


# ── Response models ────────────────────────────────────────


class LLMMatch(BaseModel):
    """One match proposed by the model. Confidence is clamped to [0, 1]."""

    id: str
    confidence: float = 0.0
    reason: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        if value is None:
            return 0.0
        try:
            confidence = float(value)
        except TypeError as e:
            raise ValueError(f"confidence must be a number, got {type(value).__name__}") from e
        if confidence != confidence:  # NaN
            return 0.0
        return min(1.0, max(0.0, confidence))

    @field_validator("reason", mode="before")
    @classmethod
    def _coerce_reason(cls, value: Any) -> str:
        return "" if value is None else str(value)


class LLMMatchResponse(BaseModel):
    matches: list[LLMMatch] = Field(default_factory=list)


class LLMNewIdeaProposal(BaseModel):
    should_create: bool = False
    title: str = ""
    description: str = ""


class LLMIdeaSuggestionResponse(BaseModel):
    matches: list[LLMMatch] = Field(default_factory=list)
    suggested_new_idea: LLMNewIdeaProposal | None = None


# ── Parse results ──────────────────────────────────────────


@dataclass
class ParseSuccess(Generic[ModelT]):
    value: ModelT


@dataclass
class ParseFallback:
    reason: str


def extract_json_object(text: str | None) -> str | None:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals (including escaped quotes) are
    ignored. Returns None when no ``{`` exists or it is never closed.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def parse_llm_json(text: str | None, model: type[ModelT]) -> ParseSuccess[ModelT] | ParseFallback:
    """Extract the first JSON object from ``text`` and validate it as ``model``."""
    raw = extract_json_object(text)
    if raw is None:
        return ParseFallback("no JSON object in completion")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse LLM response as JSON: %s", e)
        return ParseFallback(f"invalid JSON: {e.msg}")

    try:
        return ParseSuccess(model.model_validate(data))
    except ValidationError as e:
        logger.warning("Failed to validate LLM response as %s: %s", model.__name__, e.error_count())
        return ParseFallback(f"schema mismatch: {e.error_count()} error(s)")
