"""Typed response schemas for providers reached over raw HTTP.

OpenAI and Anthropic responses are typed by their SDKs; Gemini and the
server-side proxy are called with httpx and validated here.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class GeminiEmbeddingValues(BaseModel):
    values: list[float]


class GeminiEmbeddingResponse(BaseModel):
    """Response of ``models/{model}:embedContent``."""

    embedding: GeminiEmbeddingValues


class GeminiPart(BaseModel):
    text: str = ""


class GeminiContent(BaseModel):
    parts: list[GeminiPart] = Field(default_factory=list)
    role: str | None = None


class GeminiCandidate(BaseModel):
    content: GeminiContent


class GeminiGenerateResponse(BaseModel):
    """Response of ``models/{model}:generateContent``."""

    candidates: list[GeminiCandidate] = Field(min_length=1)

    @property
    def text(self) -> str:
        """Concatenated text of the first candidate."""
        return "".join(part.text for part in self.candidates[0].content.parts)


class ProxyRequest(BaseModel):
    """Body accepted by the proxy endpoint."""

    action: Literal["chat", "embed"]
    messages: list[dict[str, str]] | None = None
    input: str | None = None

    @model_validator(mode="after")
    def _check_payload(self) -> "ProxyRequest":
        if self.action == "chat" and not self.messages:
            raise ValueError("Missing or invalid messages array")
        if self.action == "embed" and not self.input:
            raise ValueError("Missing input for embedding")
        return self


class ProxyResponse(BaseModel):
    """Body returned by the proxy endpoint: exactly one of the fields is set."""

    content: str | None = None
    embedding: list[float] | None = None
    error: str | None = None
