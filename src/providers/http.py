"""Shared httpx plumbing for providers without an SDK."""

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from src.providers.base import ProviderError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    response_model: type[ModelT],
    provider: str,
    params: dict[str, str] | None = None,
) -> ModelT:
    """POST ``payload`` and validate the JSON body against ``response_model``.

    Raises:
        ProviderError: On network failure, timeout, non-2xx status or a body
            that does not match the schema.
    """
    try:
        response = await client.post(url, json=payload, params=params)
    except httpx.TimeoutException as e:
        raise ProviderError(f"{provider} request timed out", provider=provider) from e
    except httpx.HTTPError as e:
        raise ProviderError(f"{provider} request failed: {e}", provider=provider) from e

    if response.status_code >= 400:
        detail = _error_detail(response)
        raise ProviderError(
            f"{provider} returned HTTP {response.status_code}: {detail}",
            provider=provider,
            status_code=response.status_code,
        )

    try:
        return response_model.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        raise ProviderError(f"{provider} returned a malformed response", provider=provider) from e


def _error_detail(response: httpx.Response) -> str:
    """Best-effort error message from an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message", error))
    return str(error or body)[:200]
