"""
Server-side proxy for chat and embedding calls.

Callers that cannot hold provider credentials (browsers) post
``{action: "chat"|"embed", messages|input}`` here and get ``{content}``,
``{embedding}`` or ``{error}`` back, whichever provider the server is
configured with.
"""

import json

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.api.dependencies import get_upstream_chat_backend, get_upstream_embedding_backend
from src.providers.base import ChatBackend, EmbeddingBackend, ProviderError, validate_messages
from src.providers.schemas import ProxyRequest, ProxyResponse

router = APIRouter()
logger = structlog.get_logger(__name__)

NOT_CONFIGURED = "API key not configured on server"


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ProxyResponse(error=message).model_dump(exclude_none=True),
    )


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    message = errors[0].get("msg", "Invalid request")
    return message.removeprefix("Value error, ")


@router.post(
    "/llm",
    response_model=ProxyResponse,
    response_model_exclude_none=True,
    summary="Proxy a chat or embedding call",
)
async def llm_proxy(
    request: Request,
    chat_backend: ChatBackend | None = Depends(get_upstream_chat_backend),
    embedding_backend: EmbeddingBackend | None = Depends(get_upstream_embedding_backend),
):
    """
    Forward one call to the configured provider.

    - 400: malformed body, unknown action, missing messages/input
    - 500: no provider configured on the server
    - upstream status (or 502): provider failure
    """
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error("Invalid JSON body", status.HTTP_400_BAD_REQUEST)
    if not isinstance(body, dict):
        return _error("Invalid JSON body", status.HTTP_400_BAD_REQUEST)
    if not body.get("action"):
        return _error("Missing action parameter", status.HTTP_400_BAD_REQUEST)
    if body["action"] not in ("chat", "embed"):
        return _error(f"Unknown action: {body['action']}", status.HTTP_400_BAD_REQUEST)

    try:
        payload = ProxyRequest.model_validate(body)
    except ValidationError as e:
        return _error(_first_error(e), status.HTTP_400_BAD_REQUEST)

    try:
        if payload.action == "chat":
            messages = payload.messages or []
            try:
                validate_messages(messages)
            except ValueError as e:
                return _error(str(e), status.HTTP_400_BAD_REQUEST)
            if chat_backend is None:
                logger.error("Proxy chat requested but no provider is configured")
                return _error(NOT_CONFIGURED, status.HTTP_500_INTERNAL_SERVER_ERROR)

            content = await chat_backend.complete(messages)
            logger.info("Proxy chat complete", provider=chat_backend.name, chars=len(content))
            return ProxyResponse(content=content)

        if embedding_backend is None:
            logger.error("Proxy embed requested but no provider is configured")
            return _error(NOT_CONFIGURED, status.HTTP_500_INTERNAL_SERVER_ERROR)

        embedding = await embedding_backend.embed_raw(payload.input or "")
        logger.info("Proxy embed complete", provider=embedding_backend.name, dimensions=len(embedding))
        return ProxyResponse(embedding=embedding)

    except ProviderError as e:
        logger.warning("Proxy upstream error", provider=e.provider, status_code=e.status_code, error=str(e))
        return _error(str(e), e.status_code or status.HTTP_502_BAD_GATEWAY)
