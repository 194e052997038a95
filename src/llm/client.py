"""Outermost wrapper around the chat capability.

``LLMClient.chat`` is the single place where provider failures become an
exception visible to orchestration code: every failure mode (no provider,
open circuit, transport error, timeout, empty completion) surfaces as one
``LLMError`` subclass. Matching code catches ``LLMError`` and degrades.
"""

import asyncio
import logging

from src.llm.circuit_breaker import CircuitBreaker, CircuitOpenError
from src.providers.base import ChatBackend, ChatMessage, validate_messages
from src.providers.config import ProviderConfig
from src.providers.factory import build_chat_backend

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base class for chat failures surfaced to orchestration code."""


class LLMUnavailableError(LLMError):
    """No chat provider is configured, or its circuit is open."""


class LLMRequestError(LLMError):
    """The provider call failed or returned nothing usable."""


class LLMClient:
    """Chat client over an injected ChatBackend.

    Args:
        backend: Chat backend, or None when no provider is configured.
        config: Provider config (timeouts and circuit breaker tuning).
    """

    def __init__(self, backend: ChatBackend | None, config: ProviderConfig | None = None) -> None:
        self._config = config or ProviderConfig()
        self._backend = backend
        self._breaker = CircuitBreaker(
            failure_threshold=self._config.circuit_failure_threshold,
            recovery_timeout=self._config.circuit_recovery_timeout,
            name=backend.name if backend else "chat",
        )

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "LLMClient":
        """Resolve the chat provider once and build a client around it."""
        return cls(build_chat_backend(config), config)

    @property
    def available(self) -> bool:
        """Whether a chat provider is configured."""
        return self._backend is not None

    @property
    def provider(self) -> str | None:
        return self._backend.name if self._backend else None

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def chat(self, messages: list[ChatMessage]) -> str:
        """Complete ``messages`` and return the raw completion text.

        Raises:
            LLMUnavailableError: No provider, or circuit open.
            LLMRequestError: Transport/provider failure, timeout or empty text.
            ValueError: If ``messages`` is malformed.
        """
        validate_messages(messages)
        if self._backend is None:
            raise LLMUnavailableError("No LLM provider configured")

        backend = self._backend

        async def _call() -> str:
            return await asyncio.wait_for(
                backend.complete(messages), timeout=self._config.request_timeout,
            )

        try:
            text = await self._breaker.call(_call)
        except CircuitOpenError as e:
            raise LLMUnavailableError(str(e)) from e
        except asyncio.TimeoutError as e:
            logger.warning("LLM call timed out after %.1fs", self._config.request_timeout)
            raise LLMRequestError("LLM request timed out") from e
        except Exception as e:
            logger.warning("LLM call failed (%s): %s", self._backend.name, e)
            raise LLMRequestError(str(e)) from e

        if not text or not text.strip():
            raise LLMRequestError("LLM returned an empty completion")
        return text

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()
