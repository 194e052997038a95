"""Chat capability used by the matching engine.

Usage:
    from src.llm import LLMClient, LLMError

    client = LLMClient.from_config(ProviderConfig())
    try:
        text = await client.chat([{"role": "user", "content": "..."}])
    except LLMError:
        ...
"""

from src.llm.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState
from src.llm.client import LLMClient, LLMError, LLMRequestError, LLMUnavailableError

__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "LLMClient",
    "LLMError",
    "LLMRequestError",
    "LLMUnavailableError",
]
