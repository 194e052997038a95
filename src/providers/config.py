"""Provider credentials and model selection.

Provider choice is resolved once, from this object, when the backends are
built (see ``src.providers.factory``). Nothing downstream inspects the
environment, so tests select a provider by constructing a config.
All settings can be overridden via AI_* environment variables.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["openai", "anthropic", "gemini", "proxy"]

# Priority order when no explicit provider is configured.
CHAT_PROVIDER_PRIORITY: tuple[ProviderName, ...] = ("openai", "anthropic", "gemini", "proxy")
# Anthropic has no embedding endpoint.
EMBEDDING_PROVIDER_PRIORITY: tuple[ProviderName, ...] = ("openai", "gemini", "proxy")


class ProviderConfig(BaseSettings):
    """Configuration for chat and embedding provider backends.

    Example:
        AI_OPENAI_API_KEY=sk-...
        AI_PROXY_URL=https://triage.example.com/llm
        AI_CHAT_PROVIDER=anthropic
    """

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Credentials
    openai_api_key: SecretStr | None = Field(default=None, description="OpenAI API key")
    anthropic_api_key: SecretStr | None = Field(default=None, description="Anthropic API key")
    gemini_api_key: SecretStr | None = Field(default=None, description="Google Gemini API key")
    proxy_url: str | None = Field(
        default=None,
        description="Server-side proxy endpoint accepting {action, messages|input}",
    )
    use_proxy: bool = Field(
        default=False,
        description="Route every call through proxy_url (callers without direct credentials)",
    )

    # Explicit overrides (skip priority resolution)
    chat_provider: ProviderName | None = None
    embedding_provider: ProviderName | None = None

    # Model selection
    openai_chat_model: str = "gpt-4o-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    anthropic_model: str = "claude-3-haiku-20240307"
    anthropic_max_tokens: int = Field(default=1024, ge=1)
    gemini_chat_model: str = "gemini-1.5-flash"
    gemini_embedding_model: str = "text-embedding-004"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    request_timeout: float = Field(
        default=30.0,
        ge=1.0,
        le=120.0,
        description="Timeout in seconds for a single provider call",
    )

    # Circuit breaker settings
    circuit_failure_threshold: int = Field(default=5, ge=1)
    circuit_recovery_timeout: float = Field(default=60.0, ge=1.0)

    def is_configured(self, provider: ProviderName) -> bool:
        """Whether credentials (or an endpoint) exist for ``provider``."""
        if provider == "openai":
            return self.openai_api_key is not None
        if provider == "anthropic":
            return self.anthropic_api_key is not None
        if provider == "gemini":
            return self.gemini_api_key is not None
        return bool(self.proxy_url)

    def resolve_chat_provider(self) -> ProviderName | None:
        """Pick the chat provider: explicit override, else first configured."""
        return self._resolve(self.chat_provider, CHAT_PROVIDER_PRIORITY)

    def resolve_embedding_provider(self) -> ProviderName | None:
        """Pick the embedding provider: explicit override, else first configured."""
        if self.embedding_provider == "anthropic":
            return None
        return self._resolve(self.embedding_provider, EMBEDDING_PROVIDER_PRIORITY)

    def _resolve(
        self,
        override: ProviderName | None,
        priority: tuple[ProviderName, ...],
    ) -> ProviderName | None:
        if override is not None:
            return override if self.is_configured(override) else None
        if self.use_proxy and self.is_configured("proxy"):
            return "proxy"
        for provider in priority:
            if self.is_configured(provider):
                return provider
        return None

    @staticmethod
    def secret(value: SecretStr | None) -> str | None:
        """Unwrap an optional secret."""
        return value.get_secret_value() if value else None
