"""Pydantic models for configuration schema."""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["openai", "anthropic", "ollama"]

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4.1-mini",
    "anthropic": "claude-3-5-haiku-20241022",
    "ollama": "llama3.1",
}

DEFAULT_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com",
    "ollama": "http://localhost:11434",
}


class ProviderSettings(BaseModel):
    """Per-provider credentials and model selection."""

    api_key: str | None = None
    model: str | None = None
    base_url: str | None = None
    max_tokens: int | None = Field(None, ge=1, le=32000)


class OllamaSettings(ProviderSettings):
    """Ollama-specific settings."""

    allow_remote_host: bool = False


class ResolvedProviderSettings(BaseModel):
    """Effective settings for one provider after merging flat and per-provider values."""

    name: ProviderName
    api_key: str | None
    model: str
    base_url: str
    max_tokens: int


class RetryConfig(BaseModel):
    """Retry configuration for rate-limited AI requests."""

    max_attempts: int = Field(3, ge=1, le=10, description="Total attempts including the first")
    backoff_seconds: float = Field(1.0, ge=0.0, le=60.0, description="Linear backoff step")


class AIConfig(BaseModel):
    """AI provider configuration.

    The flat ``model``/``api_key``/``base_url``/``max_tokens`` fields apply to
    the primary ``provider`` and take precedence over its own section.
    Fallback providers are configured through their sections.
    """

    enabled: bool = True
    provider: ProviderName = "openai"
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    timeout: float = Field(5.0, gt=0, le=300, description="Request timeout in seconds")
    max_tokens: int = Field(1000, ge=1, le=32000)
    fallback_providers: list[ProviderName] = []
    openai: ProviderSettings = ProviderSettings()
    anthropic: ProviderSettings = ProviderSettings()
    ollama: OllamaSettings = OllamaSettings()
    retry: RetryConfig = RetryConfig()

    @property
    def provider_chain(self) -> tuple[str, ...]:
        """Primary provider followed by the fallbacks, without duplicates."""
        chain: list[str] = []
        for name in (self.provider, *self.fallback_providers):
            if name not in chain:
                chain.append(name)
        return tuple(chain)

    def settings_for(self, name: str) -> ResolvedProviderSettings:
        """Resolve the effective settings for a provider.

        Args:
            name: Provider name ("openai", "anthropic" or "ollama")

        Returns:
            Merged settings with defaults filled in

        Raises:
            ValueError: If the provider name is unknown
        """
        if name not in DEFAULT_MODELS:
            raise ValueError(f"Unknown AI provider: {name}")

        section: ProviderSettings = getattr(self, name)
        is_primary = name == self.provider

        def pick(flat: str | None, own: str | None) -> str | None:
            return (flat or own) if is_primary else own

        return ResolvedProviderSettings(
            name=name,  # type: ignore[arg-type]
            api_key=pick(self.api_key, section.api_key),
            model=pick(self.model, section.model) or DEFAULT_MODELS[name],
            base_url=(pick(self.base_url, section.base_url) or DEFAULT_BASE_URLS[name]).rstrip("/"),
            max_tokens=section.max_tokens or self.max_tokens,
        )

    @model_validator(mode="after")
    def check_ollama_host(self) -> "AIConfig":
        """Reject non-loopback Ollama hosts unless explicitly allowed (SSRF prevention)."""
        from urllib.parse import urlparse

        from ..utils.security import validate_ollama_url

        if "ollama" not in self.provider_chain:
            return self

        url = self.settings_for("ollama").base_url
        if not validate_ollama_url(url, allow_remote=self.ollama.allow_remote_host):
            if not self.ollama.allow_remote_host and urlparse(url).hostname:
                raise ValueError(
                    f"Ollama host {urlparse(url).hostname} not allowed. "
                    f"Set ai.ollama.allow_remote_host=true to use non-localhost hosts."
                )
            raise ValueError(f"Invalid Ollama URL: {url}")
        return self


class CacheConfig(BaseModel):
    """Explanation cache configuration."""

    enabled: bool = True
    ttl: int = Field(3600, ge=0, description="Seconds; 0 keeps entries for the process lifetime")
    max_entries: int = Field(1024, ge=1, le=1_000_000)


class ContextConfig(BaseModel):
    """Context collection configuration."""

    source_lines: int = Field(10, ge=0, le=100, description="Lines shown before and after")
    include_request: bool = True
    sanitize_inputs: bool = True
    redact_fields: list[str] = [
        "password",
        "password_confirmation",
        "credit_card",
        "cvv",
        "ssn",
        "token",
        "secret",
        "api_key",
        "authorization",
    ]


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: str | None = Field(None, description="Also write events to this file")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: object) -> object:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v


class InsightConfig(BaseSettings):
    """Root configuration for runtime-insight."""

    enabled: bool = True
    environments: list[str] = ["local", "staging"]
    disabled_environments: list[str] = ["production"]
    current_environment: str | None = None
    ai: AIConfig = AIConfig()
    cache: CacheConfig = CacheConfig()
    context: ContextConfig = ContextConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_prefix="RUNTIME_INSIGHT_",
        env_nested_delimiter="__",
    )

    def is_active(self) -> bool:
        """Check the master switch and the environment allow/deny lists.

        The deny list wins over the allow list; without a current
        environment only the master switch applies.
        """
        if not self.enabled:
            return False
        if self.current_environment is None:
            return True
        if self.current_environment in self.disabled_environments:
            return False
        return self.current_environment in self.environments
