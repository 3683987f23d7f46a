"""Configuration loading and validation."""

from .loader import load_config, validate_config
from .schema import (
    AIConfig,
    CacheConfig,
    ContextConfig,
    InsightConfig,
    LoggingConfig,
    OllamaSettings,
    ProviderSettings,
    ResolvedProviderSettings,
    RetryConfig,
)

__all__ = [
    # Loader
    "load_config",
    "validate_config",
    # Root config
    "InsightConfig",
    # Sections
    "AIConfig",
    "CacheConfig",
    "ContextConfig",
    "LoggingConfig",
    "RetryConfig",
    # Provider settings
    "ProviderSettings",
    "OllamaSettings",
    "ResolvedProviderSettings",
]
