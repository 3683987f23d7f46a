"""Builds the configured AI provider (single provider or fallback chain)."""

from __future__ import annotations

from ...config.schema import AIConfig
from ...interfaces.ai import AIProvider
from .anthropic import AnthropicProvider
from .base import BaseAIProvider
from .fallback import FallbackChainProvider
from .ollama import OllamaProvider
from .openai import OpenAIProvider

PROVIDERS: dict[str, type[BaseAIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "ollama": OllamaProvider,
}


def create_single_provider(name: str, config: AIConfig) -> BaseAIProvider:
    """Instantiate one provider by name.

    Raises:
        ValueError: If the provider name is unknown
    """
    try:
        provider_class = PROVIDERS[name]
    except KeyError:
        raise ValueError(f"Unknown AI provider: {name}") from None
    return provider_class(config)


def create_provider(config: AIConfig) -> AIProvider | None:
    """Create the provider described by the AI configuration.

    Returns:
        None when AI is disabled, the primary provider when no fallbacks are
        configured, otherwise a ``FallbackChainProvider`` over the primary
        followed by the fallbacks (duplicates dropped).
    """
    if not config.enabled:
        return None

    chain = config.provider_chain
    if len(chain) == 1:
        return create_single_provider(chain[0], config)

    return FallbackChainProvider(create_single_provider(name, config) for name in chain)
