"""Concrete implementations of provider interfaces."""

from .llm import (
    AnthropicProvider,
    FallbackChainProvider,
    OllamaProvider,
    OpenAIProvider,
    create_provider,
)

__all__ = [
    "AnthropicProvider",
    "FallbackChainProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "create_provider",
]
