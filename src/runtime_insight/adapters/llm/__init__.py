"""AI provider adapters."""

from .anthropic import AnthropicProvider
from .base import AIResponse, BaseAIProvider, ProviderReply, build_prompt, parse_reply
from .factory import create_provider, create_single_provider
from .fallback import FallbackChainProvider
from .ollama import OllamaProvider
from .openai import OpenAIProvider

__all__ = [
    "AIResponse",
    "AnthropicProvider",
    "BaseAIProvider",
    "FallbackChainProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "ProviderReply",
    "build_prompt",
    "create_provider",
    "create_single_provider",
    "parse_reply",
]
