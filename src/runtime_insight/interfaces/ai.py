"""Abstract interface for AI inference backends."""

from typing import Protocol

from ..models.context import RuntimeContext
from ..models.explanation import Explanation


class AIProvider(Protocol):
    """Abstract interface for AI provider integrations.

    This protocol defines the contract that all provider adapters
    (OpenAI, Anthropic, Ollama) and the fallback chain implement.
    """

    @property
    def name(self) -> str:
        """
        Return the provider identifier.

        Examples:
            - "openai"
            - "anthropic"
            - "fallback"
        """
        ...

    def is_available(self) -> bool:
        """
        Check whether the provider is configured for use.

        This is a pure configuration check (enabled flag, provider selected,
        credential present) and never performs network I/O.
        """
        ...

    def analyze(self, context: RuntimeContext) -> Explanation:
        """
        Ask the backend to explain a runtime failure.

        Args:
            context: Runtime context of the failure

        Returns:
            The parsed explanation, or ``Explanation.empty()`` when the
            provider is unavailable or the request failed. Errors are never
            raised to the caller.
        """
        ...
