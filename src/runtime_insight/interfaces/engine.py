"""Abstract interfaces for explanation engines and their cache stores."""

from typing import Protocol

from ..models.context import RuntimeContext
from ..models.explanation import Explanation


class ExplanationEngine(Protocol):
    """Produces an explanation for a runtime context."""

    def explain(self, context: RuntimeContext) -> Explanation:
        """
        Explain a runtime failure.

        Args:
            context: Runtime context of the failure

        Returns:
            An explanation; implementations never raise
        """
        ...


class ExplanationCache(Protocol):
    """Cache for explanation results, keyed by error signature."""

    def get(self, key: str) -> Explanation | None:
        """
        Fetch a cached explanation.

        Args:
            key: Cache key derived from the error signature

        Returns:
            The stored explanation, or None on a miss or expired entry
        """
        ...

    def set(self, key: str, explanation: Explanation, ttl: int) -> None:
        """
        Store an explanation.

        Args:
            key: Cache key derived from the error signature
            explanation: Explanation to store
            ttl: Time to live in seconds; 0 means no expiry
        """
        ...
