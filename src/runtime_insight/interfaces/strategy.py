"""Abstract interface for rule-based explanation strategies."""

from typing import Protocol

from ..models.context import RuntimeContext
from ..models.explanation import Explanation


class ExplanationStrategy(Protocol):
    """A deterministic matcher recognizing one family of runtime failures.

    Strategies are consulted by the engine in descending ``priority()``
    order; only the first one whose ``supports()`` returns True is asked to
    ``explain()``.
    """

    @property
    def name(self) -> str:
        """Short identifier, e.g. "NullReference"."""
        ...

    def supports(self, context: RuntimeContext) -> bool:
        """
        Check whether this strategy recognizes the failure.

        Must be a pure predicate over ``context.exception`` (and optionally
        ``context.source_context``) and must never raise.

        Args:
            context: Runtime context of the failure

        Returns:
            True if ``explain()`` can produce an explanation
        """
        ...

    def explain(self, context: RuntimeContext) -> Explanation:
        """
        Explain a failure previously accepted by ``supports()``.

        Args:
            context: Runtime context of the failure

        Returns:
            A non-empty explanation with a fixed, calibrated confidence
        """
        ...

    def priority(self) -> int:
        """Return the ordering weight; higher runs first."""
        ...
