"""Explanation engine.

Resolution order for one runtime context:
1. The highest-priority strategy that supports the context
2. The AI provider, when one is configured and available
3. The descriptive fallback for the exception class

Whatever the source, the result is enriched with the source snippet and the
call site of the failing call. ``explain`` never raises: it runs inside the
host application's own error handling and must not mask the original failure.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from runtime_insight.core.fallback import describe
from runtime_insight.interfaces.ai import AIProvider
from runtime_insight.interfaces.strategy import ExplanationStrategy
from runtime_insight.models.context import RuntimeContext
from runtime_insight.models.explanation import Explanation

log = structlog.get_logger()

_CALL_SITE_PATTERN = re.compile(r"called in (.+?) on line (\d+)")


class ExplanationEngine:
    """Produces explanations from runtime context.

    Strategies are ranked once at construction by ``priority()`` (highest
    first, registration order breaking ties) and cannot be changed afterwards.

    Example:
        engine = ExplanationEngine(default_strategies(), ai_provider=provider)
        explanation = engine.explain(context)
    """

    def __init__(
        self,
        strategies: Iterable[ExplanationStrategy] = (),
        ai_provider: AIProvider | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            strategies: Strategies in registration order
            ai_provider: Optional provider consulted when no strategy matches
        """
        # sorted() is stable, so equal priorities keep registration order
        self._strategies: tuple[ExplanationStrategy, ...] = tuple(
            sorted(strategies, key=lambda strategy: strategy.priority(), reverse=True)
        )
        self._ai_provider = ai_provider

    @property
    def strategies(self) -> tuple[ExplanationStrategy, ...]:
        """Strategies in evaluation order."""
        return self._strategies

    @property
    def ai_provider(self) -> AIProvider | None:
        return self._ai_provider

    def explain(self, context: RuntimeContext) -> Explanation:
        """Generate an explanation for a runtime failure.

        Args:
            context: Runtime context of the failure

        Returns:
            A non-empty explanation for any context with a non-empty message
        """
        explanation = self._explain_with_strategies(context)

        if explanation is None:
            explanation = self._explain_with_ai(context)

        if explanation is None:
            explanation = describe(context.exception)
            log.debug(
                "descriptive_fallback_used",
                exception_class=context.exception.class_name,
            )

        return self._enrich(explanation, context)

    def _explain_with_strategies(self, context: RuntimeContext) -> Explanation | None:
        """Run the first supporting strategy, if any.

        Only one strategy is ever asked to explain. If it fails, the engine
        moves on to AI rather than trying lower-priority strategies.
        """
        for strategy in self._strategies:
            name = _strategy_name(strategy)

            try:
                supported = strategy.supports(context)
            except Exception as e:
                log.warning("strategy_supports_failed", strategy=name, error=str(e))
                continue

            if not supported:
                continue

            try:
                explanation = strategy.explain(context)
            except Exception as e:
                log.warning("strategy_explain_failed", strategy=name, error=str(e))
                return None

            if not isinstance(explanation, Explanation) or explanation.is_empty:
                log.warning("strategy_explain_failed", strategy=name, error="empty explanation")
                return None

            log.debug(
                "strategy_matched",
                strategy=name,
                confidence=explanation.confidence,
            )
            return explanation

        return None

    def _explain_with_ai(self, context: RuntimeContext) -> Explanation | None:
        provider = self._ai_provider
        if provider is None:
            return None

        try:
            if not provider.is_available():
                return None
            explanation = provider.analyze(context)
        except Exception as e:
            log.warning("ai_provider_failed", provider=_provider_name(provider), error=str(e))
            return None

        if not isinstance(explanation, Explanation) or explanation.is_empty:
            log.warning(
                "ai_provider_failed", provider=_provider_name(provider), error="empty reply"
            )
            return None

        log.info(
            "ai_fallback_used",
            provider=_provider_name(provider),
            confidence=explanation.confidence,
        )
        return explanation

    def _enrich(self, explanation: Explanation, context: RuntimeContext) -> Explanation:
        """Attach the code snippet and call-site location to the explanation."""
        try:
            snippet = context.source_context.code_snippet or ""
            call_site = _call_site_from_message(context.exception.message)
            if call_site is None:
                call_site = _call_site_from_stack(context)

            if snippet == "" and call_site is None:
                return explanation

            return explanation.with_code_context(snippet, call_site)
        except Exception as e:
            log.warning("enrichment_failed", error=str(e))
            return explanation


def _call_site_from_message(message: str) -> str | None:
    """Extract ``called in <file> on line <N>`` from an error message."""
    match = _CALL_SITE_PATTERN.search(message)
    if match is None:
        return None
    return f"{match.group(1).strip()}:{int(match.group(2))}"


def _call_site_from_stack(context: RuntimeContext) -> str | None:
    """Location of the caller frame (frames are innermost first)."""
    frames = context.stack_trace.frames
    if len(frames) < 2:
        return None
    location = frames[1].location
    return location or None


def _strategy_name(strategy: ExplanationStrategy) -> str:
    try:
        return strategy.name
    except Exception:
        return type(strategy).__name__


def _provider_name(provider: AIProvider) -> str:
    try:
        return provider.name
    except Exception:
        return type(provider).__name__
