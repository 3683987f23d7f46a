"""Entry point tying configuration, context collection and the engine together.

This module implements the ``RuntimeInsight`` facade used by host
applications. It:
- Honours the master switch and the environment allow/deny lists
- Builds the runtime context for a caught exception or a log entry
- Delegates to the (optionally cached) explanation engine

Nothing here raises: a failure while explaining a failure would mask the
error the host application is already handling.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from runtime_insight.adapters.llm.factory import create_provider
from runtime_insight.config.schema import InsightConfig
from runtime_insight.context.builder import ContextBuilder
from runtime_insight.core.caching import CachingExplanationEngine, InMemoryExplanationCache
from runtime_insight.core.engine import ExplanationEngine
from runtime_insight.interfaces.ai import AIProvider
from runtime_insight.interfaces.engine import ExplanationEngine as EngineProtocol
from runtime_insight.interfaces.strategy import ExplanationStrategy
from runtime_insight.models.context import (
    ApplicationContext,
    DatabaseContext,
    ExceptionInfo,
    PerformanceContext,
    RequestContext,
    RuntimeContext,
)
from runtime_insight.models.explanation import Explanation
from runtime_insight.strategies import default_strategies

log = structlog.get_logger()


def create_engine(
    config: InsightConfig,
    ai_provider: AIProvider | None = None,
    strategies: Iterable[ExplanationStrategy] | None = None,
) -> EngineProtocol:
    """Factory function to create an engine with all dependencies.

    Args:
        config: Application configuration
        ai_provider: Provider to use; defaults to the one described by
            ``config.ai`` (None when AI is disabled)
        strategies: Strategies to register; defaults to the built-in set

    Returns:
        The engine, wrapped in a caching decorator when caching is enabled
    """
    provider = ai_provider if ai_provider is not None else create_provider(config.ai)
    engine = ExplanationEngine(
        strategies if strategies is not None else default_strategies(),
        ai_provider=provider,
    )

    if not config.cache.enabled:
        return engine

    return CachingExplanationEngine(
        engine,
        InMemoryExplanationCache(max_entries=config.cache.max_entries),
        config.cache,
    )


class RuntimeInsight:
    """Explains runtime failures for a host application.

    Example:
        insight = RuntimeInsight(load_config("runtime-insight.yaml"))
        try:
            checkout(cart)
        except Exception as exc:
            explanation = insight.analyze(exc)
            log.error("checkout_failed", cause=explanation.cause)
            raise
    """

    def __init__(
        self,
        config: InsightConfig,
        engine: EngineProtocol | None = None,
        context_builder: ContextBuilder | None = None,
    ) -> None:
        self._config = config
        self._engine = engine if engine is not None else create_engine(config)
        self._builder = context_builder or ContextBuilder(config.context)

    @property
    def config(self) -> InsightConfig:
        return self._config

    @property
    def engine(self) -> EngineProtocol:
        return self._engine

    def analyze(
        self,
        exc: BaseException,
        request: RequestContext | None = None,
        application: ApplicationContext | None = None,
        database: DatabaseContext | None = None,
        performance: PerformanceContext | None = None,
    ) -> Explanation:
        """Explain a caught exception.

        Returns:
            The explanation, or an empty one when inactive in this environment
        """
        if not self._config.is_active():
            return Explanation.empty()

        try:
            context = self._builder.build(
                exc,
                request=request,
                application=application,
                database=database,
                performance=performance,
            )
        except Exception as e:
            log.warning("context_build_failed", error=str(e))
            context = self._minimal_context(exc)

        return self._explain(context)

    def analyze_from_log(
        self,
        message: str,
        file: str,
        line: int,
        exception_class: str = "Exception",
    ) -> Explanation:
        """Explain an error known only from a log entry."""
        if not self._config.is_active():
            return Explanation.empty()

        try:
            context = self._builder.build_from_log_entry(message, file, line, exception_class)
        except Exception as e:
            log.warning("context_build_failed", error=str(e))
            context = RuntimeContext(
                exception=ExceptionInfo(
                    class_name=exception_class, message=message, file=file, line=line
                ),
            )

        return self._explain(context)

    def analyze_context(self, context: RuntimeContext) -> Explanation:
        """Explain a context built elsewhere (e.g. parsed from a traceback)."""
        if not self._config.is_active():
            return Explanation.empty()
        return self._explain(context)

    def _explain(self, context: RuntimeContext) -> Explanation:
        try:
            return self._engine.explain(context)
        except Exception as e:
            log.exception("explanation_failed", error=str(e))
            return Explanation.empty()

    def _minimal_context(self, exc: BaseException) -> RuntimeContext:
        """Log-entry style context carrying the exception identity only."""
        return RuntimeContext(
            exception=ExceptionInfo(class_name=type(exc).__name__, message=str(exc)),
        )
