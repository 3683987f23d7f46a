"""Tests for the RuntimeInsight facade and create_engine()."""

import pytest

from runtime_insight.adapters.llm.fallback import FallbackChainProvider
from runtime_insight.config.schema import AIConfig, CacheConfig, InsightConfig, ProviderSettings
from runtime_insight.core.caching import CachingExplanationEngine
from runtime_insight.core.engine import ExplanationEngine
from runtime_insight.core.insight import RuntimeInsight, create_engine
from runtime_insight.models.explanation import Explanation


class RecordingEngine:
    """Engine double recording the contexts it receives."""

    def __init__(self, error: Exception | None = None) -> None:
        self.contexts = []
        self._error = error

    def explain(self, context) -> Explanation:
        self.contexts.append(context)
        if self._error is not None:
            raise self._error
        return Explanation(message=context.exception.message, cause="recorded", confidence=0.5)


class BrokenBuilder:
    """Context builder that always fails."""

    def build(self, exc, **kwargs):
        raise OSError("disk unreadable")

    def build_from_log_entry(self, message, file, line, exception_class="Exception"):
        raise OSError("disk unreadable")


class StubProvider:
    name = "stub"

    def is_available(self) -> bool:
        return True

    def analyze(self, context) -> Explanation:
        return Explanation.empty()


def divide() -> float:
    return 1 / 0


class TestCreateEngine:
    """Tests for create_engine()."""

    def test_cached_by_default(self, insight_config) -> None:
        """Caching wraps the engine when enabled."""
        engine = create_engine(insight_config)

        assert isinstance(engine, CachingExplanationEngine)
        assert isinstance(engine.delegate, ExplanationEngine)
        assert engine.delegate.ai_provider is None

    def test_uncached(self) -> None:
        """With caching off the bare engine is returned."""
        config = InsightConfig(ai=AIConfig(enabled=False), cache=CacheConfig(enabled=False))
        assert isinstance(create_engine(config), ExplanationEngine)

    def test_default_strategies_registered(self, insight_config) -> None:
        """The built-in strategies are used by default."""
        engine = create_engine(insight_config)
        assert len(engine.delegate.strategies) == 8

    def test_custom_strategies(self, insight_config) -> None:
        """Explicit strategies replace the defaults."""
        engine = create_engine(insight_config, strategies=[])
        assert engine.delegate.strategies == ()

    def test_explicit_provider(self, insight_config) -> None:
        """A given provider is used even when AI is disabled in config."""
        provider = StubProvider()
        engine = create_engine(insight_config, ai_provider=provider)
        assert engine.delegate.ai_provider is provider

    def test_provider_from_config(self) -> None:
        """The configured provider chain is built."""
        config = InsightConfig(
            ai=AIConfig(
                api_key="k",
                fallback_providers=["anthropic"],
                anthropic=ProviderSettings(api_key="k2"),
            ),
            cache=CacheConfig(enabled=False),
        )
        engine = create_engine(config)

        assert isinstance(engine.ai_provider, FallbackChainProvider)
        assert [p.name for p in engine.ai_provider.providers] == ["openai", "anthropic"]


class TestRuntimeInsight:
    """Tests for RuntimeInsight."""

    def test_analyze_live_exception(self, insight_config) -> None:
        """A caught exception is explained by the built-in rules."""
        insight = RuntimeInsight(insight_config)
        try:
            divide()
        except ZeroDivisionError as e:
            explanation = insight.analyze(e)

        assert explanation.confidence == 0.90
        assert explanation.error_type == "DivisionByZeroError"
        assert "1 / 0" in explanation.code_snippet
        assert explanation.call_site_location is not None

    def test_repeated_failure_served_from_cache(self, insight_config) -> None:
        """The same error twice gives equal explanations."""
        insight = RuntimeInsight(insight_config)
        results = []
        for _ in range(2):
            try:
                divide()
            except ZeroDivisionError as e:
                results.append(insight.analyze(e))
        assert results[0] == results[1]

    def test_inactive_returns_empty(self) -> None:
        """Nothing runs when analysis is off for the environment."""
        engine = RecordingEngine()
        config = InsightConfig(current_environment="production")
        insight = RuntimeInsight(config, engine=engine)

        assert insight.analyze(ValueError("x")).is_empty
        assert insight.analyze_from_log("x", "", 0).is_empty
        assert engine.contexts == []

    def test_master_switch(self) -> None:
        """enabled=False disables analysis."""
        insight = RuntimeInsight(InsightConfig(enabled=False), engine=RecordingEngine())
        assert insight.analyze(ValueError("x")).is_empty

    def test_engine_failure_returns_empty(self, insight_config) -> None:
        """Engine errors never reach the host application."""
        insight = RuntimeInsight(insight_config, engine=RecordingEngine(RuntimeError("bug")))
        assert insight.analyze(ValueError("x")).is_empty

    def test_builder_failure_degrades_to_minimal_context(self, insight_config) -> None:
        """A failing context builder still yields an explanation."""
        engine = RecordingEngine()
        insight = RuntimeInsight(insight_config, engine=engine, context_builder=BrokenBuilder())

        explanation = insight.analyze(KeyError("email"))

        assert explanation.cause == "recorded"
        context = engine.contexts[0]
        assert context.exception.class_name == "KeyError"
        assert context.exception.message == "'email'"
        assert context.source_context.is_empty

    def test_log_entry_builder_failure(self, insight_config) -> None:
        """A failing builder for log entries keeps the given identity."""
        engine = RecordingEngine()
        insight = RuntimeInsight(insight_config, engine=engine, context_builder=BrokenBuilder())

        insight.analyze_from_log("boom", "/app/a.py", 3, exception_class="RuntimeError")

        assert engine.contexts[0].exception.location == "/app/a.py:3"
        assert engine.contexts[0].exception.class_name == "RuntimeError"

    def test_analyze_from_log(self, insight_config) -> None:
        """A log entry is explained without an exception object."""
        insight = RuntimeInsight(insight_config)

        explanation = insight.analyze_from_log(
            "Call to a member function getId() on null", "/app/x.php", 10, exception_class="Error"
        )

        assert explanation.confidence == 0.85

    def test_analyze_context(self, insight_config, context_factory) -> None:
        """A prepared context is passed through to the engine."""
        engine = RecordingEngine()
        insight = RuntimeInsight(insight_config, engine=engine)
        context = context_factory()

        insight.analyze_context(context)

        assert engine.contexts == [context]

    def test_properties(self, insight_config) -> None:
        """Config and engine are exposed."""
        engine = RecordingEngine()
        insight = RuntimeInsight(insight_config, engine=engine)
        assert insight.config is insight_config
        assert insight.engine is engine

    @pytest.mark.parametrize("environment", ["local", "staging"])
    def test_allowed_environments(self, environment) -> None:
        """Default allow list environments are active."""
        config = InsightConfig(current_environment=environment, ai=AIConfig(enabled=False))
        insight = RuntimeInsight(config, engine=RecordingEngine())
        assert not insight.analyze(ValueError("x")).is_empty
