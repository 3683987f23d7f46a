"""Tests for AI provider construction and the fallback chain."""

import pytest

from runtime_insight.adapters.llm.anthropic import AnthropicProvider
from runtime_insight.adapters.llm.factory import create_provider, create_single_provider
from runtime_insight.adapters.llm.fallback import FallbackChainProvider
from runtime_insight.adapters.llm.ollama import OllamaProvider
from runtime_insight.adapters.llm.openai import OpenAIProvider
from runtime_insight.config.schema import AIConfig
from runtime_insight.models.explanation import Explanation


class ScriptedProvider:
    """Provider double returning a fixed result."""

    def __init__(
        self,
        name: str,
        result: Explanation | Exception | None = None,
        available: bool = True,
    ) -> None:
        self.name = name
        self._result = result if result is not None else Explanation.empty()
        self._available = available
        self.calls = 0

    def is_available(self) -> bool:
        return self._available

    def analyze(self, context) -> Explanation:
        self.calls += 1
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


def answer(source: str) -> Explanation:
    return Explanation(message="m", cause=f"from {source}", confidence=0.7)


class TestCreateSingleProvider:
    """Tests for create_single_provider()."""

    @pytest.mark.parametrize(
        ("name", "provider_class"),
        [
            ("openai", OpenAIProvider),
            ("anthropic", AnthropicProvider),
            ("ollama", OllamaProvider),
        ],
    )
    def test_known_names(self, ai_config, name, provider_class) -> None:
        """Each provider name maps to its adapter."""
        assert isinstance(create_single_provider(name, ai_config), provider_class)

    def test_unknown_name(self, ai_config) -> None:
        """Unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown AI provider: gemini"):
            create_single_provider("gemini", ai_config)


class TestCreateProvider:
    """Tests for create_provider()."""

    def test_disabled(self) -> None:
        """No provider when AI is off."""
        assert create_provider(AIConfig(enabled=False)) is None

    def test_single_provider(self, ai_config) -> None:
        """Without fallbacks the primary is returned directly."""
        provider = create_provider(ai_config)
        assert isinstance(provider, OpenAIProvider)

    def test_chain(self) -> None:
        """Fallbacks follow the primary."""
        config = AIConfig(provider="anthropic", api_key="k", fallback_providers=["ollama"])

        provider = create_provider(config)

        assert isinstance(provider, FallbackChainProvider)
        assert [p.name for p in provider.providers] == ["anthropic", "ollama"]

    def test_chain_deduplicated(self) -> None:
        """A name listed twice is used once."""
        config = AIConfig(
            provider="ollama",
            fallback_providers=["openai", "ollama", "openai"],
        )
        provider = create_provider(config)
        assert [p.name for p in provider.providers] == ["ollama", "openai"]


class TestFallbackChainProvider:
    """Tests for FallbackChainProvider."""

    def test_name(self) -> None:
        assert FallbackChainProvider([]).name == "fallback"

    def test_first_answer_wins(self, null_context) -> None:
        """Later members are not called once one answers."""
        first = ScriptedProvider("a", answer("a"))
        second = ScriptedProvider("b", answer("b"))

        result = FallbackChainProvider([first, second]).analyze(null_context)

        assert result.cause == "from a"
        assert second.calls == 0

    def test_empty_result_moves_on(self, null_context) -> None:
        """An empty answer falls through to the next member."""
        chain = FallbackChainProvider([ScriptedProvider("a"), ScriptedProvider("b", answer("b"))])
        assert chain.analyze(null_context).cause == "from b"

    def test_unavailable_member_skipped(self, null_context) -> None:
        """Unavailable members are never called."""
        offline = ScriptedProvider("a", answer("a"), available=False)
        chain = FallbackChainProvider([offline, ScriptedProvider("b", answer("b"))])

        assert chain.analyze(null_context).cause == "from b"
        assert offline.calls == 0

    def test_raising_member_skipped(self, null_context) -> None:
        """A member raising is treated like an empty answer."""
        chain = FallbackChainProvider(
            [ScriptedProvider("a", RuntimeError("boom")), ScriptedProvider("b", answer("b"))]
        )
        assert chain.analyze(null_context).cause == "from b"

    def test_all_fail(self, null_context) -> None:
        """Nothing usable gives the empty explanation."""
        chain = FallbackChainProvider([ScriptedProvider("a"), ScriptedProvider("b")])
        assert chain.analyze(null_context).is_empty

    def test_availability(self) -> None:
        """The chain is available when any member is."""
        offline = ScriptedProvider("a", available=False)
        assert not FallbackChainProvider([offline]).is_available()
        assert FallbackChainProvider([offline, ScriptedProvider("b")]).is_available()
