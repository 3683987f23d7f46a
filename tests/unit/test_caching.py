"""Tests for the explanation cache and the caching engine decorator."""

import pytest

from runtime_insight.config.schema import CacheConfig
from runtime_insight.core.caching import (
    CACHE_KEY_PREFIX,
    CachingExplanationEngine,
    InMemoryExplanationCache,
    cache_key,
)
from runtime_insight.models.explanation import Explanation


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingEngine:
    """Engine double counting explain calls."""

    def __init__(self, explanation: Explanation) -> None:
        self.explanation = explanation
        self.calls = 0

    def explain(self, context) -> Explanation:
        self.calls += 1
        return self.explanation


class BrokenCache:
    """Cache whose every operation fails."""

    def get(self, key: str) -> Explanation | None:
        raise ConnectionError("cache backend down")

    def set(self, key: str, explanation: Explanation, ttl: int) -> None:
        raise ConnectionError("cache backend down")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestCacheKey:
    """Tests for cache_key()."""

    def test_prefix_and_digest(self, context_factory) -> None:
        """Keys are the prefix followed by a hex digest."""
        key = cache_key(context_factory())
        assert key.startswith(CACHE_KEY_PREFIX)
        assert len(key) == len(CACHE_KEY_PREFIX) + 64

    def test_same_signature_same_key(self, context_factory) -> None:
        """Contexts differing only outside the signature share a key."""
        first = context_factory(snippet="a = 1")
        second = context_factory(snippet="b = 2")
        assert cache_key(first) == cache_key(second)

    @pytest.mark.parametrize(
        "override",
        [
            {"class_name": "ValueError"},
            {"message": "something else went wrong"},
            {"file": "/app/other.py"},
            {"line": 43},
        ],
    )
    def test_signature_fields_change_key(self, context_factory, override) -> None:
        """Each signature field contributes to the key."""
        assert cache_key(context_factory()) != cache_key(context_factory(**override))


class TestInMemoryExplanationCache:
    """Tests for InMemoryExplanationCache."""

    def test_miss(self) -> None:
        """Unknown keys return None."""
        assert InMemoryExplanationCache().get("runtime_insight:nope") is None

    def test_set_then_get(self, sample_explanation) -> None:
        """Stored explanations are returned equal."""
        cache = InMemoryExplanationCache()
        cache.set("k", sample_explanation, ttl=60)
        assert cache.get("k") == sample_explanation
        assert "k" in cache

    def test_returns_copies(self, sample_explanation) -> None:
        """Callers never share an instance with the cache."""
        cache = InMemoryExplanationCache()
        cache.set("k", sample_explanation, ttl=60)
        assert cache.get("k") is not cache.get("k")

    def test_expiry(self, sample_explanation, clock) -> None:
        """Entries expire once the TTL has elapsed."""
        cache = InMemoryExplanationCache(clock=clock)
        cache.set("k", sample_explanation, ttl=60)

        clock.advance(59)
        assert cache.get("k") is not None

        clock.advance(1)
        assert cache.get("k") is None
        assert "k" not in cache

    def test_zero_ttl_never_expires(self, sample_explanation, clock) -> None:
        """A TTL of 0 keeps the entry for the process lifetime."""
        cache = InMemoryExplanationCache(clock=clock)
        cache.set("k", sample_explanation, ttl=0)
        clock.advance(10 * 365 * 24 * 3600)
        assert cache.get("k") == sample_explanation

    def test_lru_eviction(self, sample_explanation) -> None:
        """The least recently used entry is evicted first."""
        cache = InMemoryExplanationCache(max_entries=2)
        cache.set("a", sample_explanation, ttl=0)
        cache.set("b", sample_explanation, ttl=0)
        cache.get("a")
        cache.set("c", sample_explanation, ttl=0)

        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2

    def test_overwrite(self, sample_explanation) -> None:
        """Setting an existing key replaces the entry."""
        cache = InMemoryExplanationCache()
        cache.set("k", sample_explanation, ttl=0)
        replacement = Explanation(message="m", cause="newer", confidence=0.5)
        cache.set("k", replacement, ttl=0)
        assert cache.get("k") == replacement

    def test_clear(self, sample_explanation) -> None:
        """clear() removes every entry."""
        cache = InMemoryExplanationCache()
        cache.set("k", sample_explanation, ttl=0)
        cache.clear()
        assert len(cache) == 0


class TestCachingExplanationEngine:
    """Tests for CachingExplanationEngine."""

    def test_second_call_is_served_from_cache(self, context_factory, sample_explanation) -> None:
        """The delegate runs once per signature."""
        delegate = CountingEngine(sample_explanation)
        engine = CachingExplanationEngine(delegate, InMemoryExplanationCache(), CacheConfig())

        first = engine.explain(context_factory())
        second = engine.explain(context_factory())

        assert first == second == sample_explanation
        assert delegate.calls == 1

    def test_different_signatures_miss(self, context_factory, sample_explanation) -> None:
        """A different error is explained again."""
        delegate = CountingEngine(sample_explanation)
        engine = CachingExplanationEngine(delegate, InMemoryExplanationCache(), CacheConfig())

        engine.explain(context_factory(line=1))
        engine.explain(context_factory(line=2))

        assert delegate.calls == 2

    def test_expired_entry_recomputed(self, context_factory, sample_explanation, clock) -> None:
        """The delegate runs again after the TTL."""
        delegate = CountingEngine(sample_explanation)
        engine = CachingExplanationEngine(
            delegate, InMemoryExplanationCache(clock=clock), CacheConfig(ttl=30)
        )

        engine.explain(context_factory())
        clock.advance(31)
        engine.explain(context_factory())

        assert delegate.calls == 2

    def test_disabled_bypasses_cache(self, context_factory, sample_explanation) -> None:
        """With caching disabled nothing is stored."""
        delegate = CountingEngine(sample_explanation)
        cache = InMemoryExplanationCache()
        engine = CachingExplanationEngine(delegate, cache, CacheConfig(enabled=False))

        engine.explain(context_factory())
        engine.explain(context_factory())

        assert delegate.calls == 2
        assert len(cache) == 0

    def test_broken_cache_degrades_to_delegate(self, context_factory, sample_explanation) -> None:
        """Cache failures never reach the caller."""
        delegate = CountingEngine(sample_explanation)
        engine = CachingExplanationEngine(delegate, BrokenCache(), CacheConfig())

        assert engine.explain(context_factory()) == sample_explanation
        assert delegate.calls == 1

    def test_delegate_exposed(self, sample_explanation) -> None:
        """The wrapped engine is reachable."""
        delegate = CountingEngine(sample_explanation)
        engine = CachingExplanationEngine(delegate, InMemoryExplanationCache(), CacheConfig())
        assert engine.delegate is delegate
