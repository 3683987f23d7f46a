"""Caching decorator for explanation engines.

Explanations are keyed by error signature (class, message, file, line) so a
repeated failure is explained once per TTL window.
"""

from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Callable
from typing import Any

import structlog
from cachetools import LRUCache

from runtime_insight.config.schema import CacheConfig
from runtime_insight.interfaces.engine import ExplanationCache, ExplanationEngine
from runtime_insight.models.context import RuntimeContext
from runtime_insight.models.explanation import Explanation

log = structlog.get_logger()

CACHE_KEY_PREFIX = "runtime_insight:"


def cache_key(context: RuntimeContext) -> str:
    """Build the cache key for a context's error signature."""
    exc = context.exception
    signature = json.dumps(
        {"class": exc.class_name, "message": exc.message, "file": exc.file, "line": exc.line}
    )
    return CACHE_KEY_PREFIX + hashlib.sha256(signature.encode("utf-8")).hexdigest()


class CachingExplanationEngine:
    """Engine decorator caching explanations by error signature.

    Example:
        engine = CachingExplanationEngine(
            ExplanationEngine(default_strategies()),
            InMemoryExplanationCache(),
            config.cache,
        )
    """

    def __init__(
        self,
        delegate: ExplanationEngine,
        cache: ExplanationCache,
        config: CacheConfig,
    ) -> None:
        self._delegate = delegate
        self._cache = cache
        self._config = config

    @property
    def delegate(self) -> ExplanationEngine:
        return self._delegate

    def explain(self, context: RuntimeContext) -> Explanation:
        if not self._config.enabled:
            return self._delegate.explain(context)

        key = cache_key(context)

        try:
            cached = self._cache.get(key)
        except Exception as e:
            log.warning("cache_error", operation="get", error=str(e))
            return self._delegate.explain(context)

        if cached is not None:
            log.debug("cache_hit", key=key)
            return cached

        log.debug("cache_miss", key=key)
        explanation = self._delegate.explain(context)

        try:
            self._cache.set(key, explanation, self._config.ttl)
        except Exception as e:
            log.warning("cache_error", operation="set", error=str(e))

        return explanation


class InMemoryExplanationCache:
    """In-process explanation store bounded by LRU eviction.

    Entries are stored as flat dicts, so callers never share instances with
    the cache. Expiry is checked lazily on ``get``; there is no background
    sweep. Not thread-safe.
    """

    def __init__(
        self,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum number of entries before LRU eviction
            clock: Monotonic time source, injectable for tests
        """
        self._entries: LRUCache[str, tuple[dict[str, Any], float | None]] = LRUCache(
            maxsize=max_entries
        )
        self._clock = clock

    def get(self, key: str) -> Explanation | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        payload, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._entries[key]
            log.debug("cache_expired", key=key)
            return None

        return Explanation.from_dict(payload)

    def set(self, key: str, explanation: Explanation, ttl: int) -> None:
        expires_at = self._clock() + ttl if ttl > 0 else None
        self._entries[key] = (explanation.to_dict(), expires_at)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        self._entries.clear()
