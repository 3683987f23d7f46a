"""Core business logic components.

This module exports the main business logic classes:
- ExplanationEngine: Strategies, AI fallback and descriptive fallback
- CachingExplanationEngine: Caches explanations by error signature
- RuntimeInsight: Facade used by host applications
"""

from runtime_insight.core.caching import (
    CachingExplanationEngine,
    InMemoryExplanationCache,
    cache_key,
)
from runtime_insight.core.engine import ExplanationEngine
from runtime_insight.core.fallback import describe
from runtime_insight.core.insight import RuntimeInsight, create_engine

__all__ = [
    "CachingExplanationEngine",
    "ExplanationEngine",
    "InMemoryExplanationCache",
    "RuntimeInsight",
    "cache_key",
    "create_engine",
    "describe",
]
