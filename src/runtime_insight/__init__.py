"""runtime-insight: explanations for runtime errors.

Rule-based strategies recognize common failures; an AI provider (with retry
and a fallback chain) covers the rest, and a descriptive fallback guarantees
an answer for every error.
"""

from runtime_insight._version import __version__
from runtime_insight.config import InsightConfig, load_config
from runtime_insight.context import ContextBuilder, TracebackParser
from runtime_insight.core import (
    CachingExplanationEngine,
    ExplanationEngine,
    InMemoryExplanationCache,
    RuntimeInsight,
    create_engine,
)
from runtime_insight.models import Explanation, RuntimeContext
from runtime_insight.strategies import default_strategies

__all__ = [
    "CachingExplanationEngine",
    "ContextBuilder",
    "Explanation",
    "ExplanationEngine",
    "InMemoryExplanationCache",
    "InsightConfig",
    "RuntimeContext",
    "RuntimeInsight",
    "TracebackParser",
    "__version__",
    "create_engine",
    "default_strategies",
    "load_config",
]
