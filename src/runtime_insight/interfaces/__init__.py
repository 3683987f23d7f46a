"""Protocol definitions for pluggable components."""

from .ai import AIProvider
from .engine import ExplanationCache, ExplanationEngine
from .strategy import ExplanationStrategy

__all__ = ["AIProvider", "ExplanationCache", "ExplanationEngine", "ExplanationStrategy"]
