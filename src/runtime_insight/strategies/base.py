"""Shared mechanics for rule-based explanation strategies.

Each strategy owns an ordered table of ``(compiled pattern, subtype)`` pairs.
The first pattern matching the exception message decides the subtype, and
its captured groups are interpolated into the strategy's fixed cause and
suggestion templates.

Priorities and confidences are calibration data, kept in ``CALIBRATION``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import ClassVar

from ..models.context import ExceptionInfo, RuntimeContext
from ..models.explanation import Explanation


@dataclass(frozen=True)
class Calibration:
    """Fixed ranking and confidence for one strategy."""

    error_type: str
    priority: int
    confidence: float


CALIBRATION: Mapping[str, Calibration] = {
    "NullReference": Calibration("NullPointerError", 100, 0.85),
    "UndefinedKey": Calibration("UndefinedIndex", 95, 0.88),
    "TypeMismatch": Calibration("TypeError", 90, 0.90),
    "ArgumentCount": Calibration("ArgumentCountError", 85, 0.92),
    "DivisionByZero": Calibration("DivisionByZeroError", 82, 0.90),
    "SyntaxError": Calibration("ParseError", 82, 0.88),
    "InvalidValue": Calibration("ValueError", 82, 0.85),
    "SymbolNotFound": Calibration("ClassNotFoundError", 80, 0.88),
}

PatternTable = tuple[tuple[re.Pattern[str], str], ...]


def compile_patterns(*entries: tuple[str, str]) -> PatternTable:
    """Compile ``(regex, subtype)`` pairs, keeping their order."""
    return tuple((re.compile(pattern), subtype) for pattern, subtype in entries)


class PatternStrategy(ABC):
    """Base class for strategies driven by an ordered pattern table.

    Subclasses set ``strategy_name`` (a key of ``CALIBRATION``) and
    ``_patterns``, and implement ``supports`` and ``explain``.
    """

    strategy_name: ClassVar[str]
    _patterns: ClassVar[PatternTable] = ()

    @property
    def name(self) -> str:
        return self.strategy_name

    @property
    def calibration(self) -> Calibration:
        return CALIBRATION[self.strategy_name]

    def priority(self) -> int:
        return self.calibration.priority

    @abstractmethod
    def supports(self, context: RuntimeContext) -> bool:
        """Return True if the failure belongs to this strategy's family."""

    @abstractmethod
    def explain(self, context: RuntimeContext) -> Explanation:
        """Build the explanation for a supported failure."""

    def _match(self, message: str) -> tuple[str, re.Match[str]] | None:
        """Return the first ``(subtype, match)`` from the pattern table."""
        for pattern, subtype in self._patterns:
            match = pattern.search(message)
            if match is not None:
                return subtype, match
        return None

    def _matches_any(self, message: str) -> bool:
        return self._match(message) is not None

    def _explanation(
        self,
        context: RuntimeContext,
        cause: str,
        suggestions: Iterable[str],
    ) -> Explanation:
        """Wrap a cause and suggestions with this strategy's calibration."""
        exc = context.exception
        return Explanation(
            message=exc.message,
            cause=cause,
            suggestions=tuple(suggestions),
            confidence=self.calibration.confidence,
            error_type=self.calibration.error_type,
            location=exc.location,
        )


def snippet_of(context: RuntimeContext) -> str:
    """Source snippet around the failing line, or an empty string."""
    return context.source_context.code_snippet


def snippet_contains(context: RuntimeContext, *needles: str) -> bool:
    snippet = snippet_of(context)
    return bool(snippet) and any(needle in snippet for needle in needles)


def class_is(exception: ExceptionInfo, *names: str) -> bool:
    """Check the short class name against a set of exact names."""
    return exception.short_class_name in names
