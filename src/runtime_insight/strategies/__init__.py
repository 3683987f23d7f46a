"""Rule-based explanation strategies."""

from .argument_count import ArgumentCountStrategy
from .base import CALIBRATION, Calibration, PatternStrategy
from .division_by_zero import DivisionByZeroStrategy
from .invalid_value import InvalidValueStrategy
from .null_reference import NullReferenceStrategy
from .symbol_not_found import SymbolNotFoundStrategy
from .syntax_error import SyntaxErrorStrategy
from .type_mismatch import TypeMismatchStrategy
from .undefined_key import UndefinedKeyStrategy


def default_strategies() -> list[PatternStrategy]:
    """Fresh instances of the built-in strategies, in registration order."""
    return [
        NullReferenceStrategy(),
        UndefinedKeyStrategy(),
        TypeMismatchStrategy(),
        ArgumentCountStrategy(),
        SymbolNotFoundStrategy(),
        DivisionByZeroStrategy(),
        SyntaxErrorStrategy(),
        InvalidValueStrategy(),
    ]


__all__ = [
    "CALIBRATION",
    "ArgumentCountStrategy",
    "Calibration",
    "DivisionByZeroStrategy",
    "InvalidValueStrategy",
    "NullReferenceStrategy",
    "PatternStrategy",
    "SymbolNotFoundStrategy",
    "SyntaxErrorStrategy",
    "TypeMismatchStrategy",
    "UndefinedKeyStrategy",
    "default_strategies",
]
