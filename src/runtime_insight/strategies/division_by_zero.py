"""Explains division or modulo by zero."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy


class DivisionByZeroStrategy(PatternStrategy):
    strategy_name = "DivisionByZero"

    def supports(self, context: RuntimeContext) -> bool:
        exc = context.exception
        if "DivisionByZeroError" in exc.class_name or "ZeroDivisionError" in exc.class_name:
            return True
        message = exc.message.lower()
        return "division by zero" in message or "modulo by zero" in message

    def explain(self, context: RuntimeContext) -> Explanation:
        cause = (
            "A division by zero was attempted. The divisor (denominator) is zero, "
            "which is not allowed in arithmetic. This often happens when a variable used as "
            "the divisor is zero or when user input is not validated."
        )

        if "ZeroDivisionError" in context.exception.class_name:
            guard = "Guard the operation: `result = a / divisor if divisor != 0 else default`"
        else:
            guard = "Use a conditional: if ($divisor !== 0) { $result = $a / $divisor; }"

        suggestions = [
            "Check that the divisor is not zero before dividing",
            guard,
            "Validate user input or configuration values that feed into the divisor",
            "Consider using a default or fallback when the divisor might be zero",
        ]
        return self._explanation(context, cause, suggestions)
