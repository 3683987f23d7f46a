"""Explains values of the wrong type reaching an operation."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, compile_patterns

# NullReference claims null access and every TypeError naming NoneType;
# ArgumentCount claims call arity.
_NULL_MARKERS = ("on null", "NoneType")
_ARITY_MARKERS = (
    "positional argument",
    "keyword argument",
    "keyword-only argument",
    "multiple values for argument",
    "arguments to function",
    "expects exactly",
    "expects at least",
)


class TypeMismatchStrategy(PatternStrategy):
    """Handles ``TypeError`` messages such as:

    - ``Argument #1 ($id) must be of type int, string given``
    - ``Return value must be of type array, null returned``
    - ``unsupported operand type(s) for +: 'int' and 'str'``
    - ``can only concatenate str (not "int") to str``
    """

    strategy_name = "TypeMismatch"
    _patterns = compile_patterns(
        (
            r"Argument #(?P<argument>\d+)(?: \(\$\w+\))? must be of type "
            r"(?P<expected>[^,]+), (?P<actual>\w+)(?: \$\w+)? given",
            "argument",
        ),
        (
            r"Return value(?: of function [\w\\:]+\(\))? must be of type "
            r"(?P<expected>[^,]+), (?P<actual>\w+) returned",
            "return",
        ),
        (
            r"Cannot assign (?P<actual>\w+) to property .+::\$(?P<property>\w+) "
            r"of type (?P<expected>\w+)",
            "property",
        ),
        (
            r"unsupported operand type\(s\) for (?P<operator>.+?): "
            r"'(?P<left>\w+)' and '(?P<right>\w+)'",
            "operand",
        ),
        (
            r'can only concatenate (?P<expected>\w+) \(not "(?P<actual>\w+)"\) to \w+',
            "concatenate",
        ),
        (
            r"'(?P<operator>.+?)' not supported between instances of "
            r"'(?P<left>\w+)' and '(?P<right>\w+)'",
            "comparison",
        ),
        (r"must be (?:a )?(?P<expected>\w+), not (?P<actual>\w+)", "expected_type"),
        (
            r"'(?P<actual>\w+)' object is not (?P<capability>subscriptable|iterable|callable)",
            "capability",
        ),
    )

    _PYTHON_SUBTYPES = frozenset(
        {"operand", "concatenate", "comparison", "expected_type", "capability"}
    )

    def supports(self, context: RuntimeContext) -> bool:
        exc = context.exception
        if "TypeError" not in exc.class_name:
            return False

        message = exc.message
        if any(marker in message for marker in _NULL_MARKERS):
            return False
        if any(marker in message for marker in _ARITY_MARKERS):
            return False

        return (
            self._matches_any(message)
            or "must be of type" in message
            or "Cannot assign" in message
        )

    def explain(self, context: RuntimeContext) -> Explanation:
        found = self._match(context.exception.message)
        subtype = found[0] if found else "unknown"
        details = found[1].groupdict() if found else {}

        return self._explanation(
            context,
            cause=self._cause(subtype, details),
            suggestions=self._suggestions(subtype, details),
        )

    def _cause(self, subtype: str, details: dict[str, str | None]) -> str:
        expected = details.get("expected") or "unknown"
        actual = details.get("actual") or "unknown"

        if subtype == "argument":
            return (
                f"Function or method expected argument #{details['argument']} to be of type "
                f"`{expected}`, but received `{actual}` instead. "
                "This is a type mismatch that PHP's strict type checking caught."
            )
        if subtype == "return":
            return (
                f"The function or method is declared to return `{expected}`, "
                f"but it actually returned `{actual}`. This violates the return type declaration."
            )
        if subtype == "property":
            return (
                f"Cannot assign a value of type `{actual}` to property `${details['property']}` "
                f"which is typed as `{expected}`. The types are incompatible."
            )
        if subtype == "operand":
            return (
                f"The operator `{details['operator']}` is not defined between `{details['left']}` "
                f"and `{details['right']}` values. Python does not convert between these types "
                "implicitly."
            )
        if subtype == "concatenate":
            return (
                f"Only `{expected}` values can be concatenated to a `{expected}`, "
                f"but a `{actual}` was given."
            )
        if subtype == "comparison":
            return (
                f"The comparison `{details['operator']}` is not defined between "
                f"`{details['left']}` and `{details['right']}` values. "
                "Values of mixed types cannot be ordered."
            )
        if subtype == "expected_type":
            return f"An operation expected a `{expected}` value but received a `{actual}`."
        if subtype == "capability":
            verb = {
                "subscriptable": "indexed",
                "iterable": "iterated over",
                "callable": "called",
            }[details["capability"] or "callable"]
            return f"A `{actual}` value cannot be {verb}, but the code tried to do so."
        return f"A type mismatch occurred. Expected `{expected}` but got `{actual}`."

    def _suggestions(self, subtype: str, details: dict[str, str | None]) -> list[str]:
        suggestions: list[str] = []
        expected = details.get("expected") or ""
        actual = details.get("actual") or ""
        operands = {details.get("left"), details.get("right")}

        if subtype in self._PYTHON_SUBTYPES:
            if {"str", "int"} <= operands or {actual, expected} == {"str", "int"}:
                suggestions.append(
                    "Convert explicitly with `int(value)` or `str(value)`, "
                    "or build the text with an f-string"
                )
            if {"str", "float"} <= operands:
                suggestions.append("Convert the text with `float(value)` before doing arithmetic")
            suggestions.append("Verify the data source is returning the expected type")
            suggestions.append(
                "Add type hints and run a type checker such as mypy to catch this before runtime"
            )
            return suggestions

        if actual == "null" and expected:
            suggestions.append(
                f"Make the parameter/property nullable by adding `?` before the type: `?{expected}`"
            )
            suggestions.append("Provide a non-null value or set a default value")
        if actual == "string" and "int" in expected:
            suggestions.append("Convert the string to integer using `(int)` cast or `intval()`")
        if actual == "int" and "string" in expected:
            suggestions.append("Convert the integer to string using `(string)` cast or `strval()`")
        if actual == "array" and "object" in expected:
            suggestions.append(
                "Convert the array to object using `(object)` cast or instantiate the expected class"
            )

        suggestions.append("Verify the data source is returning the expected type")
        suggestions.append("Add type validation before passing the value")

        if subtype == "return":
            suggestions.append("Ensure all code paths return the correct type")
            suggestions.append("Check for early returns that might return a different type")

        return suggestions
