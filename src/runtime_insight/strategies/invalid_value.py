"""Explains values of the right type but an unacceptable value."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, compile_patterns


class InvalidValueStrategy(PatternStrategy):
    """Handles ``ValueError`` from both runtimes.

    Recognized messages add a specific cause sentence; anything else gets the
    general explanation.
    """

    strategy_name = "InvalidValue"
    _patterns = compile_patterns(
        (r"invalid literal for int\(\) with base (?P<base>\d+): (?P<value>.+)", "int_literal"),
        (r"could not convert string to float: (?P<value>.+)", "float_literal"),
        (r"too many values to unpack \(expected (?P<expected>\d+)", "too_many_unpack"),
        (
            r"not enough values to unpack \(expected (?P<expected>\d+), got (?P<actual>\d+)\)",
            "not_enough_unpack",
        ),
        (
            r"""["']?(?P<value>.+?)["']? is not a valid backing value for enum """
            r"""["']?(?P<enum>[\w\\]+)["']?""",
            "enum",
        ),
        (r"(?P<value>.+?) is not a valid (?P<enum>\w+)$", "enum"),
        (r"(?P<value>.+?) is not in list", "not_in_list"),
        (r"substring not found", "not_in_list"),
        (
            r"must not be empty|arg is an empty sequence|iterable argument is empty",
            "empty",
        ),
        (r"math domain error", "math_domain"),
    )

    def supports(self, context: RuntimeContext) -> bool:
        return "ValueError" in context.exception.class_name

    def explain(self, context: RuntimeContext) -> Explanation:
        found = self._match(context.exception.message)
        subtype = found[0] if found else "generic"
        groups = found[1].groupdict() if found else {}

        cause = (
            "A value passed to a function or used in an operation was invalid for that "
            "operation. ValueError is raised when the type is correct but the value is not "
            "allowed. The message usually states what was expected."
        )
        detail = self._detail(subtype, groups)
        if detail:
            cause = f"{detail} {cause}"

        return self._explanation(context, cause, self._suggestions(subtype, groups))

    def _detail(self, subtype: str, groups: dict[str, str | None]) -> str:
        value = groups.get("value")
        if subtype == "int_literal":
            return f"The text {value} cannot be parsed as a base-{groups.get('base')} integer."
        if subtype == "float_literal":
            return f"The text {value} cannot be parsed as a floating point number."
        if subtype == "too_many_unpack":
            return (
                f"The right-hand side produced more values than the {groups.get('expected')} "
                "names on the left-hand side of the assignment."
            )
        if subtype == "not_enough_unpack":
            return (
                f"The assignment expected {groups.get('expected')} values but only "
                f"{groups.get('actual')} were produced."
            )
        if subtype == "enum":
            return f"{value} is not one of the members of `{groups.get('enum')}`."
        if subtype == "not_in_list":
            return "The value searched for is not present in the sequence."
        if subtype == "empty":
            return "The operation needs at least one element but received an empty input."
        if subtype == "math_domain":
            return "The argument is outside the domain of the math function."
        return ""

    def _suggestions(self, subtype: str, groups: dict[str, str | None]) -> list[str]:
        suggestions = ["Read the error message to see which value was rejected and why"]

        if subtype in ("int_literal", "float_literal"):
            suggestions.append(
                "Strip whitespace and validate the text before converting, "
                "or catch ValueError around the conversion"
            )
        elif subtype in ("too_many_unpack", "not_enough_unpack"):
            suggestions.append(
                "Check the length of the sequence before unpacking, "
                "or use starred assignment: `first, *rest = items`"
            )
        elif subtype == "enum":
            suggestions.append(
                f"Ensure the value is a valid member of `{groups.get('enum')}` before converting it"
            )
        elif subtype == "not_in_list":
            suggestions.append(
                "Check membership with `in` before calling `.index()` or `.remove()`"
            )
        elif subtype == "empty":
            suggestions.append(
                "Check the input is not empty, or pass `default=` to `min()`/`max()`"
            )
        elif subtype == "math_domain":
            suggestions.append("Validate the argument range before calling the math function")
        else:
            suggestions.append(
                "Validate input before calling the function "
                "(e.g. check array is not empty before first())"
            )
            suggestions.append("For enums: ensure the value is a valid backed enum case")
            suggestions.append(
                "For preg_*: ensure the pattern is valid and the subject is a string"
            )

        suggestions.append(
            "Add checks or defaults so invalid values are handled before the operation"
        )
        return suggestions
