"""Explains calls made with the wrong number of arguments."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, compile_patterns

_CALLABLE = r"(?P<function>[\w.<>]+)"


@dataclass(frozen=True)
class _CallDetails:
    subtype: str
    function: str | None = None
    passed: int | None = None
    expected: int | None = None
    argument: str | None = None


class ArgumentCountStrategy(PatternStrategy):
    """Handles errors like:

    - ``Too few arguments to function foo(), 1 passed ... exactly 2 expected``
    - ``str_repeat() expects exactly 2 arguments, 1 given``
    - ``greet() takes 1 positional argument but 2 were given``
    - ``greet() missing 1 required positional argument: 'name'``
    """

    strategy_name = "ArgumentCount"
    _patterns = compile_patterns(
        (
            r"Too few arguments to function (?P<function>[^,]+), (?P<passed>\d+) passed"
            r".* (?:exactly |at least )?(?P<expected>\d+) expected",
            "too_few",
        ),
        (
            r"Too many arguments to function (?P<function>[^,]+), (?P<passed>\d+) passed"
            r".* (?:exactly |at most )?(?P<expected>\d+) expected",
            "too_many",
        ),
        (
            r"(?P<function>[^(]+)\(\) expects (?:exactly |at least )?(?P<expected>\d+) "
            r"arguments?, (?P<passed>\d+) given",
            "expects",
        ),
        (
            _CALLABLE + r"\(\) takes (?:from \d+ to )?(?P<expected>\d+) positional "
            r"arguments? but (?P<passed>\d+) (?:was|were) given",
            "too_many",
        ),
        (
            _CALLABLE + r"\(\) missing (?P<missing>\d+) required (?:positional|keyword-only) "
            r"arguments?: (?P<argument>.+)",
            "missing",
        ),
        (
            _CALLABLE + r"\(\) got an unexpected keyword argument '(?P<argument>\w+)'",
            "unexpected_keyword",
        ),
        (
            _CALLABLE + r"\(\) got multiple values for argument '(?P<argument>\w+)'",
            "multiple_values",
        ),
    )

    _MARKERS = ("Too few arguments", "Too many arguments", "expects exactly", "expects at least")

    def supports(self, context: RuntimeContext) -> bool:
        message = context.exception.message
        return self._matches_any(message) or any(m in message for m in self._MARKERS)

    def explain(self, context: RuntimeContext) -> Explanation:
        details = self._parse(context.exception.message)
        return self._explanation(
            context,
            cause=self._cause(details),
            suggestions=self._suggestions(details),
        )

    def _parse(self, message: str) -> _CallDetails:
        found = self._match(message)
        if found is None:
            return _CallDetails(subtype="unknown")

        subtype, match = found
        groups = match.groupdict()

        def as_int(key: str) -> int | None:
            value = groups.get(key)
            return int(value) if value is not None else None

        return _CallDetails(
            subtype=subtype,
            function=(groups.get("function") or "").strip() or None,
            passed=as_int("passed"),
            expected=as_int("expected") if subtype != "missing" else as_int("missing"),
            argument=groups.get("argument"),
        )

    def _cause(self, details: _CallDetails) -> str:
        function = details.function or "the function"
        passed = details.passed if details.passed is not None else "an incorrect number of"
        expected = details.expected if details.expected is not None else "the required number of"

        if details.subtype == "too_few":
            return (
                f"The function `{function}` requires at least {expected} argument(s), "
                f"but only {passed} were provided. Some required parameters are missing."
            )
        if details.subtype == "too_many":
            return (
                f"The function `{function}` accepts at most {expected} argument(s), "
                f"but {passed} were provided. Too many arguments were passed."
            )
        if details.subtype == "expects":
            return (
                f"The function `{function}` expects {expected} argument(s), "
                f"but {passed} were given."
            )
        if details.subtype == "missing":
            return (
                f"The call to `{function}()` leaves {expected} required argument(s) without a "
                f"value: {details.argument}. Every parameter without a default must be passed."
            )
        if details.subtype == "unexpected_keyword":
            return (
                f"`{function}()` was called with the keyword argument `{details.argument}`, "
                "but its signature has no parameter with that name."
            )
        if details.subtype == "multiple_values":
            return (
                f"`{function}()` received the argument `{details.argument}` twice, "
                "once by position and once by keyword."
            )
        return f"The function was called with {passed} arguments, but {expected} were expected."

    def _suggestions(self, details: _CallDetails) -> list[str]:
        suggestions: list[str] = []
        function = details.function or ""
        passed = details.passed or 0
        expected = details.expected or 0

        if details.subtype == "unexpected_keyword":
            suggestions.append(
                f"Check the spelling of `{details.argument}` against the parameter names of "
                f"`{function}()`"
            )
            suggestions.append(
                "Verify the installed version of the library accepts this keyword argument"
            )
        elif details.subtype == "multiple_values":
            suggestions.append(
                f"Pass `{details.argument}` either by position or by keyword, not both"
            )
            suggestions.append(
                "For methods, make sure `self` is not passed explicitly"
            )
        elif details.subtype in ("too_few", "missing") or (
            details.subtype == "expects" and passed < expected
        ):
            suggestions.append("Add the missing required arguments to the function call")
            suggestions.append("Check the function signature to see which parameters are required")
            if "::" in function or "." in function:
                suggestions.append(
                    "This might be a method call - verify you have the correct method signature"
                )
        else:
            suggestions.append("Remove the extra arguments from the function call")
            suggestions.append("Verify you are calling the correct function/method")
            if details.function and "." in function:
                suggestions.append(
                    "If this is a method, check it is defined with `self` as its first parameter"
                )

        suggestions.append("Check your IDE for autocomplete hints on required parameters")
        suggestions.append("Review the function documentation for parameter requirements")
        return suggestions
