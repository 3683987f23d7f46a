"""Explains member access on a null/None value."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, compile_patterns, snippet_contains

_PYTHON_SUBTYPES = frozenset(
    {
        "attribute",
        "subscript",
        "iterate",
        "call",
        "item_assign",
        "operand",
        "concatenate",
        "comparison",
        "none_value",
    }
)


class NullReferenceStrategy(PatternStrategy):
    """Handles errors like:

    - ``Call to a member function getId() on null``
    - ``Attempt to read property "name" on null``
    - ``'NoneType' object has no attribute 'id'``
    - ``'NoneType' object is not subscriptable``
    - ``unsupported operand type(s) for +: 'NoneType' and 'int'``
    """

    strategy_name = "NullReference"
    _patterns = compile_patterns(
        (r"Call to a member function (\w+)\(\) on null", "method_call"),
        (r'Attempt to read property "?(\w+)"? on null', "property_read"),
        (r"Cannot access property (\w+) on null", "property_access"),
        (r'Attempt to assign property "?(\w+)"? on null', "property_assign"),
        (r"'NoneType' object has no attribute '(\w+)'", "attribute"),
        (r"'NoneType' object is not subscriptable", "subscript"),
        (r"'NoneType' object is not iterable|cannot unpack non-iterable NoneType", "iterate"),
        (r"'NoneType' object is not callable", "call"),
        (r"'NoneType' object does not support item assignment", "item_assign"),
        (
            r"unsupported operand type\(s\) for (.+?): "
            r"(?:'NoneType' and '\w+'|'\w+' and 'NoneType')",
            "operand",
        ),
        (r'can only concatenate \w+ \(not "NoneType"\) to \w+', "concatenate"),
        (r"'(.+?)' not supported between instances of .*'NoneType'", "comparison"),
        # any other TypeError naming NoneType
        (r"\bNoneType\b", "none_value"),
    )

    def supports(self, context: RuntimeContext) -> bool:
        exc = context.exception
        if "Error" not in exc.class_name:
            return False
        found = self._match(exc.message)
        if found is not None and found[0] == "none_value":
            return "TypeError" in exc.class_name
        return found is not None or "on null" in exc.message

    def explain(self, context: RuntimeContext) -> Explanation:
        found = self._match(context.exception.message)
        subtype = found[0] if found else "unknown"
        member = found[1].group(1) if found and found[1].groups() else None

        return self._explanation(
            context,
            cause=self._cause(subtype, member),
            suggestions=self._suggestions(subtype, member, context),
        )

    def _cause(self, subtype: str, member: str | None) -> str:
        if subtype in _PYTHON_SUBTYPES:
            base = "A variable that was expected to hold an object is actually None."
            causes = {
                "attribute": (
                    f"You tried to access the attribute `{member}` on a value that is None."
                ),
                "subscript": "You tried to index into a value that is None.",
                "iterate": "You tried to iterate over or unpack a value that is None.",
                "call": "You tried to call a value that is None as if it were a function.",
                "item_assign": "You tried to assign an item on a value that is None.",
                "operand": f"You used None as an operand of `{member}`.",
                "concatenate": "You tried to concatenate None to a string.",
                "comparison": f"You compared None with another value using `{member}`.",
                "none_value": "An operation received None where it needed a real value.",
            }
            return (
                f"{causes[subtype]} {base} This often happens when a function without an "
                "explicit return is used for its result, or a lookup found nothing."
            )

        base = "A variable that was expected to contain an object is actually null."
        if member is not None:
            causes = {
                "method_call": f"You tried to call the method `{member}()` on a variable that is null.",
                "property_read": (
                    f"You tried to read the property `{member}` from a variable that is null."
                ),
                "property_access": (
                    f"You tried to access the property `{member}` on a variable that is null."
                ),
                "property_assign": (
                    f"You tried to assign a value to the property `{member}` "
                    "on a variable that is null."
                ),
            }
            cause = f"{causes[subtype]} {base}"
        else:
            cause = base

        return (
            f"{cause} This often happens when a database query returns no results, "
            "a method returns null unexpectedly, or optional data is accessed without checking."
        )

    def _suggestions(self, subtype: str, member: str | None, context: RuntimeContext) -> list[str]:
        if subtype in _PYTHON_SUBTYPES:
            suggestions = [
                "Check the value before using it: `if value is not None:`",
                "Provide a default with `value if value is not None else default`",
                "Annotate the producer as returning `Optional[...]` so a type checker "
                "flags unchecked uses",
            ]
            if subtype == "attribute" and member is not None:
                suggestions.append(
                    f'Use `getattr(value, "{member}", default)` if a missing object is expected'
                )
        else:
            suggestions = [
                "Check if the variable is null before accessing it using `if ($variable !== null)`",
                "Use the null coalescing operator `??` to provide a default value",
                "Use the nullsafe operator `?->` for optional chaining (PHP 8+)",
            ]

        if snippet_contains(context, "->find(", "->first("):
            suggestions.append(
                "The database query might be returning null. "
                "Use `findOrFail()` or check if the result exists"
            )
        if snippet_contains(context, ".get(", ".first()", ".one_or_none()", ".scalar()"):
            suggestions.append(
                "The lookup returns None when nothing matches. "
                "Check the result before using it or pass a default"
            )
        if snippet_contains(context, "re.match(", "re.search(", "re.fullmatch("):
            suggestions.append(
                "Regex matching returns None when the pattern does not match. "
                "Check the match object before calling `.group()`"
            )
        if snippet_contains(context, "auth()", "user()"):
            suggestions.append(
                "Ensure the user is authenticated. "
                "Add authentication middleware or check `auth()->check()`"
            )
        if snippet_contains(context, "request()", "$request", "request."):
            suggestions.append("Validate that the expected request data is present before accessing it")

        return suggestions
