"""Explains source files that fail to parse."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, class_is, compile_patterns

_PARSE_ERROR_CLASSES = ("ParseError", "SyntaxError", "IndentationError", "TabError")


class SyntaxErrorStrategy(PatternStrategy):
    """Handles ``ParseError`` (PHP) and ``SyntaxError`` and its subclasses (Python)."""

    strategy_name = "SyntaxError"
    _patterns = compile_patterns(
        (r"unexpected end of file|unexpected EOF", "eof"),
        (r"'(?P<bracket>[(\[{])' was never closed", "unclosed"),
        (r"unmatched '(?P<bracket>[)\]}])'", "unmatched"),
        (
            r"closing parenthesis '(?P<bracket>.)' does not match opening parenthesis",
            "unmatched",
        ),
        (
            r"unterminated (?:triple-quoted )?string literal|EOL while scanning string literal",
            "unterminated_string",
        ),
        (
            r"expected an indented block|unexpected indent|unindent does not match"
            r"|inconsistent use of tabs",
            "indentation",
        ),
        (r"""unexpected token ["']?(?P<token>[^"',]+)["']?""", "unexpected_token"),
        (r"unexpected '(?P<token>[^']+)'", "unexpected_token"),
    )

    def supports(self, context: RuntimeContext) -> bool:
        exc = context.exception
        return "ParseError" in exc.class_name or class_is(exc, *_PARSE_ERROR_CLASSES)

    def explain(self, context: RuntimeContext) -> Explanation:
        exc = context.exception
        found = self._match(exc.message)
        subtype = found[0] if found else "generic"
        groups = found[1].groupdict() if found else {}

        if "ParseError" in exc.class_name:
            cause = (
                "PHP encountered a syntax error while parsing the code. The file contains "
                "invalid PHP syntax such as a missing or extra bracket, a typo in a keyword, "
                "or an unexpected token. The parser reports the location in the message."
            )
        else:
            cause = (
                "Python could not compile the file because it contains invalid syntax. "
                "The error is raised while the module is being imported, before any of its "
                "code runs."
            )

        detail = self._detail(subtype, groups)
        if detail:
            cause = f"{detail} {cause}"

        return self._explanation(context, cause, self._suggestions(subtype, context))

    def _detail(self, subtype: str, groups: dict[str, str | None]) -> str:
        if subtype == "eof":
            return "The file ended before an open block or bracket was closed."
        if subtype == "unclosed":
            return f"The bracket `{groups.get('bracket')}` is opened but never closed."
        if subtype == "unmatched":
            return f"The closing bracket `{groups.get('bracket')}` has no matching opening bracket."
        if subtype == "unterminated_string":
            return "A string literal is missing its closing quote."
        if subtype == "indentation":
            return "The indentation of this line does not match the surrounding block."
        if subtype == "unexpected_token":
            return f"The parser met `{(groups.get('token') or '').strip()}` where it was not expected."
        return ""

    def _suggestions(self, subtype: str, context: RuntimeContext) -> list[str]:
        exc = context.exception
        suggestions = [f"Check the file and line reported: {exc.location}"]

        if subtype == "indentation":
            suggestions.append(
                "Indent with spaces only and keep each block at a consistent depth"
            )
            suggestions.append("Make sure every `def`, `if`, `for` or `class` line has a body")
        elif subtype == "unterminated_string":
            suggestions.append("Ensure strings are properly closed and escape sequences are valid")
        else:
            suggestions.append("Look for unmatched brackets, parentheses, or braces")
            suggestions.append(
                "Verify there are no typos in keywords (e.g. functon vs function)"
            )
            suggestions.append("Ensure strings are properly closed and escape sequences are valid")

        suggestions.append(
            "If the error points to the end of file, look for a missing closing bracket "
            "or semicolon earlier"
        )
        return suggestions
