"""Explains lookups of missing keys, indexes and offsets."""

from __future__ import annotations

from ..models.context import RuntimeContext
from ..models.explanation import Explanation
from .base import PatternStrategy, class_is, compile_patterns, snippet_contains


class UndefinedKeyStrategy(PatternStrategy):
    """Handles errors like:

    - ``Undefined array key "email"``
    - ``Undefined offset: 3``
    - ``KeyError: 'email'``
    - ``IndexError: list index out of range``
    """

    strategy_name = "UndefinedKey"
    _patterns = compile_patterns(
        (r"""Undefined array key ["']?(\w+)["']?""", "array_key"),
        (r"""Undefined index:?\s*["']?(\w+)["']?""", "index"),
        (r"Undefined offset:?\s*(\d+)", "offset"),
        (r"Cannot access offset of type .+ on .+", "type_offset"),
        (r"(\w+) index out of range", "sequence_index"),
        (r"pop from empty (\w+)", "sequence_index"),
    )

    _MARKERS = ("Undefined array key", "Undefined index", "Undefined offset")

    def supports(self, context: RuntimeContext) -> bool:
        exc = context.exception
        if class_is(exc, "KeyError", "IndexError"):
            return True
        return self._matches_any(exc.message) or any(m in exc.message for m in self._MARKERS)

    def explain(self, context: RuntimeContext) -> Explanation:
        exc = context.exception
        found = self._match(exc.message)

        if found is not None:
            subtype = found[0]
            key = found[1].group(1) if found[1].groups() else None
        elif class_is(exc, "KeyError"):
            subtype = "key"
            key = exc.message.strip("'\"") or None
        elif class_is(exc, "IndexError"):
            subtype = "sequence_index"
            key = None
        else:
            subtype, key = "unknown", None

        return self._explanation(
            context,
            cause=self._cause(subtype, key),
            suggestions=self._suggestions(subtype, key, context),
        )

    def _cause(self, subtype: str, key: str | None) -> str:
        key_info = f" `{key}`" if key is not None else ""

        if subtype == "array_key":
            return (
                f"You tried to access array key{key_info} that does not exist in the array. "
                "The array either does not contain this key, or the key name is misspelled."
            )
        if subtype == "index":
            return (
                f"The array index{key_info} you tried to access does not exist. "
                "This usually means the data structure does not contain the expected element."
            )
        if subtype == "offset":
            return (
                f"The numeric offset{key_info} is out of bounds for this array. "
                "The array has fewer elements than expected."
            )
        if subtype == "type_offset":
            return (
                "You tried to use an invalid type as an array offset. "
                "Array keys must be integers or strings."
            )
        if subtype == "key":
            return (
                f"The key{key_info} is not present in the mapping you looked it up in. "
                "Either the data never contained it or the key name is misspelled."
            )
        if subtype == "sequence_index":
            kind = f"{key} " if key else ""
            return (
                f"The position you accessed is beyond the end of the {kind}sequence. "
                "The sequence has fewer elements than the code assumes, or it is empty."
            )
        return f"The array key or index{key_info} does not exist in the array you are trying to access."

    def _suggestions(self, subtype: str, key: str | None, context: RuntimeContext) -> list[str]:
        suggestions: list[str] = []

        if subtype == "key":
            name = repr(key) if key is not None else "key"
            suggestions.append(
                f"Use `mapping.get({name})` or `mapping.get({name}, default)` "
                "when the key may be missing"
            )
            suggestions.append(f"Check membership first with `{name} in mapping`")
        elif subtype == "sequence_index":
            suggestions.append("Check the length before indexing: `if index < len(items):`")
            suggestions.append("Iterate over the sequence directly instead of using positions")
        elif key is not None:
            suggestions.append(
                f"Check if the key exists using `isset($array['{key}'])` "
                f"or `array_key_exists('{key}', $array)`"
            )
            suggestions.append(f"Use the null coalescing operator: `$array['{key}'] ?? 'default'`")
        else:
            suggestions.append(
                "Check if the key exists using `isset()` or `array_key_exists()` before accessing"
            )
            suggestions.append("Use the null coalescing operator `??` to provide a default value")

        if snippet_contains(context, "$_POST", "$_GET", "$_REQUEST"):
            suggestions.append(
                "When accessing superglobals, always validate input existence. "
                "Consider using filter_input() or a request object"
            )
        if snippet_contains(context, "os.environ["):
            suggestions.append(
                "Read optional environment variables with `os.environ.get()` "
                "or validate required ones at startup"
            )
        if snippet_contains(context, "json_decode", "json.loads", ".json()"):
            suggestions.append(
                "The JSON might not contain the expected structure. "
                "Validate the decoded data before accessing nested keys"
            )
        if snippet_contains(context, "config(", "env("):
            suggestions.append(
                "Ensure the configuration key is defined in your config files or .env file"
            )

        suggestions.append("Verify the data source is returning the expected structure")
        return suggestions
