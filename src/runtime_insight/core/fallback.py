"""Descriptive fallback used when neither a strategy nor AI explains a failure.

The taxonomy is matched in order against the exception class: an entry
applies when it equals the short class name or is contained in the full
class name. Unknown classes get a generic description.
"""

from __future__ import annotations

from dataclasses import dataclass

from runtime_insight.models.context import ExceptionInfo
from runtime_insight.models.explanation import Explanation

FALLBACK_CONFIDENCE = 0.5

_LOCATION_HINT = "Look at the code near {location}"


@dataclass(frozen=True)
class FallbackEntry:
    cause: str
    suggestions: tuple[str, ...]


FALLBACK_TAXONOMY: tuple[tuple[str, FallbackEntry], ...] = (
    (
        "RuntimeException",
        FallbackEntry(
            "A runtime exception occurred. This usually indicates a logical or environmental "
            "error that was detected during execution (e.g. invalid state, missing resource).",
            (
                "Read the exception message for the specific reason",
                "Check preconditions and environment (files, config, services)",
                "Review the stack trace for the call that triggered the error",
            ),
        ),
    ),
    (
        "LogicException",
        FallbackEntry(
            "A logic exception was thrown. This indicates a bug in program logic "
            "(e.g. calling a method when the object is in an invalid state).",
            (
                "Ensure preconditions are met before the operation",
                "Add guards or validation for the invalid state",
                "Review the exception message and stack trace for the violating call",
            ),
        ),
    ),
    (
        "InvalidArgumentException",
        FallbackEntry(
            "An invalid argument was passed to a function or method. The value does not meet "
            "the expected contract (type may be correct but value or format is not).",
            (
                "Check the argument value at the call site",
                "Validate input before passing it",
                "Consult the method documentation for allowed values",
            ),
        ),
    ),
    (
        "DomainException",
        FallbackEntry(
            "A domain exception occurred. The operation is not valid in the current domain "
            "or context.",
            (
                "Verify the operation is valid in this context",
                "Check business rules or domain invariants",
                "Review the exception message for the violated constraint",
            ),
        ),
    ),
    (
        "RangeException",
        FallbackEntry(
            "A value was outside the allowed range. The operation encountered a value that is "
            "not within the valid range (e.g. index out of bounds).",
            (
                "Validate indices and ranges before use",
                "Check that values are within expected bounds",
                "Add bounds checking or use safe accessors",
            ),
        ),
    ),
    (
        "LengthException",
        FallbackEntry(
            "A length-related error occurred. A string, array, or other value has an invalid "
            "length for the operation.",
            (
                "Check length constraints before the operation",
                "Validate minimum/maximum length",
                "Review the exception message for the required length",
            ),
        ),
    ),
    (
        "OutOfBoundsException",
        FallbackEntry(
            "An out-of-bounds access was attempted. An index or key was used that does not "
            "exist in the collection.",
            (
                "Check that the index or key exists before access",
                "Use isset() or array_key_exists() for arrays",
                "Provide a default or handle the missing case",
            ),
        ),
    ),
    (
        "UnexpectedValueException",
        FallbackEntry(
            "An unexpected value was encountered. A function returned a value that was not "
            "expected (e.g. out of a set of allowed values).",
            (
                "Validate return values from external code or APIs",
                "Handle all possible return cases",
                "Add assertions or checks for expected values",
            ),
        ),
    ),
    (
        "ErrorException",
        FallbackEntry(
            "A PHP error was converted to an exception (e.g. notice, warning). The error "
            "message and line indicate what went wrong.",
            (
                "Read the error message for the underlying PHP error",
                "Fix the cause (e.g. undefined variable, deprecated usage)",
                "Check the file and line reported in the exception",
            ),
        ),
    ),
    (
        "RecursionError",
        FallbackEntry(
            "The maximum recursion depth was exceeded. A function keeps calling itself, "
            "directly or through other functions, without reaching a base case.",
            (
                "Check that the recursive function has a base case that is always reached",
                "Look for two functions or properties that call each other",
                "Rewrite deep recursion as a loop with an explicit stack",
            ),
        ),
    ),
    (
        "NotImplementedError",
        FallbackEntry(
            "A method that is meant to be overridden was called on a class that does not "
            "implement it.",
            (
                "Implement the method in the concrete subclass",
                "Check that the expected subclass is the one being instantiated",
                "Review the exception message for the missing operation",
            ),
        ),
    ),
    (
        "RuntimeError",
        FallbackEntry(
            "A runtime error occurred. This usually indicates a logical or environmental "
            "error that was detected during execution (e.g. invalid state, missing resource).",
            (
                "Read the exception message for the specific reason",
                "Check preconditions and environment (files, config, services)",
                "Review the stack trace for the call that triggered the error",
            ),
        ),
    ),
    (
        "AssertionError",
        FallbackEntry(
            "An assertion failed. A condition the code assumed to be true at this point "
            "was false.",
            (
                "Check which values made the asserted condition false",
                "Validate inputs earlier so the invariant cannot be broken",
                "Do not rely on `assert` for input validation; it is skipped with `python -O`",
            ),
        ),
    ),
    (
        "AttributeError",
        FallbackEntry(
            "An attribute was accessed on an object that does not have it. The object may be "
            "of a different type than expected, or the attribute name is misspelled.",
            (
                "Check the type of the object at this point, e.g. with `type(obj)`",
                "Verify the attribute name against the class definition",
                "Use `getattr(obj, name, default)` when the attribute is optional",
            ),
        ),
    ),
    (
        "FileNotFoundError",
        FallbackEntry(
            "A file or directory that the code tried to open does not exist.",
            (
                "Check the path in the exception message exists",
                "Resolve relative paths against a known base directory, not the working directory",
                "Create the file or directory before using it, or handle the missing case",
            ),
        ),
    ),
    (
        "PermissionError",
        FallbackEntry(
            "The process does not have permission to access a file, directory or resource.",
            (
                "Check the owner and mode of the path in the exception message",
                "Verify which user the process runs as",
                "Write to a directory the process owns, e.g. a temporary directory",
            ),
        ),
    ),
    (
        "ConnectionError",
        FallbackEntry(
            "A network connection could not be established or was dropped. The remote service "
            "may be down, unreachable, or refusing connections.",
            (
                "Check the host and port the code connects to",
                "Verify the remote service is running and reachable from this machine",
                "Add retries with backoff for transient network failures",
            ),
        ),
    ),
    (
        "TimeoutError",
        FallbackEntry(
            "An operation did not complete within its time limit.",
            (
                "Check whether the remote service or resource is slow or overloaded",
                "Increase the timeout if the operation is legitimately slow",
                "Add retries for transient slowness",
            ),
        ),
    ),
    (
        "OSError",
        FallbackEntry(
            "An operating system call failed. The message contains the system error "
            "description and often the path or resource involved.",
            (
                "Read the errno and message for the specific system error",
                "Check the path, device or socket mentioned in the message",
                "Review the stack trace for the call that triggered the error",
            ),
        ),
    ),
    (
        "MemoryError",
        FallbackEntry(
            "The interpreter ran out of memory while allocating an object.",
            (
                "Process large data in chunks or stream it instead of loading it at once",
                "Look for a collection that grows without bound",
                "Check the memory limits of the process or container",
            ),
        ),
    ),
    (
        "LookupError",
        FallbackEntry(
            "A lookup failed. A key or index was used that does not exist in the collection.",
            (
                "Check that the key or index exists before access",
                "Provide a default or handle the missing case",
                "Review the exception message for the missing key",
            ),
        ),
    ),
    (
        "Exception",
        FallbackEntry(
            "An exception was thrown. The message describes what went wrong; the stack trace "
            "shows where it originated.",
            (
                "Review the exception message for details",
                "Check the stack trace for the throwing location",
                _LOCATION_HINT,
            ),
        ),
    ),
)


def describe(exception: ExceptionInfo) -> Explanation:
    """Build the descriptive fallback explanation for an exception."""
    entry = _lookup(exception)
    location = exception.location

    if entry is None:
        cause = (
            f"An exception of type {exception.class_name} was thrown. "
            "The message and stack trace provide the details."
        )
        suggestions: tuple[str, ...] = (
            "Review the exception message for the specific reason",
            "Check the stack trace for the call that triggered the error",
            _LOCATION_HINT,
        )
    else:
        cause, suggestions = entry.cause, entry.suggestions

    return Explanation(
        message=exception.message,
        cause=cause,
        suggestions=tuple(s.replace("{location}", location) for s in suggestions),
        confidence=FALLBACK_CONFIDENCE,
        error_type=exception.class_name,
        location=location,
    )


def _lookup(exception: ExceptionInfo) -> FallbackEntry | None:
    short_name = exception.short_class_name
    for key, entry in FALLBACK_TAXONOMY:
        if short_name == key or key in exception.class_name:
            return entry
    return None
