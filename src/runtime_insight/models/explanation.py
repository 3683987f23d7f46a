"""Data model for the explanation produced for a runtime error."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class Explanation:
    """Human-readable explanation of a runtime error.

    An explanation whose ``message`` and ``cause`` are both empty is the
    "no result" sentinel (see ``is_empty``), which is distinct from a
    low-confidence result.
    """

    message: str
    cause: str
    suggestions: tuple[str, ...] = ()
    confidence: float = 0.0  # 0.0 to 1.0
    error_type: str | None = None
    location: str | None = None  # "file:line"
    metadata: Mapping[str, Any] = field(default_factory=dict)
    code_snippet: str | None = None
    call_site_location: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0.0 and 1.0, got {self.confidence}")
        if not isinstance(self.suggestions, tuple):
            object.__setattr__(self, "suggestions", tuple(self.suggestions))

    @classmethod
    def empty(cls) -> Explanation:
        """Create the "no result" explanation."""
        return cls(message="", cause="")

    @property
    def is_empty(self) -> bool:
        return self.message == "" and self.cause == ""

    def with_code_context(self, code_snippet: str, call_site_location: str | None) -> Explanation:
        """Return a copy carrying the block to edit and where the faulty call came from."""
        return replace(
            self,
            code_snippet=code_snippet or None,
            call_site_location=call_site_location,
        )

    def to_dict(self) -> dict[str, Any]:
        """Flat representation, also used as the JSON wire format and cache payload."""
        return {
            "message": self.message,
            "cause": self.cause,
            "suggestions": list(self.suggestions),
            "confidence": self.confidence,
            "error_type": self.error_type,
            "location": self.location,
            "metadata": dict(self.metadata),
            "code_snippet": self.code_snippet,
            "call_site_location": self.call_site_location,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Explanation:
        """Rebuild an explanation from ``to_dict()`` output."""
        return cls(
            message=str(data.get("message", "")),
            cause=str(data.get("cause", "")),
            suggestions=tuple(str(s) for s in data.get("suggestions") or ()),
            confidence=float(data.get("confidence", 0.0)),
            error_type=data.get("error_type"),
            location=data.get("location"),
            metadata=dict(data.get("metadata") or {}),
            code_snippet=data.get("code_snippet"),
            call_site_location=data.get("call_site_location"),
        )
