"""Data models describing the runtime state around a failure.

A ``RuntimeContext`` is built once per analysis by a context collaborator
(see ``runtime_insight.context``) and is read-only afterwards. The engine only
ever reads ``exception``, ``stack_trace`` and ``source_context``; the optional
request/application/database/performance contexts are summarized into AI
prompts and otherwise left alone.
"""

from __future__ import annotations

import builtins
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ExceptionInfo:
    """Identity of the exception being explained."""

    class_name: str  # e.g., "TypeError" or "app.errors.PaymentError"
    message: str
    code: int = 0
    file: str = ""
    line: int = 0
    previous_class: str | None = None
    previous_message: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> ExceptionInfo:
        """Build exception info from a live Python exception.

        The file and line are those of the innermost traceback frame. For
        ``SyntaxError`` they are the location of the parse failure instead.
        """
        message = str(exc)
        file = ""
        line = 0

        if isinstance(exc, SyntaxError):
            message = exc.msg or message
            file = exc.filename or ""
            line = exc.lineno or 0

        if not file:
            tb = exc.__traceback__
            while tb is not None and tb.tb_next is not None:
                tb = tb.tb_next
            if tb is not None:
                file = tb.tb_frame.f_code.co_filename
                line = tb.tb_lineno

        code = getattr(exc, "errno", None)

        previous = exc.__cause__
        if previous is None and not exc.__suppress_context__:
            previous = exc.__context__

        return cls(
            class_name=qualified_class_name(type(exc)),
            message=message,
            code=code if isinstance(code, int) else 0,
            file=file,
            line=line,
            previous_class=qualified_class_name(type(previous)) if previous is not None else None,
            previous_message=str(previous) if previous is not None else None,
        )

    @property
    def short_class_name(self) -> str:
        """Class name without its module or namespace prefix."""
        for separator in ("\\", "."):
            if separator in self.class_name:
                return self.class_name.rsplit(separator, 1)[-1]
        return self.class_name

    @property
    def location(self) -> str:
        """Failure site as ``file:line``."""
        return f"{self.file}:{self.line}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "message": self.message,
            "code": self.code,
            "file": self.file,
            "line": self.line,
            "previous_class": self.previous_class,
            "previous_message": self.previous_message,
        }


def qualified_class_name(exc_type: type) -> str:
    """Return ``module.QualName`` for an exception type, bare name for builtins."""
    module = exc_type.__module__
    if module == builtins.__name__:
        return exc_type.__qualname__
    return f"{module}.{exc_type.__qualname__}"


@dataclass(frozen=True)
class StackFrame:
    """A single frame in a stack trace."""

    file: str | None
    line: int | None
    class_name: str | None = None
    function: str | None = None
    call_type: str | None = None  # "->", "::" or "."
    is_vendor: bool = False

    @property
    def full_method(self) -> str:
        """Owning type, call operator and function, e.g. ``Service.handle``."""
        if self.class_name is None:
            return self.function or ""
        return f"{self.class_name}{self.call_type or '::'}{self.function or ''}"

    @property
    def location(self) -> str:
        """``file:line``, or an empty string for frames without a file."""
        if self.file is None:
            return ""
        line = self.line if self.line is not None else "?"
        return f"{self.file}:{line}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StackFrame:
        return cls(
            file=data.get("file"),
            line=data.get("line"),
            class_name=data.get("class"),
            function=data.get("function"),
            call_type=data.get("type"),
            is_vendor=bool(data.get("is_vendor", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "class": self.class_name,
            "function": self.function,
            "type": self.call_type,
            "is_vendor": self.is_vendor,
        }


@dataclass(frozen=True)
class StackTraceInfo:
    """Structured stack trace.

    Frames are ordered innermost first: ``frames[0]`` is the frame that
    raised and ``frames[1]`` is its caller.
    """

    frames: tuple[StackFrame, ...] = ()
    raw_trace: str = ""

    @property
    def top_frame(self) -> StackFrame | None:
        return self.frames[0] if self.frames else None

    @property
    def application_frames(self) -> tuple[StackFrame, ...]:
        """Frames from application code (vendor frames excluded)."""
        return tuple(frame for frame in self.frames if not frame.is_vendor)

    def call_chain_summary(self, limit: int = 10) -> str:
        """One line per frame, ``location in method``, up to ``limit`` frames."""
        lines = []
        for frame in self.frames[:limit]:
            method = frame.full_method or "{main}"
            lines.append(f"  - {frame.location or '[internal]'} in {method}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "frames": [frame.to_dict() for frame in self.frames],
            "raw_trace": self.raw_trace,
        }


@dataclass(frozen=True)
class SourceContext:
    """Source code surrounding the failing line."""

    file: str
    error_line: int
    lines: Mapping[int, str]
    code_snippet: str
    method_signature: str | None = None
    class_name: str | None = None

    @classmethod
    def empty(cls) -> SourceContext:
        return cls(file="", error_line=0, lines={}, code_snippet="")

    @property
    def is_empty(self) -> bool:
        return self.file == "" or not self.lines

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "error_line": self.error_line,
            "lines": dict(self.lines),
            "code_snippet": self.code_snippet,
            "method_signature": self.method_signature,
            "class_name": self.class_name,
        }


@dataclass(frozen=True)
class RequestContext:
    """HTTP request context (sanitized by the collaborator that built it)."""

    method: str
    uri: str
    headers: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    client_ip: str | None = None
    user_agent: str | None = None

    @property
    def summary(self) -> str:
        return f"{self.method} {self.uri}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "uri": self.uri,
            "headers": dict(self.headers),
            "query": dict(self.query),
            "body": dict(self.body),
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
        }


@dataclass(frozen=True)
class ApplicationContext:
    """Application-level context (environment, route, framework)."""

    environment: str
    route: str | None = None
    controller: str | None = None
    action: str | None = None
    user_id: str | None = None
    framework: str | None = None
    framework_version: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "environment": self.environment,
            "route": self.route,
            "controller": self.controller,
            "action": self.action,
            "user_id": self.user_id,
            "framework": self.framework,
            "framework_version": self.framework_version,
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class DatabaseContext:
    """Recent queries at the time of the error."""

    recent_queries: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.recent_queries

    def to_dict(self) -> dict[str, Any]:
        return {"recent_queries": list(self.recent_queries)}


@dataclass(frozen=True)
class PerformanceContext:
    """Memory and timing figures at the time of the error."""

    peak_memory_bytes: int = 0
    runtime_seconds: float = 0.0

    @property
    def peak_memory_formatted(self) -> str:
        """Peak memory in B/KB/MB/GB with two decimals, e.g. ``1.5 MB``."""
        if self.peak_memory_bytes <= 0:
            return "0 B"

        units = ["B", "KB", "MB", "GB"]
        value = float(self.peak_memory_bytes)
        exponent = 0
        while value >= 1024 and exponent < len(units) - 1:
            value /= 1024
            exponent += 1
        return f"{round(value, 2):g} {units[exponent]}"

    @property
    def is_empty(self) -> bool:
        return self.peak_memory_bytes <= 0 and self.runtime_seconds <= 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak_memory_bytes": self.peak_memory_bytes,
            "peak_memory_formatted": self.peak_memory_formatted,
            "runtime_seconds": self.runtime_seconds,
        }


@dataclass(frozen=True)
class RuntimeContext:
    """Complete runtime context for one analysis pass."""

    exception: ExceptionInfo
    stack_trace: StackTraceInfo = field(default_factory=StackTraceInfo)
    source_context: SourceContext = field(default_factory=SourceContext.empty)
    request_context: RequestContext | None = None
    application_context: ApplicationContext | None = None
    database_context: DatabaseContext | None = None
    performance_context: PerformanceContext | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exception": self.exception.to_dict(),
            "stack_trace": self.stack_trace.to_dict(),
            "source_context": self.source_context.to_dict(),
            "request_context": self.request_context.to_dict() if self.request_context else None,
            "application_context": (
                self.application_context.to_dict() if self.application_context else None
            ),
            "database_context": self.database_context.to_dict() if self.database_context else None,
            "performance_context": (
                self.performance_context.to_dict() if self.performance_context else None
            ),
        }

    def to_summary(self) -> str:
        """Plain-text summary of the context, used in AI prompts."""
        exc = self.exception
        parts = [
            f"Exception: {exc.class_name}",
            f"Message: {exc.message}",
            f"File: {exc.location}",
        ]
        if exc.previous_class:
            parts.append(f"Previous exception: {exc.previous_class}: {exc.previous_message or ''}")
        summary = "\n".join(parts) + "\n\n"

        call_chain = self.stack_trace.call_chain_summary(10)
        if call_chain:
            summary += f"Call chain:\n{call_chain}\n\n"

        if self.source_context.code_snippet:
            summary += f"Code Context:\n{self.source_context.code_snippet}\n\n"

        if self.request_context is not None:
            summary += f"Request: {self.request_context.summary}\n"

        if self.application_context is not None:
            app = self.application_context
            summary += f"Environment: {app.environment}"
            if app.route:
                summary += f", route {app.route}"
            summary += "\n"

        if self.database_context is not None and not self.database_context.is_empty:
            summary += "\nRecent queries:\n"
            for query in self.database_context.recent_queries:
                summary += f"  - {query}\n"

        if self.performance_context is not None and not self.performance_context.is_empty:
            perf = self.performance_context
            summary += "\nPerformance:\n"
            summary += f"  Peak memory: {perf.peak_memory_formatted}\n"
            if perf.runtime_seconds > 0:
                summary += f"  Runtime: {round(perf.runtime_seconds, 2)}s\n"

        return summary
