"""Builds runtime contexts from live Python exceptions.

Responsibilities:
- Walk the traceback into innermost-first stack frames
- Read the source window around the failing line
- Find the enclosing function signature and class
- Redact secrets from the raw trace and source snippet
- Mask sensitive request fields
"""

from __future__ import annotations

import linecache
import re
import traceback
from dataclasses import replace

import structlog

from ..config.schema import ContextConfig
from ..models.context import (
    ApplicationContext,
    DatabaseContext,
    ExceptionInfo,
    PerformanceContext,
    RequestContext,
    RuntimeContext,
    SourceContext,
    StackFrame,
    StackTraceInfo,
)
from ..utils.security import RedactionError, SecretRedactor, redact_mapping
from .frames import is_vendor_path, split_qualname

log = structlog.get_logger()

# How far above the failing line to look for the enclosing ``def``
SIGNATURE_SEARCH_LINES = 50

_DEF_PATTERN = re.compile(r"^(\s*)(?:async\s+)?def\s+\w+\s*\(")
_CLASS_PATTERN = re.compile(r"^(\s*)class\s+(\w+)")


class ContextBuilder:
    """Builds ``RuntimeContext`` objects for the explanation engine.

    Example:
        builder = ContextBuilder(config.context)
        try:
            handle(request)
        except Exception as exc:
            context = builder.build(exc)
    """

    def __init__(
        self,
        config: ContextConfig | None = None,
        redactor: SecretRedactor | None = None,
    ) -> None:
        self._config = config or ContextConfig()
        self._redactor = redactor or SecretRedactor()

    def build(
        self,
        exc: BaseException,
        request: RequestContext | None = None,
        application: ApplicationContext | None = None,
        database: DatabaseContext | None = None,
        performance: PerformanceContext | None = None,
    ) -> RuntimeContext:
        """Build a context from a caught exception.

        Args:
            exc: The exception to explain (with its traceback attached)
            request: Request being handled, if any
            application: Application details, if known
            database: Recent queries, if collected
            performance: Memory and timing figures, if collected

        Returns:
            The runtime context
        """
        exception = ExceptionInfo.from_exception(exc)

        return RuntimeContext(
            exception=exception,
            stack_trace=self._stack_trace(exc),
            source_context=self.read_source(exception.file, exception.line),
            request_context=self._sanitize_request(request),
            application_context=application,
            database_context=database,
            performance_context=performance,
        )

    def build_from_log_entry(
        self,
        message: str,
        file: str,
        line: int,
        exception_class: str = "Exception",
    ) -> RuntimeContext:
        """Build a context from a log entry when no exception object is available."""
        return RuntimeContext(
            exception=ExceptionInfo(
                class_name=exception_class,
                message=message,
                file=file,
                line=line,
            ),
            source_context=self.read_source(file, line),
        )

    def with_source(self, context: RuntimeContext) -> RuntimeContext:
        """Fill in the source context of a context built without one."""
        if not context.source_context.is_empty:
            return context
        exc = context.exception
        return replace(context, source_context=self.read_source(exc.file, exc.line))

    def read_source(self, file: str, line: int) -> SourceContext:
        """Read the source window around a line.

        Returns:
            The source context, or an empty one when the file cannot be read
        """
        if not file or line <= 0:
            return SourceContext.empty()

        linecache.checkcache(file)
        all_lines = linecache.getlines(file)
        if not all_lines or line > len(all_lines):
            log.debug("source_unreadable", file=file, line=line)
            return SourceContext.empty()

        radius = self._config.source_lines
        start = max(1, line - radius)
        end = min(len(all_lines), line + radius)

        window = {n: all_lines[n - 1].rstrip("\r\n") for n in range(start, end + 1)}
        snippet = self._redact("\n".join(_render_line(n, text, line) for n, text in window.items()))

        signature, def_index = _find_signature(all_lines, line)
        class_name = _find_class(all_lines, def_index) if def_index is not None else None

        return SourceContext(
            file=file,
            error_line=line,
            lines={n: self._redact(text) for n, text in window.items()},
            code_snippet=snippet,
            method_signature=signature,
            class_name=class_name,
        )

    def _stack_trace(self, exc: BaseException) -> StackTraceInfo:
        frames: list[StackFrame] = []
        for frame, lineno in traceback.walk_tb(exc.__traceback__):
            code = frame.f_code
            class_name, function = split_qualname(getattr(code, "co_qualname", code.co_name))
            frames.append(
                StackFrame(
                    file=code.co_filename,
                    line=lineno,
                    class_name=class_name,
                    function=function,
                    call_type="." if class_name else None,
                    is_vendor=is_vendor_path(code.co_filename),
                )
            )
        # walk_tb yields outermost first
        frames.reverse()

        raw_trace = self._redact("".join(traceback.format_exception(exc)))
        return StackTraceInfo(frames=tuple(frames), raw_trace=raw_trace)

    def _sanitize_request(self, request: RequestContext | None) -> RequestContext | None:
        if request is None or not self._config.include_request:
            return None
        if not self._config.sanitize_inputs:
            return request

        fields = self._config.redact_fields
        return replace(
            request,
            headers=redact_mapping(request.headers, fields),
            query=redact_mapping(request.query, fields),
            body=redact_mapping(request.body, fields),
        )

    def _redact(self, text: str) -> str:
        """Redact secrets; on failure drop the text rather than keep it unredacted."""
        try:
            return self._redactor.redact(text)
        except RedactionError as e:
            log.warning("context_redaction_failed", error=str(e))
            return ""


def _render_line(number: int, text: str, error_line: int) -> str:
    marker = " → " if number == error_line else "   "
    return f"{marker}{number:4d} | {text}"


def _find_signature(lines: list[str], line: int) -> tuple[str | None, int | None]:
    """Find the nearest ``def`` at or above ``line`` (1-based); returns (signature, index)."""
    stop = max(0, line - 1 - SIGNATURE_SEARCH_LINES)
    for index in range(line - 1, stop - 1, -1):
        if _DEF_PATTERN.match(lines[index]):
            return lines[index].strip(), index
    return None, None


def _find_class(lines: list[str], def_index: int) -> str | None:
    """Find the class enclosing the ``def`` at ``def_index``, if any."""
    def_match = _DEF_PATTERN.match(lines[def_index])
    if def_match is None:
        return None
    def_indent = len(def_match.group(1))

    for index in range(def_index - 1, -1, -1):
        text = lines[index]
        if not text.strip():
            continue
        indent = len(text) - len(text.lstrip())
        if indent >= def_indent:
            continue
        class_match = _CLASS_PATTERN.match(text)
        if class_match is not None:
            return class_match.group(2)
        if indent == 0:
            return None
    return None
