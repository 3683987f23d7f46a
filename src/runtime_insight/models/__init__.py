"""Data models and transfer objects."""

from .context import (
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
from .explanation import Explanation

__all__ = [
    # Context models
    "ExceptionInfo",
    "StackFrame",
    "StackTraceInfo",
    "SourceContext",
    "RequestContext",
    "ApplicationContext",
    "DatabaseContext",
    "PerformanceContext",
    "RuntimeContext",
    # Result model
    "Explanation",
]
