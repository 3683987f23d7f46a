"""structlog setup for runtime-insight.

Library modules only emit events through ``structlog.get_logger()``. The
host application, or the bundled CLI, calls ``configure_logging`` once.
Every event passes the secret sanitizer before it is rendered, because
exception messages and request data routinely carry credentials.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

import structlog
from structlog.typing import Processor, WrappedLogger

from runtime_insight.utils.security import SecretRedactor

if TYPE_CHECKING:
    from runtime_insight.config.schema import LoggingConfig

SERVICE_NAME = "runtime-insight"

EventDict = MutableMapping[str, Any]


class LogFormat(StrEnum):
    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def numeric(self) -> int:
        return cast(int, logging.getLevelName(self.value))


_log_redactor = SecretRedactor(placeholder="[REDACTED]")


def sanitize_log_value(value: Any) -> Any:
    """Redact secrets from a log value, descending into dicts, lists and tuples."""
    if isinstance(value, str):
        return _log_redactor.redact(value)
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    return cast(EventDict, sanitize_log_value(event_dict))


def add_context_processor(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag events with the emitting service and its version."""
    from runtime_insight._version import __version__

    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    return event_dict


def _processor_chain(log_format: LogFormat) -> list[Processor]:
    renderer: Processor
    if log_format is LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        add_context_processor,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        # after format_exc_info so rendered tracebacks are sanitized too
        secret_sanitizer,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _file_handler(file_path: Path | str) -> logging.Handler | None:
    path = Path(file_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, encoding="utf-8")
    except OSError as e:
        print(f"runtime-insight: cannot write log file {path}: {e}", file=sys.stderr)
        return None


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Route structlog through the standard library logging module.

    Console output always goes to stderr so explanations printed on stdout
    stay machine-readable.

    Args:
        level: Minimum level, case-insensitive when given as a string
        log_format: "json" or "console"
        file_path: Optional log file, used only when ``file_enabled``
        file_enabled: Also write events to ``file_path``

    Raises:
        ValueError: If the level or format name is unknown
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format

    structlog.configure(
        processors=_processor_chain(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if file_enabled and file_path:
        file_handler = _file_handler(file_path)
        if file_handler is not None:
            handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level.numeric)

    logging.basicConfig(format="%(message)s", level=level.numeric, handlers=handlers, force=True)


def configure_from_config(config: LoggingConfig, minimum_level: LogLevel | None = None) -> None:
    """Apply the `logging` section of the configuration.

    ``minimum_level`` raises the configured level, never lowers it.
    """
    level = LogLevel(config.level)
    if minimum_level is not None and minimum_level.numeric > level.numeric:
        level = minimum_level

    configure_logging(
        level=level,
        log_format=config.format,
        file_path=config.file,
        file_enabled=config.file is not None,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    return cast(WrappedLogger, structlog.get_logger(name))


class LogEventNames:
    """Event names emitted by the library.

    Dashboards and alerts should match on these rather than on messages.
    """

    # Engine
    STRATEGY_MATCHED = "strategy_matched"
    STRATEGY_SUPPORTS_FAILED = "strategy_supports_failed"
    STRATEGY_EXPLAIN_FAILED = "strategy_explain_failed"
    AI_FALLBACK_USED = "ai_fallback_used"
    AI_PROVIDER_FAILED = "ai_provider_failed"
    DESCRIPTIVE_FALLBACK_USED = "descriptive_fallback_used"
    ENRICHMENT_FAILED = "enrichment_failed"
    EXPLANATION_FAILED = "explanation_failed"

    # Providers
    AI_REQUEST_START = "ai_request_start"
    AI_REQUEST_COMPLETE = "ai_request_complete"
    AI_REQUEST_ERROR = "ai_request_error"
    AI_RESPONSE_NOT_JSON = "ai_response_not_json"
    AI_CHAIN_PROVIDER_EMPTY = "ai_chain_provider_empty"
    RATE_LIMIT_HIT = "rate_limit_hit"
    RATE_LIMIT_RETRY = "rate_limit_retry"

    # Cache
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_EXPIRED = "cache_expired"
    CACHE_ERROR = "cache_error"

    # Context
    CONTEXT_BUILD_FAILED = "context_build_failed"
    SOURCE_UNREADABLE = "source_unreadable"

    # Doctor
    HEALTH_CHECK_START = "health_check_start"
    HEALTH_CHECK_COMPLETE = "health_check_complete"
