"""Utility functions and helpers.

This module provides various utilities for runtime-insight:
- security: Secret redaction, SSRF guard, request field masking
- retry: Exception hierarchy and rate-limit retry policy
- logging: Structured logging with secret sanitization
- health: Configuration health checks
"""

from runtime_insight.utils.health import (
    CheckResult,
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from runtime_insight.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    configure_from_config,
    configure_logging,
    get_logger,
)
from runtime_insight.utils.retry import (
    InsightError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    TracebackParseError,
    create_rate_limit_retry,
)
from runtime_insight.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
    redact_mapping,
    validate_ollama_url,
)

__all__ = [
    # Health
    "CheckResult",
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    # Errors
    "InsightError",
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitError",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "TracebackParseError",
    "configure_from_config",
    "configure_logging",
    "create_rate_limit_retry",
    "get_logger",
    "redact_mapping",
    "validate_ollama_url",
]
