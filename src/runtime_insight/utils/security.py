"""Secret redaction and SSRF guards.

Exception messages, source lines and request data are sent to AI providers
and written to logs, and any of them can contain credentials. Text is
scrubbed with ``SecretRedactor`` on its way out. Redaction fails closed: a
``RedactionError`` means the text must be dropped, never sent as is.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple
from urllib.parse import urlparse

import structlog

log = structlog.get_logger()

PLACEHOLDER = "[REDACTED]"

LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})

# Request fields masked by default (headers, query and body keys)
DEFAULT_REDACT_FIELDS = (
    "password",
    "password_confirmation",
    "credit_card",
    "cvv",
    "ssn",
    "token",
    "secret",
    "api_key",
    "authorization",
)

_SENSITIVE_CONFIG_KEYS = ("token", "key", "secret", "password", "credential")


class SecurityError(Exception):
    """Base class for security errors."""


class RedactionError(SecurityError):
    """Text could not be scrubbed and must not leave the process."""


class SecretPattern(NamedTuple):
    regex: str
    name: str


class SecretRedactor:
    """Replaces credentials found in free text with a placeholder.

    Example:
        redactor = SecretRedactor()
        prompt = redactor.redact(build_prompt(context))
    """

    DEFAULT_PATTERNS: tuple[SecretPattern, ...] = (
        SecretPattern(
            r"(?i)(api[_-]?key|secret|token|password|passwd|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "key/value assignment",
        ),
        SecretPattern(r"(?i)bearer\s+[a-z0-9._~+/-]{16,}=*", "bearer token"),
        SecretPattern(r"sk-ant-[\w-]{40,}", "Anthropic key"),
        SecretPattern(r"sk-proj-[a-zA-Z0-9_-]{20,}", "OpenAI project key"),
        SecretPattern(r"sk-[a-zA-Z0-9]{48}", "OpenAI key"),
        SecretPattern(r"gh[pousr]_[a-zA-Z0-9]{36}", "GitHub token"),
        SecretPattern(r"github_pat_[a-zA-Z0-9_]{22,}", "GitHub fine-grained PAT"),
        SecretPattern(r"AKIA[0-9A-Z]{16}", "AWS access key id"),
        SecretPattern(r"AIza[0-9A-Za-z\-_]{35}", "Google API key"),
        SecretPattern(r"AccountKey=[a-zA-Z0-9+/=]{88}", "Azure account key"),
        SecretPattern(r"[sr]k_live_[a-zA-Z0-9]{24,}", "Stripe live key"),
        SecretPattern(r"xox[baprs]-[\w-]+", "Slack token"),
        SecretPattern(r"SG\.[a-zA-Z0-9_-]{22}\.[a-zA-Z0-9_-]{43}", "SendGrid key"),
        SecretPattern(
            r"(?i)\b(?:postgres(?:ql)?|mysql|mariadb|mongodb(?:\+srv)?|redis|amqp)"
            r"://[^:\s/]+:[^@\s]+@\S+",
            "DSN with password",
        ),
        SecretPattern(
            r"-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY(?: BLOCK)?-----",
            "private key block",
        ),
        SecretPattern(r"eyJ[\w-]*\.eyJ[\w-]*\.[\w-]*", "JWT"),
    )

    def __init__(
        self,
        placeholder: str = PLACEHOLDER,
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """
        Args:
            placeholder: Replacement for each detected secret
            custom_patterns: Extra ``(regex, name)`` pairs applied after the defaults

        Raises:
            RedactionError: If a pattern does not compile
        """
        self.placeholder = placeholder
        self._compiled: list[tuple[re.Pattern[str], str]] = []

        for regex, name in (*self.DEFAULT_PATTERNS, *(custom_patterns or ())):
            try:
                self._compiled.append((re.compile(regex), name))
            except re.error as e:
                log.error("pattern_compilation_failed", pattern_name=name, error=str(e))
                raise RedactionError(f"Invalid secret pattern {name!r}: {e}") from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        return [pattern for pattern, _ in self._compiled]

    def redact(self, text: str) -> str:
        """Return ``text`` with every detected secret replaced.

        Raises:
            RedactionError: If scrubbing fails; the caller must drop the text
        """
        if not text:
            return text

        try:
            for pattern, _ in self._compiled:
                text = pattern.sub(self.placeholder, text)
        except Exception as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e
        return text

    def detected(self, text: str) -> list[str]:
        """Names of the patterns found in ``text``, for audit logging."""
        if not text:
            return []
        return [name for pattern, name in self._compiled if pattern.search(text)]

    def has_secrets(self, text: str) -> bool:
        return bool(self.detected(text))


def redact_mapping(
    data: Mapping[str, Any],
    fields: Iterable[str] = DEFAULT_REDACT_FIELDS,
    placeholder: str = PLACEHOLDER,
) -> dict[str, Any]:
    """Copy ``data`` with the values of sensitive keys masked.

    A key is sensitive when, lower-cased with dashes turned into
    underscores, it contains one of ``fields`` (so ``X-Api-Key`` matches
    ``api_key``). Nested mappings are masked too.
    """
    needles = tuple(_normalize_key(f) for f in fields)

    def mask(mapping: Mapping[str, Any]) -> dict[str, Any]:
        masked: dict[str, Any] = {}
        for key, value in mapping.items():
            if any(needle in _normalize_key(key) for needle in needles):
                masked[key] = placeholder
            elif isinstance(value, Mapping):
                masked[key] = mask(value)
            else:
                masked[key] = value
        return masked

    return mask(data)


def _normalize_key(key: object) -> str:
    return str(key).lower().replace("-", "_")


def validate_ollama_url(url: str, allow_remote: bool = False) -> bool:
    """Check an Ollama base URL before any request is made to it.

    Only http(s) URLs with a host are accepted, and the host must be a
    loopback address unless ``allow_remote`` is set. This keeps a
    configuration value from turning the library into a proxy for internal
    services (cloud metadata endpoints, intranet hosts).
    """
    if not url:
        return False

    parsed = urlparse(url)
    host = parsed.hostname
    if parsed.scheme not in ("http", "https") or not host:
        return False

    return _is_loopback(host) or allow_remote


def _is_loopback(host: str) -> bool:
    if host in LOOPBACK_HOSTS:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def mask_config_value(key: str, value: str | None) -> str:
    """Display form of a configuration value; credentials keep only their ends."""
    if value is None:
        return "(not set)"
    if not any(part in key.lower() for part in _SENSITIVE_CONFIG_KEYS):
        return value
    return f"{value[:4]}...{value[-4:]}" if len(value) > 8 else "***"
