"""Tests for the logging configuration module."""

import logging
import sys
from pathlib import Path

import pytest

from runtime_insight._version import __version__
from runtime_insight.config.schema import LoggingConfig
from runtime_insight.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    add_context_processor,
    configure_from_config,
    configure_logging,
    get_logger,
    sanitize_log_value,
    secret_sanitizer,
)


class TestSanitizeLogValue:
    """Tests for sanitize_log_value function."""

    def test_sanitize_openai_project_key(self) -> None:
        """Test that OpenAI project keys are redacted."""
        result = sanitize_log_value("using key sk-proj-FAKEnotreal0123456789abc")
        assert "sk-proj-" not in result
        assert "[REDACTED]" in result

    def test_sanitize_database_url(self) -> None:
        """Test that credentials in connection strings are redacted."""
        result = sanitize_log_value("connect postgres://app:hunter2@db:5432/orders failed")
        assert "hunter2" not in result

    def test_sanitize_string_without_secrets(self) -> None:
        """Test that strings without secrets are unchanged."""
        text = "strategy_matched NullReference"
        assert sanitize_log_value(text) == text

    def test_sanitize_nested_dict(self) -> None:
        """Test that nested dicts are recursively sanitized."""
        data = {"provider": "anthropic", "headers": {"x-api-key": "sk-ant-" + "a" * 45}}
        result = sanitize_log_value(data)
        assert result["provider"] == "anthropic"
        assert result["headers"]["x-api-key"] == "[REDACTED]"

    def test_sanitize_keeps_sequence_type(self) -> None:
        """Test that lists stay lists and tuples stay tuples."""
        assert isinstance(sanitize_log_value(["a", "b"]), list)
        assert sanitize_log_value(("a", "AKIAFAKENOTREAL12345")) == ("a", "[REDACTED]")

    def test_sanitize_non_string(self) -> None:
        """Test that non-strings are passed through."""
        assert sanitize_log_value(0.85) == 0.85
        assert sanitize_log_value(None) is None


class TestProcessors:
    """Tests for the structlog processors."""

    def test_sanitizer_redacts_secrets(self) -> None:
        """Test that the processor redacts secrets."""
        event_dict = {"event": "ai_request_error", "error": "Bearer abcdefghijklmnopqrstuvwx"}
        result = secret_sanitizer(None, "warning", event_dict)  # type: ignore[arg-type]
        assert result["error"] == "[REDACTED]"
        assert result["event"] == "ai_request_error"

    def test_context_processor_adds_service_and_version(self) -> None:
        """Test that every entry names the service and version."""
        result = add_context_processor(None, "info", {"event": "cache_hit"})  # type: ignore[arg-type]
        assert result["service"] == "runtime-insight"
        assert result["version"] == __version__


class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.mark.parametrize("log_format", [LogFormat.CONSOLE, LogFormat.JSON, "json"])
    def test_configure_formats(self, log_format) -> None:
        """Test configuration with each format."""
        configure_logging(level=LogLevel.DEBUG, log_format=log_format)
        assert logging.getLogger().level == logging.DEBUG

    def test_string_level_is_case_insensitive(self) -> None:
        """Test lower-case level strings are accepted."""
        configure_logging(level="warning", log_format="console")
        assert logging.getLogger().level == logging.WARNING

    def test_invalid_level_rejected(self) -> None:
        """Test unknown level names raise ValueError."""
        with pytest.raises(ValueError):
            configure_logging(level="VERBOSE")

    def test_console_handler_writes_to_stderr(self) -> None:
        """Test log output never goes to stdout."""
        configure_logging(level=LogLevel.INFO, log_format=LogFormat.JSON)
        streams = [
            h.stream for h in logging.getLogger().handlers if isinstance(h, logging.StreamHandler)
        ]
        assert sys.stderr in streams
        assert sys.stdout not in streams

    def test_configure_with_file_logging(self, tmp_path: Path) -> None:
        """Test the log directory is created for file logging."""
        log_file = tmp_path / "logs" / "insight.log"
        configure_logging(
            level=LogLevel.INFO,
            log_format=LogFormat.JSON,
            file_path=log_file,
            file_enabled=True,
        )
        assert log_file.parent.is_dir()
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


class TestConfigureFromConfig:
    """Tests for configure_from_config function."""

    def test_configured_level_used(self) -> None:
        """Test the section's level is applied."""
        configure_from_config(LoggingConfig(level="error"))
        assert logging.getLogger().level == logging.ERROR

    def test_minimum_level_raises(self) -> None:
        """Test a minimum level above the configured one wins."""
        configure_from_config(LoggingConfig(level="DEBUG"), minimum_level=LogLevel.WARNING)
        assert logging.getLogger().level == logging.WARNING

    def test_minimum_level_never_lowers(self) -> None:
        """Test a minimum level below the configured one is ignored."""
        configure_from_config(LoggingConfig(level="ERROR"), minimum_level=LogLevel.DEBUG)
        assert logging.getLogger().level == logging.ERROR

    def test_file_from_config(self, tmp_path: Path) -> None:
        """Test the configured file receives events."""
        log_file = tmp_path / "insight.log"
        configure_from_config(LoggingConfig(file=str(log_file)))
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_bound_logger(self) -> None:
        """Test that get_logger returns a usable structlog logger."""
        configure_logging(level=LogLevel.WARNING)
        log = get_logger("test")
        log.info("cache_miss", key="runtime_insight:abc")


class TestLogEventNames:
    """Tests for the event name constants."""

    def test_event_names_are_snake_case(self) -> None:
        """Test that every event name is the snake_case of its constant."""
        names = {k: v for k, v in vars(LogEventNames).items() if k.isupper()}
        assert names
        for constant, value in names.items():
            assert value == constant.lower()
