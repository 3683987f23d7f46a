"""Shared test fixtures for runtime-insight."""

import os
from collections.abc import Callable

import pytest

from runtime_insight.config.schema import AIConfig, CacheConfig, InsightConfig
from runtime_insight.models.context import (
    ExceptionInfo,
    RuntimeContext,
    SourceContext,
    StackFrame,
    StackTraceInfo,
)
from runtime_insight.models.explanation import Explanation

ContextFactory = Callable[..., RuntimeContext]


def make_context(
    class_name: str = "RuntimeError",
    message: str = "something went wrong",
    file: str = "/app/service.py",
    line: int = 42,
    snippet: str = "",
    frames: tuple[StackFrame, ...] = (),
) -> RuntimeContext:
    """Build a runtime context with sensible defaults."""
    source = SourceContext.empty()
    if snippet:
        source = SourceContext(
            file=file,
            error_line=line,
            lines={line: snippet},
            code_snippet=snippet,
        )
    return RuntimeContext(
        exception=ExceptionInfo(class_name=class_name, message=message, file=file, line=line),
        stack_trace=StackTraceInfo(frames=frames),
        source_context=source,
    )


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep RUNTIME_INSIGHT_* variables of the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith("RUNTIME_INSIGHT_"):
            monkeypatch.delenv(name)


@pytest.fixture
def context_factory() -> ContextFactory:
    """Return the runtime context factory."""
    return make_context


@pytest.fixture
def null_context() -> RuntimeContext:
    """Member call on null, as reported by a PHP runtime."""
    return make_context(
        class_name="Error",
        message="Call to a member function getId() on null",
        file="/app/Http/Controllers/OrderController.php",
        line=27,
    )


@pytest.fixture
def ai_config() -> AIConfig:
    """AI configuration with OpenAI as primary and a test key."""
    return AIConfig(provider="openai", api_key="test-openai-key")


@pytest.fixture
def insight_config() -> InsightConfig:
    """Root configuration with AI disabled and caching on."""
    return InsightConfig(ai=AIConfig(enabled=False), cache=CacheConfig(enabled=True))


@pytest.fixture
def sample_explanation() -> Explanation:
    """A fully populated explanation."""
    return Explanation(
        message="Call to a member function getId() on null",
        cause="The order lookup returned null.",
        suggestions=("Check the order exists", "Use findOrFail()"),
        confidence=0.85,
        error_type="NullPointerError",
        location="/app/OrderController.php:27",
        metadata={"provider": "openai", "tokens_used": 120},
        code_snippet=" →   27 | $order->getId();",
        call_site_location="/app/routes.php:10",
    )


@pytest.fixture
def sample_traceback() -> str:
    """A simple Python traceback."""
    return (
        "Traceback (most recent call last):\n"
        '  File "/app/main.py", line 10, in <module>\n'
        "    main()\n"
        '  File "/app/main.py", line 6, in main\n'
        "    process(data)\n"
        '  File "/app/processor.py", line 25, in process\n'
        '    return data["key"]\n'
        "KeyError: 'key'\n"
    )


@pytest.fixture
def chained_traceback() -> str:
    """A traceback with an explicit cause."""
    return (
        "Traceback (most recent call last):\n"
        '  File "/app/db.py", line 12, in connect\n'
        "    sock.connect(addr)\n"
        "ConnectionRefusedError: [Errno 111] Connection refused\n"
        "\n"
        "The above exception was the direct cause of the following exception:\n"
        "\n"
        "Traceback (most recent call last):\n"
        '  File "/app/main.py", line 5, in <module>\n'
        "    Repository().load()\n"
        '  File "/app/repository.py", line 30, in Repository.load\n'
        "    raise DatabaseError(\"cannot load\") from e\n"
        "app.errors.DatabaseError: cannot load\n"
    )
