"""Tests for the context and explanation data models."""

import pytest

from runtime_insight.models.context import (
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
from runtime_insight.models.explanation import Explanation


class PaymentError(Exception):
    """Exception type defined outside builtins."""


class TestExceptionInfo:
    """Tests for ExceptionInfo."""

    def test_from_builtin_exception(self) -> None:
        """Builtin exceptions keep their bare class name."""
        try:
            {}["missing"]
        except KeyError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.class_name == "KeyError"
        assert info.message == "'missing'"
        assert info.file == __file__
        assert info.line > 0
        assert info.previous_class is None

    def test_from_custom_exception_is_qualified(self) -> None:
        """Non-builtin classes carry their module."""
        info = ExceptionInfo.from_exception(PaymentError("declined"))
        assert info.class_name == f"{__name__}.PaymentError"
        assert info.short_class_name == "PaymentError"

    def test_from_exception_without_traceback(self) -> None:
        """An exception that was never raised has no location."""
        info = ExceptionInfo.from_exception(ValueError("bad"))
        assert info.file == ""
        assert info.line == 0

    def test_explicit_cause_becomes_previous(self) -> None:
        """``raise ... from`` links the previous exception."""
        try:
            try:
                raise ConnectionError("refused")
            except ConnectionError as inner:
                raise PaymentError("gateway down") from inner
        except PaymentError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.previous_class == "ConnectionError"
        assert info.previous_message == "refused"

    def test_suppressed_context_is_ignored(self) -> None:
        """``raise ... from None`` hides the implicit context."""
        try:
            try:
                raise ConnectionError("refused")
            except ConnectionError:
                raise PaymentError("gateway down") from None
        except PaymentError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.previous_class is None

    def test_errno_becomes_code(self) -> None:
        """OSError errno is exposed as the code."""
        info = ExceptionInfo.from_exception(FileNotFoundError(2, "No such file"))
        assert info.code == 2

    def test_syntax_error_uses_parse_location(self) -> None:
        """SyntaxError reports the broken file and line, not the compile call."""
        try:
            compile("total = (1,\n", "/app/broken.py", "exec")
        except SyntaxError as e:
            info = ExceptionInfo.from_exception(e)

        assert info.class_name == "SyntaxError"
        assert info.file == "/app/broken.py"
        assert info.line == 1
        assert "was never closed" in info.message

    def test_short_class_name_with_backslash_namespace(self) -> None:
        """PHP-style namespaces are stripped too."""
        info = ExceptionInfo(class_name="App\\Exceptions\\OrderException", message="")
        assert info.short_class_name == "OrderException"

    def test_location(self) -> None:
        """Location is file:line."""
        info = ExceptionInfo(class_name="Error", message="", file="/app/a.py", line=3)
        assert info.location == "/app/a.py:3"


class TestStackFrame:
    """Tests for StackFrame."""

    def test_full_method_with_class(self) -> None:
        """Class, call type and function are joined."""
        frame = StackFrame(file="a.py", line=1, class_name="Service", function="run", call_type=".")
        assert frame.full_method == "Service.run"

    def test_full_method_defaults_to_static_separator(self) -> None:
        """Without a call type the separator is ``::``."""
        frame = StackFrame(file="a.php", line=1, class_name="Service", function="run")
        assert frame.full_method == "Service::run"

    def test_full_method_without_class(self) -> None:
        """A plain function is just its name."""
        frame = StackFrame(file="a.py", line=1, function="main")
        assert frame.full_method == "main"

    def test_location_variants(self) -> None:
        """Missing file gives '', missing line gives '?'."""
        assert StackFrame(file=None, line=3).location == ""
        assert StackFrame(file="a.py", line=None).location == "a.py:?"
        assert StackFrame(file="a.py", line=7).location == "a.py:7"

    def test_dict_round_trip(self) -> None:
        """from_dict restores to_dict output."""
        frame = StackFrame(
            file="a.py", line=7, class_name="A", function="b", call_type=".", is_vendor=True
        )
        assert StackFrame.from_dict(frame.to_dict()) == frame


class TestStackTraceInfo:
    """Tests for StackTraceInfo."""

    def test_application_frames_exclude_vendor(self) -> None:
        """Vendor frames are filtered out."""
        app = StackFrame(file="/app/a.py", line=1, function="a")
        vendor = StackFrame(file="/venv/site-packages/x.py", line=2, function="x", is_vendor=True)
        trace = StackTraceInfo(frames=(app, vendor))

        assert trace.application_frames == (app,)
        assert trace.top_frame == app

    def test_call_chain_summary_limits_frames(self) -> None:
        """Only ``limit`` frames are listed."""
        frames = tuple(StackFrame(file=f"/app/{i}.py", line=i, function=f"f{i}") for i in range(5))
        summary = StackTraceInfo(frames=frames).call_chain_summary(limit=2)

        assert summary.splitlines() == ["  - /app/0.py:0 in f0", "  - /app/1.py:1 in f1"]

    def test_empty_trace_has_no_top_frame(self) -> None:
        """An empty trace has no top frame."""
        assert StackTraceInfo().top_frame is None


class TestSourceContext:
    """Tests for SourceContext."""

    def test_empty(self) -> None:
        """The empty source context reports itself as empty."""
        assert SourceContext.empty().is_empty

    def test_non_empty(self) -> None:
        """A context with lines is not empty."""
        source = SourceContext(file="a.py", error_line=1, lines={1: "x = 1"}, code_snippet="x")
        assert not source.is_empty


class TestOptionalContexts:
    """Tests for the request, application, database and performance contexts."""

    def test_request_summary(self) -> None:
        """Summary is method and URI."""
        request = RequestContext(method="POST", uri="/orders")
        assert request.summary == "POST /orders"

    @pytest.mark.parametrize(
        ("peak", "expected"),
        [
            (0, "0 B"),
            (512, "512 B"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5 MB"),
            (3 * 1024**3, "3 GB"),
        ],
    )
    def test_peak_memory_formatted(self, peak: int, expected: str) -> None:
        """Peak memory uses binary units."""
        assert PerformanceContext(peak_memory_bytes=peak).peak_memory_formatted == expected

    def test_database_is_empty(self) -> None:
        """No queries means empty."""
        assert DatabaseContext().is_empty
        assert not DatabaseContext(recent_queries=("SELECT 1",)).is_empty


class TestRuntimeContext:
    """Tests for RuntimeContext."""

    def test_defaults(self) -> None:
        """Source context defaults to empty, optional contexts to None."""
        context = RuntimeContext(exception=ExceptionInfo(class_name="Error", message="x"))
        assert context.source_context.is_empty
        assert context.request_context is None
        assert context.stack_trace.frames == ()

    def test_to_summary_includes_sections(self) -> None:
        """The summary lists every populated section."""
        context = RuntimeContext(
            exception=ExceptionInfo(
                class_name="KeyError",
                message="'email'",
                file="/app/users.py",
                line=12,
                previous_class="ValueError",
                previous_message="bad input",
            ),
            stack_trace=StackTraceInfo(
                frames=(StackFrame(file="/app/users.py", line=12, function="load"),)
            ),
            request_context=RequestContext(method="GET", uri="/users/1"),
            application_context=ApplicationContext(environment="staging", route="users.show"),
            database_context=DatabaseContext(recent_queries=("SELECT * FROM users",)),
            performance_context=PerformanceContext(peak_memory_bytes=2048, runtime_seconds=0.5),
        )

        summary = context.to_summary()

        assert "Exception: KeyError" in summary
        assert "File: /app/users.py:12" in summary
        assert "Previous exception: ValueError: bad input" in summary
        assert "/app/users.py:12 in load" in summary
        assert "Request: GET /users/1" in summary
        assert "Environment: staging, route users.show" in summary
        assert "SELECT * FROM users" in summary
        assert "Peak memory: 2 KB" in summary
        assert "Runtime: 0.5s" in summary

    def test_to_dict(self) -> None:
        """Optional contexts serialize to None."""
        data = RuntimeContext(exception=ExceptionInfo(class_name="Error", message="x")).to_dict()
        assert data["exception"]["class"] == "Error"
        assert data["request_context"] is None


class TestExplanation:
    """Tests for Explanation."""

    def test_empty(self) -> None:
        """The empty explanation is the no-result sentinel."""
        empty = Explanation.empty()
        assert empty.is_empty
        assert empty.confidence == 0.0

    def test_low_confidence_is_not_empty(self) -> None:
        """Zero confidence with text is still a result."""
        assert not Explanation(message="m", cause="", confidence=0.0).is_empty

    @pytest.mark.parametrize("confidence", [-0.1, 1.01])
    def test_confidence_out_of_range_rejected(self, confidence: float) -> None:
        """Confidence must lie in [0, 1]."""
        with pytest.raises(ValueError, match="Confidence must be between"):
            Explanation(message="m", cause="c", confidence=confidence)

    def test_suggestions_become_tuple(self) -> None:
        """A list of suggestions is stored as a tuple."""
        explanation = Explanation(message="m", cause="c", suggestions=["a", "b"])  # type: ignore[arg-type]
        assert explanation.suggestions == ("a", "b")

    def test_with_code_context_returns_copy(self, sample_explanation: Explanation) -> None:
        """Enrichment leaves the original untouched."""
        enriched = sample_explanation.with_code_context("snippet", "/app/x.py:3")

        assert enriched is not sample_explanation
        assert enriched.code_snippet == "snippet"
        assert enriched.call_site_location == "/app/x.py:3"
        assert sample_explanation.code_snippet == " →   27 | $order->getId();"

    def test_with_code_context_empty_snippet_becomes_none(self) -> None:
        """An empty snippet is stored as None."""
        enriched = Explanation(message="m", cause="c").with_code_context("", "/app/x.py:3")
        assert enriched.code_snippet is None

    def test_dict_round_trip(self, sample_explanation: Explanation) -> None:
        """from_dict restores to_dict output exactly."""
        assert Explanation.from_dict(sample_explanation.to_dict()) == sample_explanation

    def test_to_dict_keys(self, sample_explanation: Explanation) -> None:
        """The flat mapping has the documented keys."""
        assert set(sample_explanation.to_dict()) == {
            "message",
            "cause",
            "suggestions",
            "confidence",
            "error_type",
            "location",
            "metadata",
            "code_snippet",
            "call_site_location",
        }
