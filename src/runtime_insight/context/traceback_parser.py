"""Parser turning Python traceback text into a runtime context.

Used by the CLI to explain failures from log files or pasted output. It
supports:
- Standard tracebacks
- Chained exceptions (raise ... from ..., and errors during handling)
- SyntaxError tracebacks
- Tracebacks in code blocks (```)
"""

from __future__ import annotations

import re

import structlog

from ..models.context import ExceptionInfo, RuntimeContext, StackFrame, StackTraceInfo
from ..utils.retry import TracebackParseError
from .frames import is_vendor_path, split_qualname

log = structlog.get_logger()


class TracebackParser:
    """Parser for Python tracebacks.

    The last exception of a chain is the one explained; the exception before
    it becomes ``previous_class``/``previous_message``.

    Example:
        parser = TracebackParser()
        if parser.contains_traceback(text):
            context = parser.parse(text)
            print(context.exception.class_name)
    """

    TRACEBACK_HEADER = re.compile(r"Traceback \(most recent call last\):")
    FRAME_PATTERN = re.compile(r'^\s*File "([^"]+)", line (\d+)(?:, in (.+))?$')
    EXCEPTION_PATTERN = re.compile(
        r"^([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*):\s*(.*)$",
    )
    EXCEPTION_NO_MSG_PATTERN = re.compile(
        r"^([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)$",
    )
    CHAINED_PATTERN = re.compile(
        r"^(?:The above exception was the direct cause of the following exception:|"
        r"During handling of the above exception, another exception occurred:)$",
        re.MULTILINE,
    )
    SYNTAX_ERROR_PATTERN = re.compile(
        r"^\s*File \"([^\"]+)\", line (\d+).*\n"
        r"(?:.*\n)?"
        r"\s*\^+\n"
        r"((?:\w+\.)*(?:SyntaxError|IndentationError|TabError)):\s*(.*)",
        re.MULTILINE,
    )
    CODE_BLOCK_PATTERN = re.compile(r"```(?:python|py|pytb|text)?\n(.*?)```", re.DOTALL)

    def contains_traceback(self, text: str) -> bool:
        """Check if text contains a Python traceback."""
        if not text:
            return False
        return bool(self.TRACEBACK_HEADER.search(text) or self.SYNTAX_ERROR_PATTERN.search(text))

    def parse(self, text: str) -> RuntimeContext:
        """Parse a Python traceback from text.

        Args:
            text: Text containing a Python traceback

        Returns:
            RuntimeContext with exception identity and stack frames; the
            source context is left empty

        Raises:
            TracebackParseError: If no valid traceback is found
        """
        if not text or not text.strip():
            raise TracebackParseError("Empty text provided")

        extracted = self._extract_from_code_blocks(text) or text

        header_match = self.TRACEBACK_HEADER.search(extracted)
        if header_match is None:
            # Compile errors of the entry script have no header
            syntax_match = self.SYNTAX_ERROR_PATTERN.search(extracted)
            if syntax_match is None:
                raise TracebackParseError("No traceback header found")
            return self._parse_syntax_error(syntax_match, extracted)

        traceback_text = extracted[header_match.start() :]
        segments = [
            segment.strip()
            for segment in self.CHAINED_PATTERN.split(traceback_text)
            if segment.strip()
        ]

        parsed = [self._parse_segment(segment) for segment in segments]
        parsed = [item for item in parsed if item is not None]
        if not parsed:
            raise TracebackParseError("Could not extract exception type")

        frames, class_name, message = parsed[-1]
        previous = parsed[-2] if len(parsed) > 1 else None

        # A SyntaxError raised while importing reports the broken file itself
        syntax_in_last = self.SYNTAX_ERROR_PATTERN.search(segments[-1])
        if syntax_in_last is not None:
            file, line = syntax_in_last.group(1), int(syntax_in_last.group(2))
        elif frames:
            file, line = frames[0].file or "", frames[0].line or 0
        else:
            file, line = "", 0

        exception = ExceptionInfo(
            class_name=class_name,
            message=message,
            file=file,
            line=line,
            previous_class=previous[1] if previous else None,
            previous_message=previous[2] if previous else None,
        )

        log.debug(
            "traceback_parsed",
            exception_class=class_name,
            frames=len(frames),
            chained=previous is not None,
        )

        return RuntimeContext(
            exception=exception,
            stack_trace=StackTraceInfo(frames=tuple(frames), raw_trace=traceback_text),
        )

    def _extract_from_code_blocks(self, text: str) -> str | None:
        """Return the first code block containing a traceback, if any."""
        for match in self.CODE_BLOCK_PATTERN.finditer(text):
            block = match.group(1)
            if self.TRACEBACK_HEADER.search(block) or self.SYNTAX_ERROR_PATTERN.search(block):
                return block
        return None

    def _parse_segment(self, segment: str) -> tuple[list[StackFrame], str, str] | None:
        if not self.TRACEBACK_HEADER.search(segment):
            return None
        class_name, message = self._extract_exception(segment)
        if not class_name:
            return None
        return self._extract_frames(segment), class_name, message

    def _parse_syntax_error(self, match: re.Match[str], text: str) -> RuntimeContext:
        file = match.group(1)
        line = int(match.group(2))

        frame = StackFrame(
            file=file,
            line=line,
            function="<module>",
            is_vendor=is_vendor_path(file),
        )

        return RuntimeContext(
            exception=ExceptionInfo(
                class_name=match.group(3),
                message=match.group(4),
                file=file,
                line=line,
            ),
            stack_trace=StackTraceInfo(frames=(frame,), raw_trace=text.strip()),
        )

    def _extract_frames(self, traceback_text: str) -> list[StackFrame]:
        """Extract frames, innermost first."""
        frames: list[StackFrame] = []

        for line in traceback_text.splitlines():
            frame_match = self.FRAME_PATTERN.match(line)
            if frame_match is None:
                continue

            file = frame_match.group(1)
            class_name, function = split_qualname(frame_match.group(3) or "<module>")
            frames.append(
                StackFrame(
                    file=file,
                    line=int(frame_match.group(2)),
                    class_name=class_name,
                    function=function,
                    call_type="." if class_name else None,
                    is_vendor=is_vendor_path(file),
                )
            )

        # Tracebacks print the most recent call last
        frames.reverse()
        return frames

    def _extract_exception(self, traceback_text: str) -> tuple[str, str]:
        """Extract exception type and message, searching from the end."""
        for line in reversed(traceback_text.splitlines()):
            line = line.strip()
            if not line:
                continue

            if line.startswith("File ") or line.startswith("^") or line.startswith("~"):
                continue

            exc_match = self.EXCEPTION_PATTERN.match(line)
            if exc_match:
                return exc_match.group(1), exc_match.group(2)

            exc_no_msg_match = self.EXCEPTION_NO_MSG_PATTERN.match(line)
            if exc_no_msg_match:
                return exc_no_msg_match.group(1), ""

        return "", ""
