"""Command line entry point for runtime-insight.

Subcommands:
- explain: Explain a Python traceback (file or stdin) or a log entry
- doctor: Report whether the configuration can produce explanations

Explanations go to stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

import structlog

from runtime_insight._version import __version__
from runtime_insight.utils.retry import TracebackParseError

if TYPE_CHECKING:
    from runtime_insight.config.schema import InsightConfig
    from runtime_insight.models.explanation import Explanation

log = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path("runtime-insight.yaml")


def setup_logging(
    debug: bool = False,
    log_format: str = "console",
    file_path: str | None = None,
) -> None:
    """Configure structured logging with secret sanitization.

    Only warnings reach stderr unless debug is on.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
        file_path: Optional log file from the `logging.file` setting
    """
    from runtime_insight.utils.logging import LogFormat, LogLevel, configure_logging

    configure_logging(
        level=LogLevel.DEBUG if debug else LogLevel.WARNING,
        log_format=LogFormat(log_format.lower()),
        file_path=file_path,
        file_enabled=file_path is not None,
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="runtime-insight",
        description="runtime-insight - Human-readable explanations for runtime errors",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    explain = subparsers.add_parser("explain", help="Explain a traceback or a log entry")
    explain.add_argument(
        "traceback_file",
        nargs="?",
        type=Path,
        help="File containing a Python traceback (default: read stdin)",
    )
    explain.add_argument("--class", dest="exception_class", help="Exception class of a log entry")
    explain.add_argument("--message", help="Error message of a log entry")
    explain.add_argument("--file", dest="source_file", default="", help="File of a log entry")
    explain.add_argument("--line", type=int, default=0, help="Line of a log entry")
    explain.add_argument("--json", action="store_true", help="Print the explanation as JSON")

    subparsers.add_parser("doctor", help="Check the configuration")

    return parser


def load_insight_config(path: Path | None) -> InsightConfig:
    """Load the configuration file, or build one from the environment alone."""
    from runtime_insight.config.loader import load_config
    from runtime_insight.config.schema import InsightConfig

    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return InsightConfig()
        path = DEFAULT_CONFIG_PATH

    log.debug("loading_configuration", path=str(path))
    return load_config(path)


def run_explain(args: argparse.Namespace, config: InsightConfig, out: TextIO) -> int:
    """Explain one failure and print the result.

    Returns:
        Exit code (1 when no explanation could be produced)
    """
    from runtime_insight.context.builder import ContextBuilder
    from runtime_insight.context.traceback_parser import TracebackParser
    from runtime_insight.core.insight import RuntimeInsight

    builder = ContextBuilder(config.context)
    insight = RuntimeInsight(config, context_builder=builder)

    if args.message is not None:
        explanation = insight.analyze_from_log(
            args.message,
            args.source_file,
            args.line,
            args.exception_class or "Exception",
        )
    else:
        if args.traceback_file is not None:
            text = args.traceback_file.read_text(encoding="utf-8")
        else:
            text = sys.stdin.read()
        context = builder.with_source(TracebackParser().parse(text))
        explanation = insight.analyze_context(context)

    if explanation.is_empty:
        print("warning: no explanation available (is analysis enabled here?)", file=sys.stderr)
        return 1

    if args.json:
        out.write(json.dumps(explanation.to_dict(), indent=2) + "\n")
    else:
        out.write(render_explanation(explanation))
    return 0


def render_explanation(explanation: Explanation) -> str:
    """Render an explanation for a terminal."""
    lines = [f"{explanation.error_type or 'Error'}: {explanation.message}"]
    if explanation.location:
        lines.append(f"  at {explanation.location}")
    if explanation.call_site_location:
        lines.append(f"  called from {explanation.call_site_location}")
    lines.append("")
    lines.append(f"Cause: {explanation.cause}")

    if explanation.suggestions:
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"  {i}. {s}" for i, s in enumerate(explanation.suggestions, 1))

    if explanation.code_snippet:
        lines.append("")
        lines.append(explanation.code_snippet)

    lines.append("")
    lines.append(f"Confidence: {round(explanation.confidence * 100)}%")
    return "\n".join(lines) + "\n"


def run_doctor(config: InsightConfig, out: TextIO) -> int:
    """Print the health report.

    Returns:
        Exit code (0 unless the report is unhealthy)
    """
    from runtime_insight.utils.health import HealthChecker

    report = HealthChecker(config).run_all_checks()
    out.write(json.dumps(report.to_dict(), indent=2) + "\n")
    return 0 if report.healthy else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.log_format)

    try:
        config = load_insight_config(args.config)
        if config.logging.file:
            setup_logging(args.debug, args.log_format, file_path=config.logging.file)

        if args.command == "doctor":
            return run_doctor(config, sys.stdout)
        return run_explain(args, config, sys.stdout)

    except TracebackParseError as e:
        log.error("traceback_not_found", error=str(e))
        return 1
    except FileNotFoundError as e:
        log.error("file_not_found", error=str(e))
        return 1
    except ValueError as e:
        # Invalid configuration (pydantic ValidationError is a ValueError)
        log.error("invalid_input", error=str(e))
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
