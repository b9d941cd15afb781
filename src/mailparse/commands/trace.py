"""
mailparse.commands.trace - Show what a mail went through.

Loads the log files (in parallel), resolves the message's thread and
prints it in the requested format.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, TextIO

from mailparse.config import get_config
from mailparse.graph.diagnostics import Diagnostic
from mailparse.graph.factory import discover_log_files, load_state
from mailparse.graph.resolver import TraceError, TraceResult, trace_message
from mailparse.graph.state import TraceState
from mailparse.trace_view.generators.json import render_json
from mailparse.trace_view.generators.text import render_text

YELLOW_BOLD = "\033[1;33m"
RED_BOLD = "\033[1;31m"
RESET = "\033[0m"


class ConsoleReporter:
    """Prints diagnostics and progress to a stream (stderr by default)."""

    def __init__(
        self,
        quiet: bool = False,
        verbose: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self.quiet = quiet
        self.verbose = verbose
        self.stream = stream or sys.stderr
        self.use_color = self.stream.isatty()

    def _label(self, text: str, code: str) -> str:
        return f"{code}{text}{RESET}" if self.use_color else text

    def diagnostic(self, diagnostic: Diagnostic) -> None:
        if self.quiet:
            return
        print(f"{self._label('warning', YELLOW_BOLD)}: {diagnostic}", file=self.stream)

    def progress(self, source: str, state: TraceState) -> None:
        if not self.verbose or self.quiet:
            return
        print(
            f"loaded {source}: {state.line_count()} transaction lines, "
            f"{state.block_count()} transactions, {state.unrecognized} unrecognized",
            file=self.stream,
        )

    def error(self, message: str) -> None:
        print(f"{self._label('error', RED_BOLD)}: {message}", file=self.stream)


def resolve_files(args: argparse.Namespace, config: Dict[str, Any]) -> List[Path]:
    """Files given on the command line, or the configured default location."""
    if args.files:
        return list(args.files)
    patterns = config.get("logs", {}).get("paths", [])
    if isinstance(patterns, str):
        patterns = [patterns]
    return discover_log_files(patterns)


def use_color(setting: str, stream: TextIO) -> bool:
    """Decide whether to colorize output for an auto/always/never setting."""
    if setting == "always":
        return True
    if setting == "never":
        return False
    return stream.isatty()


def render(result: TraceResult, output_format: str, config: Dict[str, Any], color: bool) -> str:
    """Render a traced message in the requested format."""
    if output_format == "json":
        return render_json(result)
    if output_format == "html":
        from mailparse.html import HTMLGenerator

        return HTMLGenerator(result).generate()
    output_config = config.get("output", {})
    return render_text(
        result.groups,
        color=color,
        indent=int(output_config.get("indent", 2)),
        indent_step=int(output_config.get("indent_step", 4)),
    )


def run(args: argparse.Namespace) -> int:
    """Run the trace command."""
    quiet = getattr(args, "quiet", False)
    verbose = getattr(args, "verbose", False)
    reporter = ConsoleReporter(quiet=quiet, verbose=verbose)

    config = get_config(args.config, quiet=not verbose)
    files = resolve_files(args, config)

    state = load_state(
        files,
        config,
        jobs=args.jobs,
        chunk_lines=args.chunk_lines,
        on_diagnostic=reporter.diagnostic,
        on_progress=reporter.progress,
    )

    try:
        result = trace_message(args.message_id, state, on_diagnostic=reporter.diagnostic)
    except TraceError as e:
        reporter.error(str(e))
        return 1

    output_config = config.get("output", {})
    output_format = args.format or output_config.get("format", "text")
    color_setting = args.color or output_config.get("color", "auto")
    color = output_format == "text" and args.output is None and use_color(color_setting, sys.stdout)

    content = render(result, output_format, config, color)

    if args.output:
        args.output.write_text(content, encoding="utf-8")
        if not quiet:
            print(f"Generated: {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(content)

    return 0
