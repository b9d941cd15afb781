"""
mailparse.cli - Command-line interface.

Main entry point for the mailparse CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from mailparse import __version__
from mailparse.commands import config_cmd, trace


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mailparse",
        description="Parse log files looking for what a mail went through",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mailparse trace 'abc@example.com'                  # Search /var/log/**/mail*.log
  mailparse trace '<abc@example.com>' mail.log       # Search given files
  mailparse trace abc@example.com mail.log* -j 8     # Parse on 8 processes
  mailparse trace abc@example.com --format html -o thread.html

Configuration:
  mailparse config path         # Show config file location
  mailparse config show         # View all settings

For detailed command help: mailparse <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"mailparse {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # trace command
    trace_parser = subparsers.add_parser(
        "trace",
        help="Show what a mail went through",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mailparse trace abc@example.com                   # Default log location
  mailparse trace abc@example.com /var/log/mail.log # Explicit files
  mailparse trace abc@example.com --format json     # Output JSON for tooling

If no transaction carries the message-id as given, the search is retried
with the message-id wrapped in angle brackets (or unwrapped, if it
already was).
""",
    )
    trace_parser.add_argument(
        "message_id",
        help="Message-id to look for in the log files",
    )
    trace_parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Log files into which to look [default: logs.paths from config]",
        metavar="FILE",
    )
    trace_parser.add_argument(
        "--format",
        choices=["text", "json", "html"],
        default=None,
        help="Output format (default: output.format from config, text)",
    )
    trace_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write output to a file instead of stdout",
        metavar="PATH",
    )
    trace_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Worker processes for parsing (0 = one per CPU, 1 = no pool)",
        metavar="N",
    )
    trace_parser.add_argument(
        "--chunk-lines",
        type=int,
        default=None,
        help="Split files into shards of N lines (0 = one shard per file)",
        metavar="N",
    )
    trace_parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default=None,
        help="Bold queue ids in text output (default: output.color from config)",
    )

    # config command
    config_parser = subparsers.add_parser(
        "config",
        help="View configuration",
    )
    config_parser.add_argument(
        "config_action",
        choices=["show", "path"],
        nargs="?",
        default="show",
        help="show: effective settings as TOML; path: config file location",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def version_command(args: argparse.Namespace) -> int:
    """Handle version command."""
    print(f"mailparse {__version__}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install mailparse[completion]
    # Then activate: eval "$(register-python-argcomplete mailparse)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "trace":
            return trace.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "version":
            return version_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
