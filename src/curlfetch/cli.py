"""Command-line interface for curlfetch."""

import argparse
import sys
from pathlib import Path
from typing import Optional

try:
    import pydantic  # noqa: F401
    import rich  # noqa: F401
except ImportError as e:
    print(f"\nERROR: Missing required dependency: {e.name}", file=sys.stderr)
    print("\nRecommended fixes:", file=sys.stderr)
    print("  1. For pip users: pip install --upgrade --force-reinstall curlfetch", file=sys.stderr)
    print("  2. For development: pip install -e .[dev]", file=sys.stderr)
    print("\nTo diagnose issues, run: python -m curlfetch.doctor", file=sys.stderr)
    sys.exit(1)

from rich.console import Console
from rich.markup import escape

from . import __version__
from .core.client import fetch_blocking
from .logging_config import setup_logging
from .models.config import ByteSize, CurlFetchConfig
from .models.results import FetchResult


def parse_header(text: str) -> tuple[str, str]:
    """
    Parse a "Name: value" header argument.

    Raises:
        argparse.ArgumentTypeError: If there is no colon or the name is empty
    """
    name, sep, value = text.partition(":")
    name = name.strip()
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"invalid header {text!r}, expected 'Name: value'")
    return name, value.strip()


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="curlfetch",
        description="Fetch a URL through the curl binary and print the response body",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a page
  curlfetch https://example.com

  # Send headers and allow 5 seconds without progress
  curlfetch https://api.example.com/v1/items -H "Accept: application/json" -t 5

  # Use settings from a YAML file
  curlfetch https://example.com --config curlfetch.yaml

  # Check that curl can be found and run
  curlfetch --doctor
        """,
    )

    parser.add_argument(
        "url",
        nargs="?",
        help="URL to fetch",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Run diagnostic checks",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        metavar="FILE",
        help="YAML configuration file (requires pyyaml)",
    )

    # Request settings
    request_group = parser.add_argument_group("request settings")
    request_group.add_argument(
        "--header",
        "-H",
        type=parse_header,
        action="append",
        default=[],
        dest="headers",
        metavar="'NAME: VALUE'",
        help="Extra request header (repeatable)",
    )
    request_group.add_argument(
        "--timeout",
        "-t",
        type=int,
        default=None,
        metavar="SECONDS",
        help="Abort after this many seconds without output (default: 30)",
    )

    # Tool settings
    tool_group = parser.add_argument_group("tool settings")
    tool_group.add_argument(
        "--curl",
        type=Path,
        default=None,
        metavar="PATH",
        help="Try this curl binary before the standard locations",
    )
    tool_group.add_argument(
        "--max-size",
        type=str,
        default=None,
        metavar="SIZE",
        help="Maximum response size, e.g. '8mb' (default: 64mb)",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--include-status",
        "-i",
        action="store_true",
        help="Print the status code on stderr before the body",
    )
    output_group.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log messages to this file",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only print the body and errors",
    )

    return parser


def build_config(args: argparse.Namespace) -> CurlFetchConfig:
    """Merge the optional config file with command-line overrides."""
    config = CurlFetchConfig.from_yaml_file(args.config) if args.config else CurlFetchConfig()

    updates: dict = {}
    if args.curl is not None:
        paths = [args.curl, *config.tool.candidate_paths]
        updates["tool"] = config.tool.model_copy(update={"candidate_paths": paths})
    if args.max_size is not None:
        max_size = ByteSize._parse(args.max_size)
        updates["limits"] = config.limits.model_copy(update={"max_response_size": max_size})
    if args.log_file is not None:
        updates["log_file"] = args.log_file

    if args.verbose:
        updates["log_level"] = "DEBUG"
    elif args.quiet:
        updates["log_level"] = "ERROR"

    return config.model_copy(update=updates) if updates else config


def report(result: FetchResult, console: Console, include_status: bool, quiet: bool) -> int:
    """Write the body to stdout, everything else to stderr; return the exit code."""
    if result.error is not None:
        console.print(f"[red]Error:[/red] {result.error.value}: {escape(result.message)}")
        return 1

    if include_status and not quiet:
        console.print(f"[bold]HTTP {result.status_code}[/bold]")

    if result.ok:
        sys.stdout.buffer.write(result.content)
        sys.stdout.flush()
        return 0

    if not quiet:
        console.print(f"[yellow]HTTP {result.status_code}[/yellow] {escape(result.message)}")
    return 1


def run_fetch(args: argparse.Namespace) -> int:
    """Run a single fetch with the given arguments."""
    console = Console(stderr=True)

    if not args.url:
        console.print("[red]Error:[/red] Please provide a URL to fetch")
        return 1

    try:
        config = build_config(args)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    setup_logging(
        config.log_level,
        log_file=str(config.log_file) if config.log_file else None,
        force=True,
    )

    result = fetch_blocking(
        args.url,
        headers=dict(args.headers),
        timeout=args.timeout,
        config=config,
    )
    return report(result, console, args.include_status, args.quiet)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.doctor:
        from .doctor import run_doctor

        candidate_paths = None
        if args.curl is not None:
            candidate_paths = [args.curl, *CurlFetchConfig().tool.candidate_paths]
        return run_doctor(candidate_paths=candidate_paths)

    return run_fetch(args)


if __name__ == "__main__":
    sys.exit(main())
