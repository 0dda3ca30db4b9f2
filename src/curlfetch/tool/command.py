"""Build the argument vector for the external HTTP tool."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

# "-D -" makes curl write the response headers to stdout ahead of the body
DUMP_HEADERS_ARGS = ("-D", "-")
HEADER_FLAG = "-H"

DEFAULT_MAX_ARGS = 1024

# Slots kept free below max_args: the URL and the argv terminator of the exec call
_RESERVED_SLOTS = 4


def format_header(name: str, value: str) -> str:
    return f"{name}: {value}"


def build_argv(
    tool: Union[str, Path],
    url: str,
    headers: Mapping[str, str],
    max_args: int = DEFAULT_MAX_ARGS,
) -> list[str]:
    """
    Build "<tool> -D - [-H 'name: value']* <url>".

    Headers are forwarded in mapping order until the argument vector would
    exceed max_args; the rest are dropped with a warning instead of failing
    the request.

    Args:
        tool: Path to the curl binary
        url: Destination URL, always the last argument
        headers: Header name -> value
        max_args: Upper bound on the argument vector length

    Returns:
        Argument vector suitable for subprocess.Popen
    """
    argv = [str(tool), *DUMP_HEADERS_ARGS]
    header_lines = [format_header(name, value) for name, value in headers.items()]

    forwarded = 0
    for line in header_lines:
        if len(argv) >= max_args - _RESERVED_SLOTS:
            break
        argv.extend((HEADER_FLAG, line))
        forwarded += 1

    dropped = len(header_lines) - forwarded
    if dropped:
        logger.warning(f"Argument limit {max_args} reached, dropped {dropped} header(s) for {url}")

    argv.append(url)
    return argv
