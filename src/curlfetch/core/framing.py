"""Split captured tool output into header block and body, and read the status line."""

from __future__ import annotations

import re

from ..models.results import NO_STATUS_MESSAGE, FetchError, FetchResult

_STATUS_CODE = re.compile(rb"[0-9]{3}")


def split_header_block(buffer: bytes) -> tuple[list[bytes], bytes]:
    """
    Split captured output at the first empty line.

    Lines are delimited by LF; CR characters are stripped from header
    lines. A trailing unterminated line still counts as a header line.

    Args:
        buffer: Raw bytes captured from the tool's stdout

    Returns:
        (header lines, body bytes). The body is returned verbatim.
    """
    lines: list[bytes] = []
    pos = 0
    end = len(buffer)
    while pos < end:
        newline = buffer.find(b"\n", pos)
        if newline < 0:
            lines.append(buffer[pos:].replace(b"\r", b""))
            pos = end
            break
        line = buffer[pos:newline].replace(b"\r", b"")
        pos = newline + 1
        if not line:
            break
        lines.append(line)
    return lines, buffer[pos:]


def decode_body(body: bytes) -> str:
    """Lossless bytes -> str; encode with the same handler to get the bytes back."""
    return body.decode("utf-8", errors="surrogateescape")


def parse_response(url: str, buffer: bytes) -> FetchResult:
    """
    Turn the output of a successful tool run into a FetchResult.

    Only the status line is inspected. On 200 the body is delivered; on
    any other code the reason phrase following the code is delivered.
    """
    headers, body = split_header_block(buffer)
    if not headers:
        return FetchResult.failure(url, FetchError.EMPTY_RESPONSE)

    status_line = headers[0]
    space = status_line.find(b" ")
    if space < 0:
        return FetchResult.failure(
            url, FetchError.INVALID_STATUS_LINE, "invalid HTTP response (no status line)"
        )

    code_start = space + 1
    code_text = status_line[code_start : code_start + 3]
    code = int(code_text) if _STATUS_CODE.fullmatch(code_text) else 0
    if not 1 <= code <= 999:
        return FetchResult.failure(
            url, FetchError.INVALID_STATUS_LINE, "invalid HTTP response (invalid response code)"
        )

    if code == 200:
        return FetchResult.success(url, code, decode_body(body), content=body)

    # Skip the code and the single delimiter after it
    reason = status_line[code_start + 4 :]
    if reason:
        return FetchResult.success(url, code, reason.decode("utf-8", errors="replace"))
    return FetchResult.success(url, code, NO_STATUS_MESSAGE)
