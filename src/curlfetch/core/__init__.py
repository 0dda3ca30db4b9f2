"""Fetch orchestration: process supervision, response framing and the client API."""

from .client import CompletionHandler, CurlHttpClient, FetchHandle, fetch_blocking
from .framing import parse_response, split_header_block
from .operation import FetchOperation

__all__ = [
    "CompletionHandler",
    "CurlHttpClient",
    "FetchHandle",
    "FetchOperation",
    "fetch_blocking",
    "parse_response",
    "split_header_block",
]
