"""Locating and invoking the external curl binary."""

from .command import build_argv, format_header
from .locator import describe_paths, locate

__all__ = [
    "build_argv",
    "describe_paths",
    "format_header",
    "locate",
]
