"""Find the external HTTP tool among well-known install locations."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


def locate(candidate_paths: Iterable[PathLike]) -> Optional[Path]:
    """
    Return the first candidate path that exists.

    Nothing is cached: the filesystem is checked on every call so that a
    tool installed or removed between fetches is noticed.

    Args:
        candidate_paths: Paths to check, in order of preference

    Returns:
        The first existing path, or None if none exists
    """
    for candidate in candidate_paths:
        path = Path(candidate)
        try:
            found = path.exists()
        except (OSError, ValueError):
            # Paths that cannot be checked count as absent
            found = False
        if found:
            return path
    return None


def describe_paths(candidate_paths: Iterable[PathLike]) -> str:
    """Render candidate directories for diagnostics, e.g. '/usr/bin, /bin, or /sbin'."""
    dirs = [str(Path(p).parent) for p in candidate_paths]
    if not dirs:
        return "(no candidate paths configured)"
    if len(dirs) == 1:
        return dirs[0]
    return f"{', '.join(dirs[:-1])}, or {dirs[-1]}"
