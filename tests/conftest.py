"""Shared fixtures: stand-in curl binaries written as small shell scripts."""

import logging
import stat
from collections.abc import Callable
from pathlib import Path

import pytest
from curlfetch import CurlFetchConfig


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[[str], Path]:
    """Return a factory writing an executable /bin/sh script used in place of curl."""
    counter = iter(range(1, 1000))

    def factory(body: str) -> Path:
        path = tmp_path / f"curl-stub-{next(counter)}"
        path.write_text(f"#!/bin/sh\n{body}\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return factory


@pytest.fixture
def config_for() -> Callable[..., CurlFetchConfig]:
    """Return a factory building a fast-polling config around one tool path."""

    def factory(tool: Path, **limits) -> CurlFetchConfig:
        limits.setdefault("poll_interval", 0.1)
        return CurlFetchConfig(
            tool={"candidate_paths": [tool]},
            limits=limits,
        )

    return factory


@pytest.fixture(autouse=True)
def reset_curlfetch_logger():
    """Undo setup_logging() so caplog keeps seeing records from other tests."""
    yield
    logger = logging.getLogger("curlfetch")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
