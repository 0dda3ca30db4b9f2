"""Curlfetch configuration and result models."""

from .config import ByteSize, CurlFetchConfig, LimitsConfig, ToolConfig
from .results import (
    FAILURE_STATUS,
    FetchError,
    FetchRequest,
    FetchResult,
    OperationState,
)

__all__ = [
    # Config
    "ByteSize",
    "CurlFetchConfig",
    "LimitsConfig",
    "ToolConfig",
    # Results
    "FAILURE_STATUS",
    "FetchError",
    "FetchRequest",
    "FetchResult",
    "OperationState",
]
