"""Request, result and state types shared by the fetch orchestrator and its callers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Optional

# Status code reported for every non-protocol failure
FAILURE_STATUS = -1

NO_STATUS_MESSAGE = "(no status message from server)"


class FetchError(str, Enum):
    """Terminal failure kinds. None of them is retried by curlfetch itself."""

    EMPTY_URL = "EmptyURL"
    TOOL_NOT_FOUND = "ToolNotFound"
    SPAWN_FAILED = "SpawnFailed"
    TIMED_OUT = "TimedOut"
    TOO_LONG = "TooLong"
    TOOL_EXECUTION_FAILED = "ToolExecutionFailed"
    EMPTY_RESPONSE = "EmptyResponse"
    INVALID_STATUS_LINE = "InvalidStatusLine"

    @property
    def description(self) -> str:
        """Default human-readable diagnostic for this failure."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    FetchError.EMPTY_URL: "cannot fetch empty URL",
    FetchError.TOOL_NOT_FOUND: "unable to locate 'curl' binary",
    FetchError.SPAWN_FAILED: "unable to start 'curl' process",
    FetchError.TIMED_OUT: "connection timed out",
    FetchError.TOO_LONG: "response too long",
    FetchError.TOOL_EXECUTION_FAILED: "connection failed (curl returned non-zero exit code)",
    FetchError.EMPTY_RESPONSE: "HTTP response empty",
    FetchError.INVALID_STATUS_LINE: "invalid HTTP response",
}


class OperationState(str, Enum):
    """Lifecycle of a single fetch operation."""

    CREATED = "created"
    SPAWNING = "spawning"
    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class FetchRequest:
    """
    Immutable description of one fetch.

    Attributes:
        url: Target URL, passed to the tool verbatim
        headers: Header name -> value; forwarded as "-H 'name: value'"
        timeout: Stall timeout in whole seconds
        method: Advisory only, the tool always performs a GET
    """

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: int = 30
    method: str = "GET"

    def __post_init__(self) -> None:
        # Detach from the caller's dict so later mutations cannot leak in
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class FetchResult:
    """
    Outcome of a fetch, delivered exactly once to the completion handler.

    Attributes:
        status_code: HTTP status (1-999), or -1 for process-level failures
        url: The requested URL, echoed for correlation
        redirected: Reserved for redirect tracking, always False
        message: Body text on 200, status reason on other codes,
            diagnostic text on failure
        error: Failure kind, or None when a status line was parsed
        content: Raw body bytes on 200, empty otherwise
    """

    status_code: int
    url: str
    message: str
    redirected: bool = False
    error: Optional[FetchError] = None
    content: bytes = b""

    @staticmethod
    def success(url: str, status_code: int, message: str, content: bytes = b"") -> FetchResult:
        """Create a result for a parsed status line."""
        return FetchResult(status_code=status_code, url=url, message=message, content=content)

    @staticmethod
    def failure(url: str, error: FetchError, detail: Optional[str] = None) -> FetchResult:
        """Create a failed result; detail overrides the default diagnostic."""
        return FetchResult(
            status_code=FAILURE_STATUS,
            url=url,
            message=detail or error.description,
            error=error,
        )

    @property
    def ok(self) -> bool:
        """True for a 200 response."""
        return self.status_code == 200

    @property
    def failed(self) -> bool:
        """True when no status line could be obtained."""
        return self.error is not None
