"""Caller-facing fetch API: one worker thread per request."""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable, Optional

from ..models.config import CurlFetchConfig
from ..models.results import FetchError, FetchRequest, FetchResult
from .operation import FetchOperation

logger = logging.getLogger(__name__)

# handler(arg, result); arg is passed through from the caller untouched
CompletionHandler = Callable[[Any, FetchResult], None]

_worker_ids = itertools.count(1)


class FetchHandle:
    """
    Handle on an in-flight fetch.

    The handle does not expose the operation itself: the worker thread owns
    it and drops it once the completion handler has returned.
    """

    def __init__(self, request: FetchRequest, thread: threading.Thread) -> None:
        self.request = request
        self._thread = thread

    @property
    def done(self) -> bool:
        """True once the handler has run and the worker has finished."""
        return not self._thread.is_alive()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker to finish.

        Returns:
            True if the worker finished within the timeout
        """
        self._thread.join(timeout)
        return self.done


def _work(operation: FetchOperation, handler: CompletionHandler, arg: Any) -> None:
    try:
        result = operation.run()
    except Exception as e:
        logger.exception(f"Fetch of {operation.request.url} failed unexpectedly")
        result = FetchResult.failure(operation.request.url, FetchError.SPAWN_FAILED, f"fetch failed: {e}")
    try:
        handler(arg, result)
    except Exception:
        logger.exception(f"Completion handler for {result.url} raised")


class CurlHttpClient:
    """
    Asynchronous HTTP client backed by the external curl binary.

    Every request runs on its own daemon thread, so the caller is never
    blocked; the completion handler is invoked exactly once, from that
    thread, after the curl process has been reaped.

    Example:
        def on_done(tag, result):
            print(tag, result.status_code, result.message[:80])

        client = CurlHttpClient(CurlFetchConfig(default_timeout=10))
        handle = client.get("https://example.com", handler=on_done, arg="home")
        handle.join()

        # or, from a coroutine
        result = await client.fetch("https://example.com")
    """

    def __init__(self, config: Optional[CurlFetchConfig] = None) -> None:
        """
        Initialize the client.

        Args:
            config: Tool location, limits and default headers (defaults if None)
        """
        self.config = config or CurlFetchConfig()

    def _build_request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]],
        timeout: Optional[int],
    ) -> FetchRequest:
        return FetchRequest(
            url=url,
            headers=dict(headers or {}),
            timeout=self.config.default_timeout if timeout is None else timeout,
            method=method,
        )

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        handler: Optional[CompletionHandler] = None,
        arg: Any = None,
    ) -> FetchHandle:
        """
        Start a fetch on a new worker thread.

        Args:
            method: Advisory HTTP method; curl always performs a GET
            url: URL to fetch
            headers: Extra request headers, merged over the configured defaults
            timeout: Stall timeout in seconds (config default if None)
            handler: Called once as handler(arg, result); may be None
            arg: Opaque value passed through to the handler

        Returns:
            Handle to wait on the worker
        """
        fetch_request = self._build_request(method, url, headers, timeout)
        operation = FetchOperation(fetch_request, self.config)
        thread = threading.Thread(
            target=_work,
            args=(operation, handler or _ignore_result, arg),
            name=f"curlfetch-{next(_worker_ids)}",
            daemon=True,
        )
        thread.start()
        return FetchHandle(fetch_request, thread)

    def get(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        handler: Optional[CompletionHandler] = None,
        arg: Any = None,
    ) -> FetchHandle:
        """Shorthand for request("GET", ...)."""
        return self.request("GET", url, headers=headers, timeout=timeout, handler=handler, arg=arg)

    async def fetch(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
        method: str = "GET",
    ) -> FetchResult:
        """
        Fetch from a coroutine without blocking the event loop.

        The worker thread resolves a future on the running loop when the
        fetch completes.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[FetchResult] = loop.create_future()

        def deliver(_arg: Any, result: FetchResult) -> None:
            loop.call_soon_threadsafe(_resolve, future, result)

        self.request(method, url, headers=headers, timeout=timeout, handler=deliver)
        return await future


def _resolve(future: asyncio.Future, result: FetchResult) -> None:
    # The awaiting task may have been cancelled meanwhile
    if not future.done():
        future.set_result(result)


def _ignore_result(_arg: Any, _result: FetchResult) -> None:
    pass


def fetch_blocking(
    url: str,
    headers: Optional[Mapping[str, str]] = None,
    timeout: Optional[int] = None,
    config: Optional[CurlFetchConfig] = None,
) -> FetchResult:
    """
    Synchronous convenience wrapper around CurlHttpClient.

    Runs the fetch on a worker thread like any other request and waits for
    it to complete.

    Example:
        result = fetch_blocking("https://example.com", timeout=10)
        print(result.status_code)
    """
    results: list[FetchResult] = []

    def collect(_arg: Any, result: FetchResult) -> None:
        results.append(result)

    handle = CurlHttpClient(config).get(url, headers=headers, timeout=timeout, handler=collect)
    handle.join()
    return results[0]
