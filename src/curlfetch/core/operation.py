"""FetchOperation - one curl child process, from spawn to parsed result."""

from __future__ import annotations

import logging
import os
import selectors
import subprocess
import time
from typing import Optional

from ..models.config import CurlFetchConfig
from ..models.results import FetchError, FetchRequest, FetchResult, OperationState
from ..tool import build_argv, describe_paths, locate
from .framing import parse_response

logger = logging.getLogger(__name__)


class FetchOperation:
    """
    Runs a single request through the external curl binary.

    The operation owns the child process, both pipe read ends and the
    response buffer. run() walks SPAWNING -> RUNNING -> TERMINATED and
    returns exactly one FetchResult. By the time it returns, the child has
    been reaped and every descriptor it used is closed, whichever way the
    run ended.

    The timeout is a stall timeout: every chunk read from the child's
    stdout pushes the deadline back by request.timeout seconds.

    Example:
        op = FetchOperation(FetchRequest("https://example.com", timeout=10))
        result = op.run()
        if result.ok:
            print(result.message)
    """

    def __init__(self, request: FetchRequest, config: Optional[CurlFetchConfig] = None) -> None:
        """
        Initialize the operation.

        Args:
            request: The request to perform
            config: Tool location and resource limits (defaults if None)
        """
        self.request = request
        self.state = OperationState.CREATED
        self._config = config or CurlFetchConfig()
        self._buffer = bytearray()

        # Kept after the run for inspection; no live handles survive it
        self.pid: Optional[int] = None
        self.returncode: Optional[int] = None

    def run(self) -> FetchResult:
        """
        Perform the fetch. May only be called once.

        Returns:
            The result to hand to the completion handler

        Raises:
            RuntimeError: If the operation has already been run
        """
        if self.state is not OperationState.CREATED:
            raise RuntimeError(f"FetchOperation for {self.request.url!r} has already been run")

        self.state = OperationState.SPAWNING
        try:
            result = self._run()
        finally:
            self.state = OperationState.TERMINATED
            self._buffer = bytearray()

        logger.debug(f"Fetch of {result.url} finished: {result.status_code} {result.error or ''}".rstrip())
        return result

    def _run(self) -> FetchResult:
        url = self.request.url
        if not url:
            return FetchResult.failure(url, FetchError.EMPTY_URL)

        candidates = self._config.tool.candidate_paths
        tool = locate(candidates)
        if tool is None:
            logger.warning(f"curl not found in any of {len(candidates)} candidate paths")
            return FetchResult.failure(
                url,
                FetchError.TOOL_NOT_FOUND,
                f"unable to locate 'curl' binary in {describe_paths(candidates)}",
            )

        headers = {**self._config.default_headers, **self.request.headers}
        argv = build_argv(tool, url, headers, max_args=self._config.tool.max_args)

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to spawn {tool} for {url}: {e}")
            return FetchResult.failure(url, FetchError.SPAWN_FAILED, f"unable to start '{tool}': {e}")

        self.pid = proc.pid
        self.state = OperationState.RUNNING
        logger.debug(f"Spawned {tool} (pid {proc.pid}) for {self.request.method} {url}")

        try:
            outcome = self._supervise(proc)
        finally:
            self._release(proc)

        if outcome is not None:
            return FetchResult.failure(url, outcome)
        if self.returncode != 0:
            logger.warning(f"curl exited with status {self.returncode} for {url}")
            return FetchResult.failure(url, FetchError.TOOL_EXECUTION_FAILED)
        return parse_response(url, bytes(self._buffer))

    def _supervise(self, proc: subprocess.Popen) -> Optional[FetchError]:
        """Multiplex the child's pipes until it exits, stalls or overflows."""
        with selectors.DefaultSelector() as selector:
            for name, stream in (("stdout", proc.stdout), ("stderr", proc.stderr)):
                os.set_blocking(stream.fileno(), False)
                selector.register(stream.fileno(), selectors.EVENT_READ, data=name)
            outcome = self._poll_loop(proc, selector)

        if outcome is None and proc.poll() is None:
            outcome = self._wait_for_exit(proc)
        return outcome

    def _poll_loop(self, proc: subprocess.Popen, selector: selectors.BaseSelector) -> Optional[FetchError]:
        limits = self._config.limits
        timeout = self.request.timeout
        url = self.request.url
        deadline = time.monotonic() + timeout

        while True:
            for key, _events in selector.select(timeout=limits.poll_interval):
                try:
                    chunk = os.read(key.fd, limits.read_chunk_size)
                except BlockingIOError:
                    continue
                except OSError as e:
                    logger.debug(f"Read error on curl {key.data} for {url}: {e}")
                    return None

                if not chunk:
                    selector.unregister(key.fd)
                    continue

                if key.data == "stdout":
                    self._buffer += chunk
                    deadline = time.monotonic() + timeout
                    if len(self._buffer) > limits.max_response_size:
                        logger.warning(
                            f"Response for {url} exceeded {limits.max_response_size} bytes, killing curl"
                        )
                        proc.kill()
                        return FetchError.TOO_LONG
                else:
                    logger.debug(f"curl stderr: {chunk.decode('utf-8', errors='replace').rstrip()}")

            if not selector.get_map():
                # Both pipes closed; the child is exiting
                return None

            if time.monotonic() >= deadline:
                logger.warning(f"No output from curl for {timeout}s while fetching {url}, killing it")
                proc.kill()
                return FetchError.TIMED_OUT

            if proc.poll() is not None:
                return self._drain(proc)

    def _drain(self, proc: subprocess.Popen) -> Optional[FetchError]:
        """Collect whatever the exited child left in its stdout pipe."""
        fd = proc.stdout.fileno()
        limits = self._config.limits
        while True:
            try:
                chunk = os.read(fd, limits.read_chunk_size)
            except OSError:
                return None
            if not chunk:
                return None
            self._buffer += chunk
            if len(self._buffer) > limits.max_response_size:
                return FetchError.TOO_LONG

    def _wait_for_exit(self, proc: subprocess.Popen) -> Optional[FetchError]:
        """Wait for a child whose pipes are closed, killing it if it lingers."""
        grace = max(self.request.timeout, self._config.limits.poll_interval)
        try:
            proc.wait(timeout=grace)
        except subprocess.TimeoutExpired:
            logger.warning(f"curl (pid {proc.pid}) closed its output but did not exit, killing it")
            proc.kill()
            return FetchError.TIMED_OUT
        return None

    def _release(self, proc: subprocess.Popen) -> None:
        """Reap the child and close both read ends."""
        if proc.poll() is None:
            proc.kill()
        proc.wait()
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        self.returncode = proc.returncode
