"""Tests for the caller-facing client API."""

import asyncio
import logging
import threading

import pytest
from curlfetch import CurlHttpClient, FetchError, fetch_blocking
from curlfetch.core.operation import FetchOperation

OK_STUB = "printf 'HTTP/1.1 200 OK\\n\\npayload'"


class Recorder:
    """Collects handler invocations together with the calling thread."""

    def __init__(self):
        self.calls = []
        self.lock = threading.Lock()

    def __call__(self, arg, result):
        with self.lock:
            self.calls.append((arg, result, threading.current_thread()))


class TestCurlHttpClient:
    """Tests for CurlHttpClient.request/get."""

    def test_handler_called_once_off_caller_thread(self, make_tool, config_for):
        """Test that the handler runs exactly once on a worker thread."""
        recorder = Recorder()
        client = CurlHttpClient(config_for(make_tool(OK_STUB)))

        handle = client.get("https://example.com/", handler=recorder, arg={"tag": 1})
        assert handle.join(timeout=10)

        assert len(recorder.calls) == 1
        arg, result, thread = recorder.calls[0]
        assert arg == {"tag": 1}
        assert result.status_code == 200
        assert result.message == "payload"
        assert result.url == "https://example.com/"
        assert thread is not threading.current_thread()
        assert thread.name.startswith("curlfetch-")

    def test_arg_passed_through_unmodified(self, make_tool, config_for):
        """Test that the opaque context object is the very same object."""
        recorder = Recorder()
        context = object()
        client = CurlHttpClient(config_for(make_tool(OK_STUB)))
        client.request("POST", "https://example.com/", handler=recorder, arg=context).join(timeout=10)
        assert recorder.calls[0][0] is context

    def test_failure_delivered_through_handler(self, tmp_path, config_for):
        """Test that failures arrive as results, not exceptions."""
        recorder = Recorder()
        client = CurlHttpClient(config_for(tmp_path / "missing"))
        client.get("https://example.com/", handler=recorder).join(timeout=10)
        result = recorder.calls[0][1]
        assert result.status_code == -1
        assert result.error is FetchError.TOOL_NOT_FOUND

    def test_overlong_tool_path_reports_not_found(self, tmp_path, config_for):
        """Test that an unusable candidate path still yields exactly one result."""
        recorder = Recorder()
        client = CurlHttpClient(config_for(tmp_path / ("x" * 300) / "curl"))
        handle = client.get("https://example.com/", handler=recorder)
        assert handle.join(timeout=10)
        assert len(recorder.calls) == 1
        assert recorder.calls[0][1].error is FetchError.TOOL_NOT_FOUND

    def test_unexpected_error_becomes_result(self, make_tool, config_for, monkeypatch, caplog):
        """Test that an exception inside the operation is delivered as a failure."""

        def explode(self):
            raise OSError("disk on fire")

        monkeypatch.setattr(FetchOperation, "run", explode)
        recorder = Recorder()
        client = CurlHttpClient(config_for(make_tool(OK_STUB)))
        with caplog.at_level(logging.ERROR, logger="curlfetch"):
            handle = client.get("https://example.com/", handler=recorder)
            assert handle.join(timeout=10)

        assert len(recorder.calls) == 1
        result = recorder.calls[0][1]
        assert result.status_code == -1
        assert result.error is FetchError.SPAWN_FAILED
        assert "disk on fire" in result.message
        assert any("failed unexpectedly" in record.message for record in caplog.records)

    def test_concurrent_requests_are_independent(self, make_tool, config_for):
        """Test that the same request issued twice yields two clean results."""
        recorder = Recorder()
        tool = make_tool("sleep 0.2; printf 'HTTP/1.1 200 OK\\n\\n%s' \"$4\"")
        client = CurlHttpClient(config_for(tool))

        handles = [
            client.get("https://example.com/", headers={"X-Id": "a"}, handler=recorder, arg="a"),
            client.get("https://example.com/", headers={"X-Id": "b"}, handler=recorder, arg="b"),
        ]
        for handle in handles:
            assert handle.join(timeout=10)

        assert len(recorder.calls) == 2
        by_arg = {arg: result for arg, result, _ in recorder.calls}
        assert by_arg["a"].message == "X-Id: a"
        assert by_arg["b"].message == "X-Id: b"

    def test_default_timeout_from_config(self, make_tool, config_for):
        """Test that a request without a timeout uses the configured default."""
        config = config_for(make_tool(OK_STUB)).model_copy(update={"default_timeout": 7})
        handle = CurlHttpClient(config).get("https://example.com/")
        handle.join(timeout=10)
        assert handle.request.timeout == 7
        assert handle.done

    def test_handler_exception_is_logged(self, make_tool, config_for, caplog):
        """Test that a failing handler does not escape the worker."""

        def broken(_arg, _result):
            raise ValueError("boom")

        client = CurlHttpClient(config_for(make_tool(OK_STUB)))
        with caplog.at_level(logging.ERROR, logger="curlfetch"):
            handle = client.get("https://example.com/", handler=broken)
            assert handle.join(timeout=10)

        assert any("Completion handler" in record.message for record in caplog.records)

    def test_request_headers_are_copied(self, make_tool, config_for):
        """Test that mutating the caller's dict after the call has no effect."""
        headers = {"X-Id": "before"}
        handle = CurlHttpClient(config_for(make_tool(OK_STUB))).get("https://example.com/", headers=headers)
        headers["X-Id"] = "after"
        handle.join(timeout=10)
        assert handle.request.headers["X-Id"] == "before"


class TestAsyncFetch:
    """Tests for the coroutine wrapper."""

    @pytest.mark.asyncio
    async def test_fetch(self, make_tool, config_for):
        """Test awaiting a fetch."""
        client = CurlHttpClient(config_for(make_tool(OK_STUB)))
        result = await client.fetch("https://example.com/")
        assert result.status_code == 200
        assert result.message == "payload"

    @pytest.mark.asyncio
    async def test_fetch_failure(self, make_tool, config_for):
        """Test that failures resolve the future normally."""
        client = CurlHttpClient(config_for(make_tool("exit 6")))
        result = await client.fetch("https://example.com/")
        assert result.error is FetchError.TOOL_EXECUTION_FAILED

    @pytest.mark.asyncio
    async def test_fetch_overlong_tool_path(self, tmp_path, config_for):
        """Test that the future resolves when the candidate path cannot be checked."""
        client = CurlHttpClient(config_for(tmp_path / ("x" * 300) / "curl"))
        result = await asyncio.wait_for(client.fetch("https://example.com/"), timeout=10)
        assert result.error is FetchError.TOOL_NOT_FOUND


class TestFetchBlocking:
    """Tests for fetch_blocking."""

    def test_fetch_blocking(self, make_tool, config_for):
        """Test the synchronous wrapper."""
        result = fetch_blocking("https://example.com/", config=config_for(make_tool(OK_STUB)))
        assert result.ok
        assert result.content == b"payload"

    def test_fetch_blocking_empty_url(self, make_tool, config_for):
        """Test that an empty URL is reported, not raised."""
        result = fetch_blocking("", config=config_for(make_tool(OK_STUB)))
        assert result.error is FetchError.EMPTY_URL

    def test_fetch_blocking_overlong_tool_path(self, tmp_path, config_for):
        """Test that the blocking wrapper returns a result for an unusable path."""
        result = fetch_blocking("https://example.com/", config=config_for(tmp_path / ("x" * 300) / "curl"))
        assert result.error is FetchError.TOOL_NOT_FOUND
