"""Tests for header block splitting and status line parsing."""

from curlfetch.core.framing import parse_response, split_header_block
from curlfetch.models.results import NO_STATUS_MESSAGE, FetchError

URL = "https://example.com/"


class TestSplitHeaderBlock:
    """Tests for split_header_block."""

    def test_crlf_headers(self):
        """Test that CR is stripped and the body kept verbatim."""
        headers, body = split_header_block(b"HTTP/1.1 200 OK\r\nServer: x\r\n\r\nline1\r\nline2")
        assert headers == [b"HTTP/1.1 200 OK", b"Server: x"]
        assert body == b"line1\r\nline2"

    def test_body_with_blank_lines(self):
        """Test that only the first empty line separates headers from body."""
        headers, body = split_header_block(b"HTTP/1.1 200 OK\n\n\n\nbody\n\n")
        assert headers == [b"HTTP/1.1 200 OK"]
        assert body == b"\n\nbody\n\n"

    def test_no_separator(self):
        """Test that output without an empty line is all headers."""
        headers, body = split_header_block(b"HTTP/1.1 200 OK\nServer: x")
        assert headers == [b"HTTP/1.1 200 OK", b"Server: x"]
        assert body == b""

    def test_empty(self):
        """Test empty input."""
        assert split_header_block(b"") == ([], b"")

    def test_leading_empty_line(self):
        """Test that a leading empty line yields no headers."""
        headers, body = split_header_block(b"\r\nHTTP/1.1 200 OK\n\nbody")
        assert headers == []
        assert body == b"HTTP/1.1 200 OK\n\nbody"


class TestParseResponse:
    """Tests for parse_response."""

    def test_ok(self):
        """Test that 200 delivers the body."""
        result = parse_response(URL, b"HTTP/1.1 200 OK\n\n<html></html>")
        assert result.status_code == 200
        assert result.message == "<html></html>"
        assert result.content == b"<html></html>"
        assert result.url == URL

    def test_reason_phrase(self):
        """Test that other codes deliver the reason phrase."""
        result = parse_response(URL, b"HTTP/1.1 503 Service Unavailable\r\n\r\nignored")
        assert result.status_code == 503
        assert result.message == "Service Unavailable"
        assert result.content == b""

    def test_no_reason_phrase(self):
        """Test the placeholder when nothing follows the code."""
        assert parse_response(URL, b"HTTP/1.1 302\n\n").message == NO_STATUS_MESSAGE
        assert parse_response(URL, b"HTTP/1.1 302 \n\n").message == NO_STATUS_MESSAGE

    def test_empty(self):
        """Test that no header lines is EmptyResponse."""
        assert parse_response(URL, b"").error is FetchError.EMPTY_RESPONSE
        assert parse_response(URL, b"\n\nbody").error is FetchError.EMPTY_RESPONSE

    def test_no_space(self):
        """Test that a status line without a space is invalid."""
        result = parse_response(URL, b"HTTP/1.1\n\n")
        assert result.status_code == -1
        assert result.error is FetchError.INVALID_STATUS_LINE

    def test_zero_code(self):
        """Test that 000 is outside 1..999."""
        assert parse_response(URL, b"HTTP/1.1 000 Zero\n\n").error is FetchError.INVALID_STATUS_LINE

    def test_short_code(self):
        """Test that fewer than three digits is invalid."""
        assert parse_response(URL, b"HTTP/1.1 20\n\n").error is FetchError.INVALID_STATUS_LINE

    def test_non_ascii_digits(self):
        """Test that only ASCII digits are accepted."""
        line = "HTTP/1.1 ٢٠٠ OK\n\n".encode()
        assert parse_response(URL, line).error is FetchError.INVALID_STATUS_LINE

    def test_first_block_only(self):
        """Test that only the first status line is inspected."""
        result = parse_response(URL, b"HTTP/1.1 100 Continue\n\nHTTP/1.1 200 OK\n\nbody")
        assert result.status_code == 100
        assert result.message == "Continue"
