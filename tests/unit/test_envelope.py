"""
Unit tests for the handler envelope (default headers + gzip).
"""

import gzip

import pytest

from httpgate.handlers import Envelope, handler_func
from httpgate.http import HTTPResponse
from httpgate.middleware.compression import GzipResponseWriter


DEFAULTS = [
    ("X-Content-Type-Options", "nosniff"),
    ("X-Frame-Options", "SAMEORIGIN"),
]


@handler_func
def html_page(response, request):
    response.write(b"<html><body>page</body></html>")


class TestEnvelopeHeaders:
    """Default header behavior."""

    def test_defaults_set_before_handler(self, make_request):
        """The handler sees the defaults already in place."""
        seen = {}

        def handler(response, request):
            seen.update(response.headers.items())

        Envelope(handler, DEFAULTS).serve(HTTPResponse(), make_request())

        assert seen == dict(DEFAULTS)

    def test_handler_may_override_defaults(self, make_request):
        """A handler's own value wins over a default."""
        def handler(response, request):
            response.headers["X-Frame-Options"] = "DENY"

        response = HTTPResponse()
        Envelope(handler, DEFAULTS).serve(response, make_request())

        assert response.headers["X-Frame-Options"] == "DENY"

    def test_malformed_defaults_ignored(self, make_request):
        """Bad entries are skipped, good ones still apply."""
        response = HTTPResponse()
        Envelope(html_page, [("Broken",), ("X-Ok", "1")]).serve(response, make_request())

        assert response.headers["X-Ok"] == "1"
        assert "Broken" not in response.headers

    def test_defaults_copied_at_construction(self, make_request):
        """Changing the caller's list later has no effect."""
        defaults = list(DEFAULTS)
        envelope = Envelope(html_page, defaults)
        defaults.append(("X-Late", "1"))

        response = HTTPResponse()
        envelope.serve(response, make_request())

        assert "X-Late" not in response.headers

    def test_independent_envelopes(self, make_request):
        """Two envelopes keep their own defaults."""
        first = Envelope(html_page, [("X-Site", "one")])
        second = Envelope(html_page, [("X-Site", "two")])

        a, b = HTTPResponse(), HTTPResponse()
        first.serve(a, make_request())
        second.serve(b, make_request())

        assert a.headers["X-Site"] == "one"
        assert b.headers["X-Site"] == "two"

    def test_name(self):
        """Test the logging name."""
        assert Envelope(html_page).name == "Envelope(html_page)"


class TestEnvelopeCompression:
    """gzip behavior."""

    def test_plain_without_gzip(self, make_request):
        """No gzip in Accept-Encoding: the handler writes directly."""
        response = HTTPResponse()
        Envelope(html_page).serve(response, make_request(headers={"Accept-Encoding": "br"}))

        assert "Content-Encoding" not in response.headers
        assert bytes(response.body) == b"<html><body>page</body></html>"

    def test_gzip_engaged(self, make_request):
        """gzip in Accept-Encoding: encoded body, sniffed type."""
        response = HTTPResponse()
        Envelope(html_page, DEFAULTS).serve(
            response, make_request(headers={"Accept-Encoding": "gzip, deflate"}),
        )

        assert response.headers["Content-Encoding"] == "gzip"
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert gzip.decompress(bytes(response.body)) == b"<html><body>page</body></html>"

    def test_handler_receives_gzip_writer(self, make_request):
        """The handler is given the compressing writer, not the sink."""
        seen = []

        def handler(response, request):
            seen.append(response)

        Envelope(handler).serve(HTTPResponse(), make_request(headers={"Accept-Encoding": "gzip"}))

        assert isinstance(seen[0], GzipResponseWriter)

    def test_handler_receives_sink_without_gzip(self, make_request):
        """Without gzip the handler is given the very response passed in."""
        seen = []

        def handler(response, request):
            seen.append(response)

        sink = HTTPResponse()
        Envelope(handler, DEFAULTS).serve(sink, make_request(headers={"Accept-Encoding": "br"}))

        assert seen[0] is sink

    def test_empty_body_is_valid_gzip(self, make_request):
        """A handler that writes nothing still yields a gzip member."""
        response = HTTPResponse()
        Envelope(lambda resp, req: None).serve(response, make_request(headers={"Accept-Encoding": "gzip"}))

        assert gzip.decompress(bytes(response.body)) == b""

    def test_stream_closed_when_handler_raises(self, make_request):
        """The error propagates and the trailer is still written."""
        def handler(response, request):
            response.write(b"partial")
            raise RuntimeError("handler failed")

        response = HTTPResponse()
        with pytest.raises(RuntimeError):
            Envelope(handler).serve(response, make_request(headers={"Accept-Encoding": "gzip"}))

        assert gzip.decompress(bytes(response.body)) == b"partial"

    def test_compression_level(self, make_request):
        """Test a non-default level still round-trips."""
        response = HTTPResponse()
        Envelope(html_page, compression_level=9).serve(
            response, make_request(headers={"Accept-Encoding": "gzip"}),
        )

        assert gzip.decompress(bytes(response.body)) == b"<html><body>page</body></html>"
