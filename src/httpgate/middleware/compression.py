"""
=============================================================================
GZIP RESPONSE WRITER
=============================================================================

Transparently gzip-encodes everything a handler writes, without the
handler knowing.

=============================================================================
CONTENT NEGOTIATION
=============================================================================

The browser tells us what encoding it accepts:

    Request:
    ┌───────────────────────────────────────────────────────────────┐
    │ GET /docs/ HTTP/1.1                                           │
    │ Accept-Encoding: gzip, deflate, br                            │
    │              │                                                │
    │              └── all we look for: the substring "gzip"        │
    └───────────────────────────────────────────────────────────────┘

    Response:
    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: text/html; charset=utf-8   (sniffed, see below) │
    │ Content-Encoding: gzip                                        │
    │                                                               │
    │ [gzip compressed body]                                        │
    └───────────────────────────────────────────────────────────────┘

The check is a plain, case-sensitive substring test. There is no q-value
parsing; "gzip;q=0" still counts as accepting gzip.

=============================================================================
HOW THE WRAPPER WORKS
=============================================================================

    handler ──write(b"<html>")──► GzipResponseWriter
                                     │
                                     │ 1. Content-Type unset?
                                     │    sniff THIS chunk, set it
                                     │
                                     │ 2. forward to GzipStream
                                     ▼
                                  GzipStream ──compressed bytes──► response

    headers / status / write_header go straight to the wrapped response.

Why sniff here? A standard host sniffs the first write itself, but not
once Content-Encoding is set, and by then it would only see compressed
bytes anyway. So the wrapper sniffs the uncompressed bytes before they
disappear into the compressor.

=============================================================================
INTERVIEW QUESTIONS ABOUT COMPRESSION
=============================================================================

Q: "Why must the stream be closed even when the handler fails?"
A: "gzip ends with a CRC32 and length trailer, and the compressor holds
   buffered data until flush. Without close() the client gets a
   truncated stream it cannot decode."

Q: "Why not set Content-Length?"
A: "The compressed size is unknown until the stream is closed. The
   buffering host computes it after the fact; a streaming host would
   use chunked transfer encoding."

=============================================================================
"""

import logging
import zlib
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import Headers, ResponseWriter
from ..http.sniff import detect_content_type


logger = logging.getLogger(__name__)


DEFAULT_LEVEL = 6
"""zlib's default trade-off between speed and ratio."""

# 16 + MAX_WBITS selects the gzip container (header + CRC32 trailer).
_GZIP_WBITS = 16 + zlib.MAX_WBITS


def accepts_gzip(request: HTTPRequest) -> bool:
    """True when the Accept-Encoding header contains "gzip" (case-sensitive)."""
    return "gzip" in request.accept_encoding


class GzipStream:
    """
    Writable gzip stream bound to a response sink.

    Compressed output is handed to `sink.write` whenever the compressor
    produces some; nothing reaches the sink before the first write (or
    close), so the sink's status can still be chosen up to that point.
    """

    def __init__(self, sink: ResponseWriter, level: int = DEFAULT_LEVEL):
        self._sink = sink
        self._compressor = zlib.compressobj(level, zlib.DEFLATED, _GZIP_WBITS)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed gzip stream")
        compressed = self._compressor.compress(data)
        if compressed:
            self._sink.write(compressed)
        return len(data)

    def close(self) -> None:
        """Flush the remaining compressed data and the gzip trailer."""
        if self._closed:
            return
        self._closed = True
        self._sink.write(self._compressor.flush())

    def __enter__(self) -> "GzipStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class GzipResponseWriter(ResponseWriter):
    """
    Response sink that gzip-encodes the body of the response it wraps.

    =========================================================================
    DELEGATION
    =========================================================================

    Only write() is overridden. Everything else is the wrapped response:

        writer.headers        is response.headers
        writer.status         == response.status
        writer.write_header   → response.write_header

    =========================================================================
    USAGE
    =========================================================================

        response.headers["Content-Encoding"] = "gzip"
        with GzipResponseWriter(response) as writer:
            handler.serve(writer, request)
        # trailer flushed here, even if the handler raised

    =========================================================================
    """

    def __init__(
        self,
        response: ResponseWriter,
        stream: Optional[GzipStream] = None,
        level: int = DEFAULT_LEVEL,
    ):
        """
        Args:
            response: The sink compressed bytes are written to.
            stream: A fresh GzipStream bound to `response`. Created from
                    `level` when omitted.
            level: Compression level (1-9) for the default stream.
        """
        self.response = response
        self.stream = stream if stream is not None else GzipStream(response, level)

    @property
    def headers(self) -> Headers:
        return self.response.headers

    @property
    def status(self) -> int:
        return self.response.status

    def write_header(self, status: int) -> None:
        self.response.write_header(status)

    def write(self, data: bytes) -> int:
        if not self.response.headers.get("Content-Type"):
            # Sniff the uncompressed bytes of this call only.
            content_type = detect_content_type(data)
            self.response.headers["Content-Type"] = content_type
            logger.debug(f"Sniffed Content-Type {content_type!r} before compressing")
        return self.stream.write(data)

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "GzipResponseWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. accepts_gzip() is the whole of content negotiation
# 2. GzipStream compresses lazily into the sink
# 3. GzipResponseWriter sniffs the first uncompressed write, then compresses
# 4. close() on every exit path, or the client gets a truncated stream
# =============================================================================
