"""
=============================================================================
HTTP RESPONSE SINK
=============================================================================

The outbound half of the request/response abstraction. Handlers never
build a response object and return it; they are handed a sink and write
into it, the way a streaming server hands out a socket-backed writer.

=============================================================================
THE SINK CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       RESPONSE WRITER                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   headers          case-insensitive map, read/write                 │
    │   status           committed status code (200 until committed)      │
    │   write_header(s)  commit the status line, FIRST CALL WINS          │
    │   write(data)      append body bytes, commits 200 if needed         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

"First call wins" matters for the not-found substitution in the static
file handler: the resolver commits 404 before the file server gets to
call write_header(200), and the file server's later call is ignored.

    resolver                    file server                 sink
    ────────                    ───────────                 ────
    write_header(404) ────────────────────────────────────► status=404
                                write_header(200) ────────► ignored
                                write(b"<html>...") ──────► body

=============================================================================
INTERVIEW QUESTIONS ABOUT RESPONSE WRITERS
=============================================================================

Q: "Why a writer instead of returning a response object?"
A: "A writer lets a wrapper substitute the write path without knowing
   anything about the handler. The gzip wrapper forwards headers and
   status untouched and only intercepts write(). With a returned
   object, the wrapper would have to buffer the whole body first."

Q: "Why can't the status change after the first write?"
A: "On a real connection the status line is the first thing on the
   wire. Once body bytes have been sent it is too late."

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from http import HTTPStatus
from typing import Dict, Iterator, Optional, Union

from .sniff import detect_content_type


logger = logging.getLogger(__name__)


# Statuses that never carry a body (RFC 7230 section 3.3.3).
_BODYLESS = {HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED}


class Headers(MutableMapping):
    """
    Case-insensitive, order-preserving header map.

    Lookups ignore case ("content-type" finds "Content-Type"); iteration
    yields names in the casing they were last set with. Setting an
    existing header replaces its value in place.
    """

    def __init__(self, initial=None):
        self._items: Dict[str, tuple[str, str]] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()][1]

    def __setitem__(self, name: str, value: str) -> None:
        self._items[name.lower()] = (name, value)

    def __delitem__(self, name: str) -> None:
        del self._items[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def copy(self) -> "Headers":
        return Headers(self)


class ResponseWriter(ABC):
    """
    Abstract response sink.

    Implementations expose two attributes, `headers` (a Headers map) and
    `status` (the committed status code), plus the two methods below.
    Wrappers such as GzipResponseWriter implement the same interface and
    delegate to the sink they wrap.
    """

    headers: Headers
    status: int

    @abstractmethod
    def write_header(self, status: int) -> None:
        """Commit the response status. Only the first call has an effect."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write body bytes, returning how many were accepted."""


@dataclass
class HTTPResponse(ResponseWriter):
    """
    Buffering response sink.

    Collects status, headers and body in memory. The host server
    serializes it with to_bytes() once the handler returns; tests read
    the fields directly.

    =========================================================================
    RESPONSE LIFECYCLE
    =========================================================================

        Handler writes          to_bytes()              Socket sends
        into the sink   ─────►  serializes   ─────►     raw bytes
            │                       │                        │
        response.write(b"..")    b"HTTP/1.1 200 OK\\r\\n    wfile.write(
        response.headers[..]       Content-Type: ...\\r\\n    payload
                                   \\r\\n                    )
                                   ..."

    =========================================================================
    """

    status: int = HTTPStatus.OK
    headers: Headers = field(default_factory=Headers)
    body: bytearray = field(default_factory=bytearray)
    version: str = "HTTP/1.1"

    _committed: bool = field(default=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.headers, Headers):
            self.headers = Headers(self.headers)
        if not isinstance(self.body, bytearray):
            self.body = bytearray(self.body)

    @property
    def committed(self) -> bool:
        """True once a status has been written."""
        return self._committed

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        try:
            phrase = HTTPStatus(self.status).phrase
        except ValueError:
            phrase = ""
        return f"{self.version} {int(self.status)} {phrase}".rstrip()

    def write_header(self, status: int) -> None:
        if self._committed:
            logger.debug(
                f"Superfluous write_header({int(status)}), "
                f"status already {int(self.status)}"
            )
            return
        self.status = status
        self._committed = True

    def write(self, data: bytes) -> int:
        if not self._committed:
            self.write_header(HTTPStatus.OK)
        self.body.extend(data)
        return len(data)

    def to_bytes(self, server_name: str = "httpgate/1.0", include_body: bool = True) -> bytes:
        """
        Serialize the response to bytes for sending over a socket.

        Missing Content-Length, Date and Server headers are filled in.
        When the handler never chose a Content-Type and the body is not
        content-encoded, the type is sniffed from the first 512 body
        bytes, which is what a standard host server does for plain
        writers.

        Args:
            server_name: Value for the Server header.
            include_body: False for HEAD responses.

        Returns:
            Complete HTTP response as bytes.
        """
        response_headers = self.headers.copy()
        body = bytes(self.body)
        bodyless = self.status in _BODYLESS or 100 <= self.status < 200

        if body and "Content-Type" not in response_headers and "Content-Encoding" not in response_headers:
            response_headers["Content-Type"] = detect_content_type(body)

        # An encoded HEAD body is only the encoder's trailer, not the
        # length a GET would carry.
        encoded_head = not include_body and "Content-Encoding" in response_headers
        if not bodyless and not encoded_head and "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"

        if bodyless or not include_body:
            return header_bytes
        return header_bytes + body


def write_error(response: ResponseWriter, message: str, status: int) -> None:
    """
    Reply with a plain-text error message.

    Any Content-Length a handler may have set no longer describes the
    body, so it is dropped. X-Content-Type-Options stops browsers from
    sniffing the message into something executable.
    """
    response.headers.pop("Content-Length", None)
    response.headers["Content-Type"] = "text/plain; charset=utf-8"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.write_header(status)
    response.write(f"{message}\n".encode("utf-8"))


def redirect(response: ResponseWriter, location: str, permanent: bool = True) -> None:
    """Commit a 301 (or 302) redirect to `location`."""
    response.headers["Location"] = location
    response.write_header(HTTPStatus.MOVED_PERMANENTLY if permanent else HTTPStatus.FOUND)


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are ALWAYS in GMT (UTC), never local time.
    """
    dt = dt.astimezone(timezone.utc)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def parse_http_date(value: Union[str, None]) -> Optional[datetime]:
    """Parse an HTTP-date header value, returning None if it is unusable."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
