"""
=============================================================================
HTTP REQUEST
=============================================================================

The inbound half of the request/response abstraction every handler in
this package consumes.

The host server (see server.py) parses the wire format; by the time a
request reaches a handler it is a plain HTTPRequest dataclass:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     WHAT A HANDLER CAN SEE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /docs/guide.html?lang=en HTTP/1.1                             │
    │   ─┬─ ───────┬─────── ───┬───                                       │
    │    │         │           └── query_params {"lang": ["en"]}          │
    │    │         └── path "/docs/guide.html"                            │
    │    └── method "GET" (case-sensitive token)                          │
    │                                                                      │
    │   Origin: https://example.com       ← read by the method gate       │
    │   Accept-Encoding: gzip, deflate    ← read by the envelope          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Header names are stored lower-cased; values are kept exactly as received.
The gate compares Origin values and the envelope searches Accept-Encoding
for "gzip" without any case folding of the value.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class HTTPRequest:
    """
    Represents one inbound HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         Method token exactly as sent ("GET", "POST", ...)
        path:           Target path WITHOUT the query string
        version:        Protocol version string ("HTTP/1.1")
        headers:        Header map with LOWERCASE names
        query_params:   "?a=1&a=2" → {"a": ["1", "2"]}
        body:           Raw body bytes
        client_address: (ip, port) of the peer, used for access logging

    =========================================================================
    """

    method: str
    path: str = "/"
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    client_address: tuple[str, int] = ("", 0)

    def __post_init__(self):
        # Callers building requests by hand may use canonical casing.
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    @property
    def origin(self) -> str:
        """The Origin header, or "" when the request carries none."""
        return self.headers.get("origin", "")

    @property
    def accept_encoding(self) -> str:
        """The Accept-Encoding header, or "" when absent."""
        return self.headers.get("accept-encoding", "")

    @property
    def host(self) -> str:
        return self.headers.get("host", "")

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    def get_header(self, name: str, default: str = "") -> str:
        """
        Get a header value (case-insensitive lookup on the name).

        Args:
            name: Header name (any case)
            default: Value to return if header not found

        Returns:
            Header value or default
        """
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value of a query parameter."""
        values = self.query_params.get(name, [])
        return values[0] if values else default
