"""
=============================================================================
METHOD / ORIGIN GATE
=============================================================================

Runs a handler only for allowed methods (and, optionally, origins);
everything else goes to a "not allowed" handler.

=============================================================================
DECISION TABLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       GATE EVALUATION                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   origins configured?   Origin in list?   method in list?  → route  │
    │   ───────────────────   ───────────────   ───────────────    ─────  │
    │   no                    (not checked)     yes                allowed│
    │   no                    (not checked)     no                 reject │
    │   yes                   yes               yes                allowed│
    │   yes                   yes               no                 reject │
    │   yes                   no / missing      any                reject │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Both comparisons are exact string equality:
- "get" is not "GET"
- "https://example.com/" is not "https://example.com"

An empty method list rejects every request. That is a valid "always
reject" configuration, not an error. OPTIONS is an ordinary method token
here; list it if preflight requests should get through.

=============================================================================
INTERVIEW QUESTIONS ABOUT ORIGIN CHECKS
=============================================================================

Q: "Is checking Origin on the server a replacement for CORS?"
A: "No. CORS headers tell a browser what it may read. An Origin
   allow-list decides whether the server does the work at all. Both
   only constrain browsers; curl can send any Origin it likes."

Q: "Why is a missing Origin rejected when origins are configured?"
A: "Same-origin GETs and non-browser clients omit Origin. If a route
   is restricted to listed origins, 'no origin' is not on the list."

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

from ..http.request import HTTPRequest
from ..http.response import ResponseWriter
from ..middleware.compression import DEFAULT_LEVEL
from ..middleware.headers import HeaderPair
from .base import Handler, ServeFunc, as_handler, handler_func
from .envelope import Envelope


logger = logging.getLogger(__name__)


@handler_func
def bad_request(response: ResponseWriter, request: HTTPRequest) -> None:
    """Default not-allowed handler. Writes a body only; the status is left alone."""
    response.write(b"Bad Request")


class MethodGate(Handler):
    """
    Chooses between an allowed and a not-allowed handler per request.

    =========================================================================
    USAGE
    =========================================================================

        gate = MethodGate(
            allowed=api_handler,
            not_allowed=reject,                      # optional
            allowed_methods=["GET", "POST"],
            allowed_origins=["https://example.com"], # optional
        )

        gate.select(request)   # → api_handler or reject
        gate.serve(response, request)

    Configuration is frozen into tuples at construction; changing the
    lists passed in afterwards has no effect.

    =========================================================================
    """

    def __init__(
        self,
        allowed: Union[Handler, ServeFunc],
        not_allowed: Optional[Union[Handler, ServeFunc]] = None,
        allowed_methods: Optional[Iterable[str]] = None,
        allowed_origins: Optional[Iterable[str]] = None,
    ):
        """
        Args:
            allowed: Handler for requests that pass the gate.
            not_allowed: Handler for everything else. Defaults to
                         bad_request, which writes "Bad Request".
            allowed_methods: Accepted method tokens. None or empty
                             rejects every request.
            allowed_origins: Accepted Origin header values. None or empty
                             disables the origin check.
        """
        self.allowed = as_handler(allowed)
        self.not_allowed = as_handler(not_allowed) if not_allowed is not None else bad_request
        self.allowed_methods = tuple(allowed_methods or ())
        self.allowed_origins = tuple(allowed_origins or ())

    def origin_allowed(self, request: HTTPRequest) -> bool:
        """True if no origins are configured or the Origin header is listed."""
        if not self.allowed_origins:
            return True
        return request.origin in self.allowed_origins

    def select(self, request: HTTPRequest) -> Handler:
        """Return the handler that should answer `request`."""
        origin_ok = self.origin_allowed(request)
        for method in self.allowed_methods:
            if method == request.method and origin_ok:
                return self.allowed

        logger.debug(
            f"Rejected {request.method} {request.path} "
            f"(origin {request.origin or '-'}) by {self.allowed.name} gate"
        )
        return self.not_allowed

    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None:
        self.select(request).serve(response, request)


@dataclass(frozen=True)
class Endpoint:
    """
    Declarative description of a gated handler.

    build() turns it into something a host server can call: an Envelope
    (default headers + gzip) around a MethodGate.

        endpoint = Endpoint(
            handler=upload,
            allowed_methods=("POST",),
            allowed_origins=("https://example.com",),
        )
        app = endpoint.build(default_headers=[("X-Frame-Options", "DENY")])
    """

    handler: Union[Handler, ServeFunc]
    not_allowed: Optional[Union[Handler, ServeFunc]] = None
    allowed_methods: Sequence[str] = field(default_factory=tuple)
    allowed_origins: Sequence[str] = field(default_factory=tuple)

    def gate(self) -> MethodGate:
        return MethodGate(
            allowed=self.handler,
            not_allowed=self.not_allowed,
            allowed_methods=self.allowed_methods,
            allowed_origins=self.allowed_origins,
        )

    def build(
        self,
        default_headers: Iterable[HeaderPair] = (),
        compression_level: int = DEFAULT_LEVEL,
    ) -> Envelope:
        """Build the servable handler for this endpoint."""
        return Envelope(self.gate(), default_headers, compression_level)
