"""
=============================================================================
HANDLER ENVELOPE
=============================================================================

The per-request entry point. Wraps exactly one handler and does two
things around it:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ENVELOPE FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request ──► 1. set default headers (in configured order)          │
    │                                                                      │
    │               2. "gzip" in Accept-Encoding?                         │
    │                    │                                                │
    │            no ─────┴───── yes                                       │
    │            │              │                                         │
    │            │              Content-Encoding: gzip                    │
    │            │              wrap response in GzipResponseWriter       │
    │            ▼              ▼                                         │
    │      handler(response)   handler(gzip writer)                       │
    │                           │                                         │
    │                           └── close stream, ALWAYS                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONFIGURATION
=============================================================================

The default header list is passed in, not read from a module global:

    Envelope(handler, default_headers=[("X-Frame-Options", "DENY")])

Two envelopes with different defaults can live in one process, and
there is no "configure before the first request" ordering to get wrong.
The list is copied at construction and only read afterwards, so one
envelope can serve concurrent requests without locking.

=============================================================================
"""

import logging
from typing import Iterable, Union

from ..http.request import HTTPRequest
from ..http.response import ResponseWriter
from ..middleware.compression import DEFAULT_LEVEL, GzipResponseWriter, accepts_gzip
from ..middleware.headers import HeaderPair, apply_default_headers
from .base import Handler, ServeFunc, as_handler


logger = logging.getLogger(__name__)


class Envelope(Handler):
    """
    Applies default headers and optional gzip encoding around a handler.

    Usage:
        app = Envelope(
            FileServer("./public"),
            default_headers=[("X-Content-Type-Options", "nosniff")],
        )
        app.serve(response, request)
    """

    def __init__(
        self,
        handler: Union[Handler, ServeFunc],
        default_headers: Iterable[HeaderPair] = (),
        compression_level: int = DEFAULT_LEVEL,
    ):
        """
        Args:
            handler: The wrapped handler (or plain function).
            default_headers: (name, value) pairs set on every response.
                             Malformed entries are ignored.
            compression_level: gzip level (1-9) when compression engages.
        """
        self.handler = as_handler(handler)
        self.default_headers = tuple(default_headers)
        self.compression_level = compression_level

    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None:
        apply_default_headers(response.headers, self.default_headers)

        if not accepts_gzip(request):
            self.handler.serve(response, request)
            return

        logger.debug(f"gzip engaged for {request.method} {request.path}")
        response.headers["Content-Encoding"] = "gzip"
        with GzipResponseWriter(response, level=self.compression_level) as writer:
            self.handler.serve(writer, request)

    @property
    def name(self) -> str:
        return f"Envelope({self.handler.name})"
