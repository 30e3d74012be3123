"""
=============================================================================
HTTPGATE - Method Gates, gzip and Custom 404 Pages for HTTP Handlers
=============================================================================

A small convenience layer over a request/response interface. It does not
route and it does not manage connections; it wraps handlers.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WHAT HTTPGATE ADDS                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. METHOD / ORIGIN GATE                                           │
    │      - Run a handler only for listed methods (and origins)          │
    │      - Everything else gets a not-allowed handler                   │
    │                                                                      │
    │   2. HANDLER ENVELOPE                                               │
    │      - Default response headers, set in order                       │
    │      - gzip when the client advertises it                           │
    │      - Content-Type sniffed from the first uncompressed write       │
    │                                                                      │
    │   3. STATIC FILES                                                   │
    │      - Directory tree with index.html                               │
    │      - error404.html served with status 404 for anything missing   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpgate/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpgate)
    ├── server.py            # ThreadingHTTPServer bridge
    ├── config.py            # ServerConfig dataclass
    ├── http/                # Request/response primitives
    │   ├── request.py       # HTTPRequest
    │   ├── response.py      # ResponseWriter, HTTPResponse, Headers
    │   ├── sniff.py         # Content-Type sniffing
    │   └── mime_types.py    # Extension → MIME type
    ├── middleware/          # Response wrappers
    │   ├── compression.py   # GzipStream, GzipResponseWriter
    │   └── headers.py       # Default headers
    └── handlers/            # Handlers
        ├── base.py          # Handler interface
        ├── methods.py       # Per-method helpers
        ├── gate.py          # MethodGate, Endpoint
        ├── envelope.py      # Envelope
        └── static.py        # FileServer and the 404 resolver

=============================================================================
QUICK START
=============================================================================

    from httpgate import Endpoint, handler_func, make_server

    @handler_func
    def hello(response, request):
        response.write(b"Hello, World!")

    app = Endpoint(hello, allowed_methods=("GET",)).build(
        default_headers=[("X-Content-Type-Options", "nosniff")],
    )
    make_server(app, port=8080).serve_forever()

    # Or a static site:
    from httpgate import new_file_server_handler
    make_server(new_file_server_handler("./public")).serve_forever()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .handlers import (
    Endpoint,
    Envelope,
    FileServer,
    Handler,
    MethodGate,
    handler_func,
    new_file_server_handler,
)
from .http import HTTPRequest, HTTPResponse, ResponseWriter
from .server import create_app, make_server, run

__all__ = [
    "ServerConfig",
    "Endpoint",
    "Envelope",
    "FileServer",
    "Handler",
    "MethodGate",
    "handler_func",
    "new_file_server_handler",
    "HTTPRequest",
    "HTTPResponse",
    "ResponseWriter",
    "create_app",
    "make_server",
    "run",
    "__version__",
]
