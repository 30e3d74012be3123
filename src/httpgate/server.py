"""
=============================================================================
HOST SERVER BRIDGE
=============================================================================

Connects handlers to a real socket. Connection management (accepting,
threads, request-line parsing) is the standard library's
ThreadingHTTPServer; this module only translates each request into an
HTTPRequest / HTTPResponse pair and back.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    1. ThreadingHTTPServer accepts the connection (one thread per request)
    2. BaseHTTPRequestHandler parses the request line and headers
    3. RequestBridge builds an HTTPRequest and reads the body
    4. The application handler writes into an HTTPResponse
    5. to_bytes() serializes it, the bridge writes it and closes
    6. One access line is logged to "httpgate.access"

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   socket ─► RequestBridge ─► HTTPRequest ─┐                          │
    │                                           ▼                          │
    │                                  app.serve(response, request)        │
    │                                           │                          │
    │   socket ◄─ to_bytes() ◄── HTTPResponse ◄─┘                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every response carries "Connection: close". Keep-alive would need a
Content-Length the bridge can trust on every path, and serving one
request per connection keeps the bridge trivial.

=============================================================================
INTERVIEW QUESTIONS ABOUT THE BRIDGE
=============================================================================

Q: "What happens when a handler raises?"
A: "The exception is logged with its traceback and the client gets a
   plain-text 500. Whatever the handler had already buffered is
   discarded, since the response is only serialized after the handler
   returns."

Q: "Why does the bridge accept lowercase or unknown methods?"
A: "Method policy belongs to the gate. If the bridge rejected 'get'
   with a 501, a gate configured to answer unknown methods with its
   own not-allowed handler would never see them."

=============================================================================
"""

import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Union
from urllib.parse import parse_qs, unquote, urlsplit

from .config import ServerConfig
from .handlers.base import Handler, ServeFunc, as_handler
from .handlers.envelope import Envelope
from .handlers.gate import Endpoint
from .handlers.static import FileServer
from .http.request import HTTPRequest
from .http.response import HTTPResponse, write_error


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("httpgate.access")


class RequestBridge(BaseHTTPRequestHandler):
    """Translates one stdlib request into a handler call."""

    protocol_version = "HTTP/1.1"
    server: "GateServer"

    def __getattr__(self, name: str):
        # BaseHTTPRequestHandler dispatches to do_<METHOD>; route every
        # method token to the application.
        if name.startswith("do_"):
            return self._dispatch
        raise AttributeError(name)

    def _read_request(self) -> HTTPRequest:
        target = urlsplit(self.path)
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""

        # A repeated header keeps its first value.
        headers = {}
        for name, value in self.headers.items():
            headers.setdefault(name.lower(), value)

        return HTTPRequest(
            method=self.command,
            path=unquote(target.path) or "/",
            version=self.request_version,
            headers=headers,
            query_params=parse_qs(target.query, keep_blank_values=True),
            body=body,
            client_address=self.client_address[:2],
        )

    def _dispatch(self) -> None:
        try:
            request = self._read_request()
        except ValueError:
            self.send_error(HTTPStatus.BAD_REQUEST, "Invalid Content-Length")
            return

        response = HTTPResponse()
        try:
            self.server.app.serve(response, request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            response = HTTPResponse()
            write_error(response, "500 Internal Server Error", HTTPStatus.INTERNAL_SERVER_ERROR)

        response.headers["Connection"] = "close"
        self.close_connection = True

        payload = response.to_bytes(
            self.server.server_software,
            include_body=request.method != "HEAD",
        )
        access_logger.info(
            f'{self.client_address[0]} "{self.requestline}" '
            f"{int(response.status)} {len(response.body)}"
        )

        self.wfile.write(payload)
        self.wfile.flush()

    def log_message(self, format: str, *args) -> None:
        # Protocol-level messages from BaseHTTPRequestHandler (bad request
        # lines, timeouts); successful requests are logged by _dispatch.
        logger.debug(f"{self.address_string()} {format % args}")


class GateServer(ThreadingHTTPServer):
    """ThreadingHTTPServer that serves one application handler."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], app: Union[Handler, ServeFunc], server_software: str):
        self.app = as_handler(app)
        # "server_name" is taken: HTTPServer sets it to the host's FQDN.
        self.server_software = server_software
        super().__init__(address, RequestBridge)


def make_server(
    handler: Union[Handler, ServeFunc],
    host: str = "127.0.0.1",
    port: int = 8080,
    server_name: str = "httpgate/1.0",
) -> GateServer:
    """
    Bind a server for `handler` without starting it.

    Port 0 binds an ephemeral port; read it back from server_address.

    Usage:
        server = make_server(app, port=0)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        host, port = server.server_address[:2]
    """
    return GateServer((host, port), handler, server_name)


def create_app(config: ServerConfig) -> Envelope:
    """
    Build the application described by `config`: a FileServer behind a
    method/origin gate, inside an envelope with the default headers.
    """
    files = FileServer(config.root_dir, config.not_found_document, config.index_file)
    endpoint = Endpoint(
        handler=files,
        allowed_methods=config.allowed_methods,
        allowed_origins=config.allowed_origins,
    )
    return endpoint.build(config.default_headers, config.compression_level)


def setup_logging(level: Union[str, int] = "INFO") -> None:
    """Configure root logging with the package's format."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("httpgate").setLevel(level)


def run(handler: Union[Handler, ServeFunc], config: ServerConfig) -> None:
    """Serve `handler` until interrupted (blocking)."""
    setup_logging(config.numeric_log_level)
    server = make_server(handler, config.host, config.port, config.server_name)
    host, port = server.server_address[:2]
    logger.info(f"Serving on http://{host}:{port}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        server.server_close()
        logger.info("Server stopped")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# make_server()  bind a ThreadingHTTPServer around one handler
# create_app()   FileServer + gate + envelope from a ServerConfig
# run()          logging setup, serve_forever, clean shutdown
#
# The bridge never interprets the response: status, headers and body
# are whatever the handler chose, plus Date, Server, Content-Length
# and Connection filled in by to_bytes() and the bridge.
# =============================================================================
