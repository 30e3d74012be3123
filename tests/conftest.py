"""
pytest configuration and fixtures.
"""

import http.client
import socket
import threading
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpgate.http import HTTPRequest, HTTPResponse
from httpgate.server import GateServer, make_server


PNG_HEADER = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24

NOT_FOUND_HTML = "<!DOCTYPE html><html><body>Nothing here</body></html>"


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """Factory for requests built by hand."""
    def _make(method: str = "GET", path: str = "/", headers=None, **kwargs) -> HTTPRequest:
        return HTTPRequest(method=method, path=path, headers=headers or {}, **kwargs)
    return _make


@pytest.fixture
def response() -> HTTPResponse:
    """Fresh buffering response sink."""
    return HTTPResponse()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """
    A small static site:

        /index.html
        /error404.html
        /notes.txt
        /style.css
        /logo                (PNG bytes, no extension)
        /docs/index.html
        /docs/guide.html
        /empty/              (no index.html)
    """
    (tmp_path / "index.html").write_text("<html><body>Home</body></html>")
    (tmp_path / "error404.html").write_text(NOT_FOUND_HTML)
    (tmp_path / "notes.txt").write_text("plain notes\n")
    (tmp_path / "style.css").write_text("body { color: red; }\n")
    (tmp_path / "logo").write_bytes(PNG_HEADER)

    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<html><body>Docs</body></html>")
    (docs / "guide.html").write_text("<html><body>Guide</body></html>")

    (tmp_path / "empty").mkdir()
    return tmp_path


@pytest.fixture
def bare_site(site: Path) -> Path:
    """The same site without a not-found document."""
    (site / "error404.html").unlink()
    return site


class LiveServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: GateServer):
        self.server = server
        self.host, self.port = server.server_address[:2]
        self._thread = threading.Thread(target=server.serve_forever, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        self._thread.join(timeout=5.0)

    def request(self, method: str, path: str, headers=None, body=None) -> http.client.HTTPResponse:
        """Send one request and return the fully read response."""
        conn = http.client.HTTPConnection(self.host, self.port, timeout=5.0)
        try:
            conn.request(method, path, body=body, headers=headers or {})
            resp = conn.getresponse()
            resp.data = resp.read()
            return resp
        finally:
            conn.close()

    def send_raw(self, data: bytes) -> bytes:
        """Send raw request bytes and return everything until the server closes."""
        chunks = []
        with socket.create_connection((self.host, self.port), timeout=5.0) as sock:
            sock.sendall(data)
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def live_server() -> Generator[Callable[..., LiveServer], None, None]:
    """Start a server for a handler on an ephemeral port."""
    started = []

    def _start(handler) -> LiveServer:
        srv = LiveServer(make_server(handler, host="127.0.0.1", port=0))
        srv.start()
        started.append(srv)
        return srv

    yield _start

    for srv in started:
        srv.stop()
