"""
=============================================================================
STATIC FILES WITH A CUSTOM 404 PAGE
=============================================================================

Serves a directory tree, substituting a designated not-found document
(error404.html by default) when a file, or a directory's index.html, is
missing.

=============================================================================
THE THREE LAYERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   FileServer            request path → redirects, headers, bytes    │
    │        │                                                             │
    │        ▼                                                             │
    │   NotFoundFileSystem    "open" that falls back to error404.html     │
    │        │                (one per request, it writes to the response)│
    │        ▼                                                             │
    │   DirFileSystem         "open" below a root directory               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE NOT-FOUND PATH
=============================================================================

    open("/docs/")
        │
        ├── cannot open?                         ─┐
        └── directory without index.html?        ─┤ (directory closed first)
                                                  ▼
                                  open("/error404.html")
                                      │
                      ┌───── ok ──────┴──── fails ─────┐
                      ▼                                ▼
        Content-Type: text/html; charset=utf-8    re-raise the ORIGINAL
        status 404 committed                      error; FileServer
        serve error404.html                       answers "404 page
                                                  not found"

The 404 is committed by the resolver itself, before the file server
gets going. The file server's own write_header(200) later on is then
ignored by the sink, so the substitute document goes out as a 404.

=============================================================================
INTERVIEW QUESTIONS ABOUT STATIC FILES
=============================================================================

Q: "Why is a directory without index.html treated as missing?"
A: "The alternative is an auto-generated directory listing, which
   exposes the structure of the tree. Treating it as not found means
   the site's own 404 page is shown instead."

Q: "Why is path traversal not a concern here?"
A: "Names are cleaned as slash-separated paths rooted at '/', so '..'
   can never climb above the root. Symlinks inside the root are
   followed; that is the deployer's decision."

Q: "What's the difference between ETag and Last-Modified?"
A: "Last-Modified is the file timestamp with one-second resolution.
   The ETag here is mtime plus size, so it also changes when a file
   is rewritten within the same second with a different length."

=============================================================================
"""

import errno
import logging
import os
import posixpath
import stat as stat_module
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from http import HTTPStatus
from pathlib import Path
from typing import Iterable, Union
from urllib.parse import urlencode

from ..http.mime_types import type_by_extension
from ..http.request import HTTPRequest
from ..http.response import (
    ResponseWriter,
    format_http_date,
    parse_http_date,
    redirect,
    write_error,
)
from ..http.sniff import SNIFF_LEN, detect_content_type
from ..middleware.compression import DEFAULT_LEVEL
from ..middleware.headers import HeaderPair
from .base import Handler
from .envelope import Envelope


logger = logging.getLogger(__name__)


NOT_FOUND_DOCUMENT = "/error404.html"
"""Not-found document, relative to the served root."""

INDEX_FILE = "index.html"

_COPY_CHUNK = 32 * 1024


# =============================================================================
# FILESYSTEM COLLABORATOR
# =============================================================================


class OpenFile:
    """
    An opened file or directory below a FileSystem root.

    Directories are only stat'ed; reading one raises IsADirectoryError.
    close() is idempotent and the object is a context manager.
    """

    def __init__(self, path: Path, name: str):
        """
        Args:
            path: Filesystem path.
            name: Slash-separated name it was opened under ("/docs/a.html").

        Raises:
            OSError: If the path does not exist or cannot be opened.
        """
        self.path = path
        self.name = name
        # Set by NotFoundFileSystem when this is the not-found document
        # served in place of the requested name.
        self.substitute = False

        self._stat = os.stat(path)
        self._fp = None
        if not stat_module.S_ISDIR(self._stat.st_mode):
            self._fp = open(path, "rb")
        self._closed = False

    def is_dir(self) -> bool:
        return self._fp is None

    def stat(self) -> os.stat_result:
        return self._stat

    @property
    def modified(self) -> datetime:
        return datetime.fromtimestamp(self._stat.st_mtime, tz=timezone.utc)

    def read(self, size: int = -1) -> bytes:
        if self._fp is None:
            raise IsADirectoryError(errno.EISDIR, "is a directory", str(self.path))
        return self._fp.read(size)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        if self._fp is None:
            raise IsADirectoryError(errno.EISDIR, "is a directory", str(self.path))
        return self._fp.seek(offset, whence)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._fp is not None:
            self._fp.close()

    def __enter__(self) -> "OpenFile":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"OpenFile({self.name!r})"


class FileSystem(ABC):
    """Something that can open slash-separated names."""

    @abstractmethod
    def open(self, name: str) -> OpenFile:
        """
        Open `name`.

        Raises:
            OSError: If it cannot be opened.
        """


def clean_path(name: str) -> str:
    """
    Normalize a slash-separated name rooted at "/".

        >>> clean_path("docs/../a//b/")
        '/a/b'
        >>> clean_path("/../../etc/passwd")
        '/etc/passwd'
    """
    cleaned = posixpath.normpath("/" + name)
    # normpath keeps a leading "//" (POSIX allows it a special meaning).
    return "/" + cleaned.lstrip("/")


class DirFileSystem(FileSystem):
    """Opens names below a root directory; ".." cannot escape the root."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def open(self, name: str) -> OpenFile:
        if "\x00" in name:
            raise FileNotFoundError(errno.ENOENT, "invalid character in file path", name)
        cleaned = clean_path(name)
        parts = [part for part in cleaned.split("/") if part]
        return OpenFile(self.root.joinpath(*parts), cleaned)


# =============================================================================
# NOT-FOUND RESOLVER
# =============================================================================


class NotFoundFileSystem(FileSystem):
    """
    FileSystem that falls back to a not-found document.

    Created per request: on fallback it sets Content-Type and commits a
    404 on that request's response.
    """

    def __init__(
        self,
        fs: FileSystem,
        response: ResponseWriter,
        not_found_document: str = NOT_FOUND_DOCUMENT,
        index_file: str = INDEX_FILE,
    ):
        self.fs = fs
        self.response = response
        self.not_found_document = not_found_document
        self.index_file = index_file

    def open(self, name: str) -> OpenFile:
        """
        Open `name`, or the not-found document if `name` is missing or is
        a directory without an index file.

        Raises:
            OSError: The original failure, when the not-found document
                     cannot be opened either.
        """
        try:
            opened = self.fs.open(name)
        except OSError as exc:
            return self._not_found(name, exc)

        if opened.is_dir():
            try:
                self.fs.open(posixpath.join(name, self.index_file)).close()
            except OSError as exc:
                try:
                    opened.close()
                except OSError as close_exc:
                    logger.debug(f"Closing directory {name!r} failed: {close_exc}")
                return self._not_found(name, exc)

        return opened

    def _not_found(self, name: str, original: OSError) -> OpenFile:
        try:
            document = self.fs.open(self.not_found_document)
        except OSError:
            logger.debug(f"No not-found document for {name!r}: {original}")
            raise original from None

        logger.debug(f"Serving {self.not_found_document} in place of {name!r}")
        document.substitute = True
        self.response.headers["Content-Type"] = "text/html; charset=utf-8"
        self.response.write_header(HTTPStatus.NOT_FOUND)
        return document


# =============================================================================
# FILE SERVER
# =============================================================================


def _to_http_error(exc: OSError) -> tuple[int, str]:
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return HTTPStatus.NOT_FOUND, "404 page not found"
    if isinstance(exc, PermissionError):
        return HTTPStatus.FORBIDDEN, "403 Forbidden"
    return HTTPStatus.INTERNAL_SERVER_ERROR, "500 Internal Server Error"


class FileServer(Handler):
    """
    Handler serving files from a root directory.

    =========================================================================
    FEATURES
    =========================================================================

    - Custom 404 page (error404.html) via NotFoundFileSystem
    - Directory index (index.html); no directory listings
    - "/dir" → "dir/" and "/file/" → "../file" redirects
    - "/x/index.html" → "./" redirect
    - Content-Type from the extension, else sniffed from the content
    - Last-Modified / ETag with If-Modified-Since / If-None-Match → 304
    - No body for HEAD

    =========================================================================
    USAGE
    =========================================================================

        files = FileServer("./public")
        files.serve(response, request)

        # With default headers and gzip:
        app = new_file_server_handler("./public", default_headers=[...])

    =========================================================================
    """

    def __init__(
        self,
        root_dir: Union[str, Path],
        not_found_document: str = NOT_FOUND_DOCUMENT,
        index_file: str = INDEX_FILE,
    ):
        """
        Args:
            root_dir: Directory to serve.
            not_found_document: Name (below root_dir) of the 404 page.
            index_file: File served for directory requests.

        Raises:
            ValueError: If root_dir is not a directory.
        """
        self.root_dir = Path(root_dir)
        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

        self.fs = DirFileSystem(self.root_dir)
        self.not_found_document = not_found_document
        self.index_file = index_file

    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None:
        url_path = request.path
        if not url_path.startswith("/"):
            url_path = "/" + url_path

        if url_path.endswith("/" + self.index_file):
            redirect(response, self._with_query("./", request))
            return

        resolver = NotFoundFileSystem(self.fs, response, self.not_found_document, self.index_file)
        try:
            opened = resolver.open(clean_path(url_path))
        except OSError as exc:
            status, message = _to_http_error(exc)
            if status == HTTPStatus.INTERNAL_SERVER_ERROR:
                logger.error(f"Error opening {url_path}: {exc}")
            write_error(response, message, status)
            return

        with opened:
            if opened.substitute:
                self._serve_content(response, request, opened)
                return

            if opened.is_dir() and not url_path.endswith("/"):
                name = posixpath.basename(url_path)
                redirect(response, self._with_query(name + "/", request))
                return
            if not opened.is_dir() and url_path.endswith("/"):
                name = posixpath.basename(url_path.rstrip("/"))
                redirect(response, self._with_query("../" + name, request))
                return

            if not opened.is_dir():
                self._serve_content(response, request, opened)
                return

            # The resolver already checked that the index exists.
            try:
                index = self.fs.open(posixpath.join(opened.name, self.index_file))
            except OSError:
                write_error(response, "403 Forbidden", HTTPStatus.FORBIDDEN)
                return
            with index:
                if index.is_dir():
                    write_error(response, "403 Forbidden", HTTPStatus.FORBIDDEN)
                    return
                self._serve_content(response, request, index)

    def _serve_content(self, response: ResponseWriter, request: HTTPRequest, opened: OpenFile) -> None:
        info = opened.stat()
        headers = response.headers
        last_modified = format_http_date(opened.modified)
        etag = f'"{int(info.st_mtime)}-{info.st_size}"'

        if not opened.substitute:
            headers["ETag"] = etag
            if self._is_not_modified(request, opened.modified, etag):
                headers.pop("Content-Type", None)
                headers.pop("Content-Length", None)
                headers["Last-Modified"] = last_modified
                response.write_header(HTTPStatus.NOT_MODIFIED)
                return

        if not headers.get("Content-Type"):
            content_type = type_by_extension(opened.name)
            if content_type is None:
                content_type = detect_content_type(opened.read(SNIFF_LEN))
                opened.seek(0)
            headers["Content-Type"] = content_type

        headers.setdefault("Last-Modified", last_modified)

        # The encoded length is unknown while a Content-Encoding applies.
        if not headers.get("Content-Encoding"):
            headers["Content-Length"] = str(info.st_size)

        response.write_header(HTTPStatus.OK)

        if request.method == "HEAD":
            return

        while True:
            chunk = opened.read(_COPY_CHUNK)
            if not chunk:
                break
            response.write(chunk)

    def _is_not_modified(self, request: HTTPRequest, modified: datetime, etag: str) -> bool:
        if request.method not in ("GET", "HEAD"):
            return False

        if_none_match = request.get_header("If-None-Match")
        if if_none_match:
            candidates = [tag.strip() for tag in if_none_match.split(",")]
            return etag in candidates or "*" in candidates

        since = parse_http_date(request.get_header("If-Modified-Since"))
        if since is None:
            return False
        # HTTP dates have one-second resolution.
        return modified.replace(microsecond=0) <= since

    @staticmethod
    def _with_query(location: str, request: HTTPRequest) -> str:
        if request.query_params:
            return f"{location}?{urlencode(request.query_params, doseq=True)}"
        return location


def new_file_server_handler(
    root_dir: Union[str, Path],
    default_headers: Iterable[HeaderPair] = (),
    not_found_document: str = NOT_FOUND_DOCUMENT,
    index_file: str = INDEX_FILE,
    compression_level: int = DEFAULT_LEVEL,
) -> Envelope:
    """
    Create a ready-to-serve file handler: default headers and gzip
    around a FileServer.

    Example:
        app = new_file_server_handler(
            "/var/www",
            default_headers=[("X-Content-Type-Options", "nosniff")],
        )
    """
    return Envelope(
        FileServer(root_dir, not_found_document, index_file),
        default_headers,
        compression_level,
    )
