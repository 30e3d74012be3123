"""
=============================================================================
HTTP PRIMITIVES
=============================================================================

The request/response abstraction the handlers are written against:

    HTTPRequest       Inbound request (method, path, headers, body)
    ResponseWriter    Abstract response sink (headers, status, write)
    HTTPResponse      Buffering sink the host server serializes
    Headers           Case-insensitive header map
    detect_content_type
                      Standard content sniffing over the first 512 bytes

=============================================================================
"""

from .request import HTTPRequest
from .response import (
    Headers,
    HTTPResponse,
    ResponseWriter,
    format_http_date,
    parse_http_date,
    redirect,
    write_error,
)
from .sniff import detect_content_type
from .mime_types import type_by_extension

__all__ = [
    "HTTPRequest",
    "Headers",
    "HTTPResponse",
    "ResponseWriter",
    "format_http_date",
    "parse_http_date",
    "redirect",
    "write_error",
    "detect_content_type",
    "type_by_extension",
]
