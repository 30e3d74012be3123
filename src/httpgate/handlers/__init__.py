"""
Request handlers.

    Handler / handler_func     the serve(response, request) interface
    MethodGate / Endpoint      method and origin allow-lists
    Envelope                   default headers and gzip around a handler
    FileServer                 static files with a custom 404 page
    methods                    per-method helpers (methods.get, methods.post, ...)
"""

from . import methods
from .base import Handler, HandlerFunc, as_handler, handler_func
from .envelope import Envelope
from .gate import Endpoint, MethodGate, bad_request
from .static import (
    DirFileSystem,
    FileServer,
    FileSystem,
    NotFoundFileSystem,
    OpenFile,
    new_file_server_handler,
)

__all__ = [
    "Handler",
    "HandlerFunc",
    "as_handler",
    "handler_func",
    "Envelope",
    "Endpoint",
    "MethodGate",
    "bad_request",
    "DirFileSystem",
    "FileServer",
    "FileSystem",
    "NotFoundFileSystem",
    "OpenFile",
    "new_file_server_handler",
    "methods",
]
