"""
=============================================================================
HANDLER INTERFACE
=============================================================================

Everything that can answer a request implements one capability:

    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None

=============================================================================
THE HANDLER CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        WHO IMPLEMENTS serve()                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HandlerFunc      adapts a plain function(response, request)       │
    │   MethodGate       picks an allowed / not-allowed handler           │
    │   Envelope         default headers + gzip around one handler        │
    │   FileServer       serves a directory tree                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Handlers write into the response they are given; they return nothing.
Because an envelope is itself a handler, the host server only ever
needs to know about this one interface.

=============================================================================
FUNCTION HANDLERS
=============================================================================

Most handlers are a few lines. Instead of a class per handler, decorate
a function:

    @handler_func
    def hello(response, request):
        response.write(b"Hello!")

    hello.serve(response, request)   # or simply hello(response, request)

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

from ..http.request import HTTPRequest
from ..http.response import ResponseWriter


ServeFunc = Callable[[ResponseWriter, HTTPRequest], None]


class Handler(ABC):
    """
    Abstract base class for request handlers.

    Subclasses implement serve(). Instances are also callable with the
    same arguments, so a Handler can go anywhere a plain function can.
    """

    @abstractmethod
    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None:
        """
        Answer one request.

        Args:
            response: Sink to write status, headers and body into
            request: The incoming request
        """

    def __call__(self, response: ResponseWriter, request: HTTPRequest) -> None:
        self.serve(response, request)

    @property
    def name(self) -> str:
        """Handler name for logging."""
        return self.__class__.__name__


class HandlerFunc(Handler):
    """Wraps a plain function(response, request) as a Handler."""

    def __init__(self, func: ServeFunc, name: Optional[str] = None):
        """
        Args:
            func: Function with signature (response, request) → None
            name: Optional name for logging (defaults to function name)
        """
        self._func = func
        self._name = name or getattr(func, "__name__", repr(func))

    def serve(self, response: ResponseWriter, request: HTTPRequest) -> None:
        self._func(response, request)

    @property
    def name(self) -> str:
        return self._name


def handler_func(func: ServeFunc) -> HandlerFunc:
    """
    Decorator to create a handler from a function.

    Usage:
        @handler_func
        def not_allowed(response, request):
            response.write_header(405)
            response.write(b"Method Not Allowed")
    """
    return HandlerFunc(func)


def as_handler(obj: Union[Handler, ServeFunc]) -> Handler:
    """
    Coerce a Handler or a plain callable into a Handler.

    Raises:
        TypeError: If `obj` is neither.
    """
    if isinstance(obj, Handler):
        return obj
    if callable(obj):
        return HandlerFunc(obj)
    raise TypeError(f"Expected a Handler or a callable, got {type(obj).__name__}")
