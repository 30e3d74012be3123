"""
Per-method helpers.

Run a handler only when the request uses one particular method, from
inside another handler:

    @handler_func
    def items(response, request):
        methods.get(response, request, list_items)
        methods.post(response, request, create_item)

Method tokens are compared exactly; "get" does not match "GET". Each
helper returns True when the handler ran.
"""

from typing import Union

from ..http.request import HTTPRequest
from ..http.response import ResponseWriter
from .base import Handler, ServeFunc, as_handler


def if_method(
    method: str,
    response: ResponseWriter,
    request: HTTPRequest,
    handler: Union[Handler, ServeFunc],
) -> bool:
    """Call `handler` only if `request.method` equals `method`."""
    if request.method != method:
        return False
    as_handler(handler).serve(response, request)
    return True


def get(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("GET", response, request, handler)


def head(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("HEAD", response, request, handler)


def post(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("POST", response, request, handler)


def put(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("PUT", response, request, handler)


def delete(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("DELETE", response, request, handler)


def connect(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("CONNECT", response, request, handler)


def options(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("OPTIONS", response, request, handler)


def trace(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("TRACE", response, request, handler)


def patch(response: ResponseWriter, request: HTTPRequest, handler: Union[Handler, ServeFunc]) -> bool:
    return if_method("PATCH", response, request, handler)
