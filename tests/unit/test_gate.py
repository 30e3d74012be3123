"""
Unit tests for the handler interface, per-method helpers and the
method/origin gate.
"""

import pytest

from httpgate.handlers import Endpoint, Envelope, Handler, MethodGate, bad_request, handler_func, methods
from httpgate.handlers.base import HandlerFunc, as_handler
from httpgate.http import HTTPResponse


@handler_func
def ok_handler(response, request):
    response.write(b"OK")


@handler_func
def reject(response, request):
    response.write_header(405)
    response.write(b"Method Not Allowed")


class Recorder(Handler):
    """Handler that records the requests it served."""

    def __init__(self):
        self.calls = []

    def serve(self, response, request):
        self.calls.append(request.method)


class TestHandlerInterface:
    """Tests for Handler, HandlerFunc and as_handler()."""

    def test_handler_func_decorator(self, make_request):
        """A decorated function is a callable Handler."""
        response = HTTPResponse()

        assert isinstance(ok_handler, HandlerFunc)
        ok_handler(response, make_request())

        assert bytes(response.body) == b"OK"
        assert ok_handler.name == "ok_handler"

    def test_as_handler_wraps_callables(self, make_request):
        """Plain functions and lambdas are adapted."""
        handler = as_handler(lambda response, request: response.write(b"x"))
        response = HTTPResponse()
        handler.serve(response, make_request())

        assert bytes(response.body) == b"x"

    def test_as_handler_passes_handlers_through(self):
        """Handler instances come back unchanged."""
        recorder = Recorder()
        assert as_handler(recorder) is recorder

    def test_as_handler_rejects_non_callables(self):
        """Test TypeError for values that cannot serve."""
        with pytest.raises(TypeError):
            as_handler("not a handler")

    def test_class_name_is_default_name(self):
        """Test the logging name of class-based handlers."""
        assert Recorder().name == "Recorder"


class TestMethodHelpers:
    """Tests for methods.get(), methods.post(), ..."""

    @pytest.mark.parametrize("helper, method", [
        (methods.get, "GET"),
        (methods.head, "HEAD"),
        (methods.post, "POST"),
        (methods.put, "PUT"),
        (methods.delete, "DELETE"),
        (methods.connect, "CONNECT"),
        (methods.options, "OPTIONS"),
        (methods.trace, "TRACE"),
        (methods.patch, "PATCH"),
    ])
    def test_runs_only_for_its_method(self, make_request, helper, method):
        """Each helper runs the handler for exactly one method."""
        recorder = Recorder()
        response = HTTPResponse()

        assert helper(response, make_request(method), recorder) is True
        other = "POST" if method != "POST" else "GET"
        assert helper(response, make_request(other), recorder) is False

        assert recorder.calls == [method]

    def test_case_sensitive(self, make_request):
        """Lowercase method tokens do not match."""
        recorder = Recorder()

        assert methods.get(HTTPResponse(), make_request("get"), recorder) is False
        assert recorder.calls == []

    def test_if_method_accepts_plain_functions(self, make_request):
        """Test the generic helper with a function."""
        response = HTTPResponse()
        ran = methods.if_method("PURGE", response, make_request("PURGE"),
                                lambda resp, req: resp.write(b"purged"))

        assert ran
        assert bytes(response.body) == b"purged"

    def test_helpers_compose_in_one_handler(self, make_request):
        """Several helpers in one handler: only the matching one runs."""
        seen = []

        @handler_func
        def items(response, request):
            methods.get(response, request, lambda r, q: seen.append("list"))
            methods.post(response, request, lambda r, q: seen.append("create"))

        items(HTTPResponse(), make_request("POST"))

        assert seen == ["create"]


class TestMethodGate:
    """Tests for MethodGate."""

    def test_allowed_method(self, make_request):
        """Listed method with no origin list runs the allowed handler."""
        gate = MethodGate(ok_handler, allowed_methods=["GET", "POST"])
        response = HTTPResponse()

        gate.serve(response, make_request("POST"))

        assert bytes(response.body) == b"OK"
        assert gate.select(make_request("GET")) is ok_handler

    def test_unlisted_method_uses_not_allowed(self, make_request):
        """Test the custom not-allowed handler."""
        gate = MethodGate(ok_handler, reject, allowed_methods=["GET"])
        response = HTTPResponse()

        gate.serve(response, make_request("DELETE"))

        assert response.status == 405
        assert bytes(response.body) == b"Method Not Allowed"

    def test_default_not_allowed_writes_bad_request(self, make_request):
        """Without a not-allowed handler the body is "Bad Request"."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"])
        response = HTTPResponse()

        gate.serve(response, make_request("PUT"))

        assert gate.not_allowed is bad_request
        assert bytes(response.body) == b"Bad Request"
        # The default handler does not choose a status; the sink's
        # implicit 200 applies.
        assert response.status == 200

    def test_method_comparison_is_exact(self, make_request):
        """A gate listing "GET" rejects "get"."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"])
        assert gate.select(make_request("get")) is bad_request

    @pytest.mark.parametrize("allowed_methods", [None, [], ()])
    def test_empty_method_list_rejects_everything(self, make_request, allowed_methods):
        """No methods configured means every request is rejected."""
        gate = MethodGate(ok_handler, allowed_methods=allowed_methods)

        for method in ("GET", "HEAD", "POST", "OPTIONS"):
            assert gate.select(make_request(method)) is bad_request

    def test_options_not_special(self, make_request):
        """OPTIONS is rejected unless listed."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"])
        assert gate.select(make_request("OPTIONS")) is bad_request

        gate = MethodGate(ok_handler, allowed_methods=["GET", "OPTIONS"])
        assert gate.select(make_request("OPTIONS")) is ok_handler

    def test_listed_origin(self, make_request):
        """Allowed method plus listed origin passes."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"], allowed_origins=["https://a.example"])
        request = make_request("GET", headers={"Origin": "https://a.example"})

        assert gate.select(request) is ok_handler

    def test_unlisted_origin(self, make_request):
        """Allowed method from an unlisted origin is rejected."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"], allowed_origins=["https://a.example"])
        request = make_request("GET", headers={"Origin": "https://b.example"})

        assert gate.select(request) is bad_request

    def test_missing_origin_rejected_when_origins_configured(self, make_request):
        """No Origin header is not on the list."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"], allowed_origins=["https://a.example"])
        assert gate.select(make_request("GET")) is bad_request

    def test_origin_comparison_is_exact(self, make_request):
        """A trailing slash makes a different origin."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"], allowed_origins=["https://a.example"])
        request = make_request("GET", headers={"Origin": "https://a.example/"})

        assert gate.select(request) is bad_request

    def test_listed_origin_wrong_method(self, make_request):
        """A listed origin does not rescue an unlisted method."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"], allowed_origins=["https://a.example"])
        request = make_request("POST", headers={"Origin": "https://a.example"})

        assert gate.select(request) is bad_request

    def test_origin_ignored_without_origin_list(self, make_request):
        """Any Origin passes when no origins are configured."""
        gate = MethodGate(ok_handler, allowed_methods=["GET"])
        request = make_request("GET", headers={"Origin": "https://anything.example"})

        assert gate.origin_allowed(request)
        assert gate.select(request) is ok_handler

    def test_configuration_is_copied(self, make_request):
        """Mutating the list after construction has no effect."""
        allowed = ["GET"]
        gate = MethodGate(ok_handler, allowed_methods=allowed)
        allowed.append("POST")

        assert gate.select(make_request("POST")) is bad_request

    def test_exactly_one_handler_runs(self, make_request):
        """Each request reaches one of the two handlers, never both."""
        allowed, rejected = Recorder(), Recorder()
        gate = MethodGate(allowed, rejected, allowed_methods=["GET"])

        for method in ("GET", "POST", "GET", "HEAD"):
            gate.serve(HTTPResponse(), make_request(method))

        assert allowed.calls == ["GET", "GET"]
        assert rejected.calls == ["POST", "HEAD"]


class TestEndpoint:
    """Tests for the declarative Endpoint."""

    def test_build_returns_envelope_around_gate(self, make_request):
        """build() wraps a gate in an envelope with default headers."""
        endpoint = Endpoint(handler=ok_handler, allowed_methods=("GET",))
        app = endpoint.build(default_headers=[("X-Frame-Options", "DENY")])
        response = HTTPResponse()

        app.serve(response, make_request("GET"))

        assert isinstance(app, Envelope)
        assert isinstance(app.handler, MethodGate)
        assert response.headers["X-Frame-Options"] == "DENY"
        assert bytes(response.body) == b"OK"

    def test_rejected_request_still_gets_default_headers(self, make_request):
        """Default headers apply to the not-allowed path too."""
        app = Endpoint(handler=ok_handler, allowed_methods=("GET",)).build(
            default_headers=[("X-Content-Type-Options", "nosniff")],
        )
        response = HTTPResponse()

        app.serve(response, make_request("POST"))

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert bytes(response.body) == b"Bad Request"

    def test_gate_uses_endpoint_configuration(self, make_request):
        """Test gate() with origins and a custom not-allowed handler."""
        endpoint = Endpoint(
            handler=ok_handler,
            not_allowed=reject,
            allowed_methods=("GET",),
            allowed_origins=("https://a.example",),
        )
        gate = endpoint.gate()

        assert gate.allowed_origins == ("https://a.example",)
        assert gate.select(make_request("GET")) is reject
