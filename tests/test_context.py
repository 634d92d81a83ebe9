"""Tests for switchyard.context — Context fields, helpers, and the context var."""

import pytest

from switchyard.context import Context, context_var, get_context
from switchyard.errors import HTTPError
from switchyard.http.headers import Headers


class TestEffectiveStatus:
    def test_unset_without_body(self) -> None:
        assert Context("GET", "/").effective_status == 404

    def test_unset_with_body(self) -> None:
        assert Context("GET", "/", body="hi").effective_status == 200

    def test_explicit(self) -> None:
        assert Context("GET", "/", status=201).effective_status == 201


class TestHelpers:
    def test_set_replaces_header(self) -> None:
        ctx = Context("GET", "/")
        ctx.set("X-Test", "1")
        ctx.set("x-test", "2")
        assert ctx.response_headers["X-Test"] == "2"
        assert len(ctx.response_headers) == 1

    def test_get_request_header(self) -> None:
        ctx = Context("GET", "/", headers=Headers.from_mapping({"Accept": "text/html"}))
        assert ctx.get("accept") == "text/html"
        assert ctx.get("missing") is None

    def test_redirect_defaults_to_302(self) -> None:
        ctx = Context("GET", "/")
        ctx.redirect("/elsewhere")
        assert ctx.status == 302
        assert ctx.response_headers["Location"] == "/elsewhere"
        assert ctx.body == "Redirecting to /elsewhere."

    def test_redirect_keeps_redirect_status(self) -> None:
        ctx = Context("GET", "/", status=303)
        ctx.redirect("/elsewhere")
        assert ctx.status == 303

    def test_throw(self) -> None:
        ctx = Context("GET", "/")
        with pytest.raises(HTTPError) as exc_info:
            ctx.throw(403, "Forbidden")
        assert exc_info.value.status == 403
        assert exc_info.value.detail == "Forbidden"

    def test_defaults_are_not_shared(self) -> None:
        a = Context("GET", "/")
        b = Context("GET", "/")
        a.params["x"] = "1"
        a.state["y"] = 2
        assert b.params == {}
        assert b.state == {}
        assert a.matched is None


class TestFromASGI:
    def test_builds_request_fields(self) -> None:
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/users",
            "query_string": b"page=2",
            "headers": [(b"host", b"api.example.com"), (b"accept", b"*/*")],
        }
        ctx = Context.from_asgi(scope)
        assert ctx.method == "POST"
        assert ctx.path == "/users"
        assert ctx.host == "api.example.com"
        assert ctx.query_string == b"page=2"
        assert ctx.get("Accept") == "*/*"

    def test_missing_host(self) -> None:
        ctx = Context.from_asgi({"type": "http", "method": "GET", "path": "/"})
        assert ctx.host == ""


class TestContextVar:
    def test_get_context(self) -> None:
        ctx = Context("GET", "/")
        token = context_var.set(ctx)
        try:
            assert get_context() is ctx
        finally:
            context_var.reset(token)

    def test_outside_request(self) -> None:
        with pytest.raises(LookupError):
            get_context()


class TestFromASGIPath:
    def test_raw_path_keeps_encoded_slash(self) -> None:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/users/a/b",
            "raw_path": b"/users/a%2Fb",
        }
        assert Context.from_asgi(scope).path == "/users/a%2Fb"

    def test_raw_path_query_is_dropped(self) -> None:
        scope = {"type": "http", "method": "GET", "path": "/x", "raw_path": b"/x?y=1"}
        assert Context.from_asgi(scope).path == "/x"

    def test_decoded_path_is_requoted_without_raw_path(self) -> None:
        scope = {"type": "http", "method": "GET", "path": "/files/100%"}
        assert Context.from_asgi(scope).path == "/files/100%25"

    def test_delimiters_survive_requoting(self) -> None:
        scope = {"type": "http", "method": "GET", "path": "/a:b/@c;d=e"}
        assert Context.from_asgi(scope).path == "/a:b/@c;d=e"
