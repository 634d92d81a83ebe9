"""Tests for named routes — Router.route(), Router.url(), Router.redirect()."""

import pytest

from switchyard.config import RouterConfig
from switchyard.context import Context
from switchyard.errors import MissingParameterError, UnknownRouteError, URLBuildError
from switchyard.routing.router import HTTP_METHODS, Router


def _ok(ctx, next):
    ctx.body = "ok"


async def _noop():
    return None


async def _pass(ctx, next):
    await next()


class TestRouteLookup:
    def test_finds_named_route(self) -> None:
        router = Router()
        router.get("/users/:id", _ok, name="user")
        route = router.route("user")
        assert route is not None
        assert route.path == "/users/:id"

    def test_first_registration_wins(self) -> None:
        router = Router()
        router.get("/first", _ok, name="dup")
        router.get("/second", _ok, name="dup")
        route = router.route("dup")
        assert route is not None
        assert route.path == "/first"

    def test_unknown_name(self) -> None:
        assert Router().route("nope") is None


class TestURL:
    def test_builds_from_name(self) -> None:
        router = Router()
        router.get("/users/:id", _ok, name="user")
        assert router.url("user", 3) == "/users/3"
        assert router.url("user", {"id": 3}) == "/users/3"
        assert router.url("user", id=3) == "/users/3"

    def test_with_query(self) -> None:
        router = Router()
        router.get("/users/:id", _ok, name="user")
        assert router.url("user", 3, query={"tab": "posts"}) == "/users/3?tab=posts"

    def test_includes_router_prefix(self) -> None:
        router = Router(RouterConfig(prefix="/api"))
        router.get("/users/:id", _ok, name="user")
        assert router.url("user", 3) == "/api/users/3"

    def test_unknown_name_is_returned(self) -> None:
        result = Router().url("nope")
        assert isinstance(result, UnknownRouteError)
        assert str(result) == "No route found for name: nope"

    def test_missing_param_is_returned(self) -> None:
        router = Router()
        router.get("/users/:id", _ok, name="user")
        result = router.url("user")
        assert isinstance(result, MissingParameterError)
        assert result.param == "id"

    def test_bad_value_is_returned(self) -> None:
        router = Router()
        router.get(r"/users/:id(\d+)", _ok, name="user")
        assert isinstance(router.url("user", "alice"), URLBuildError)


class TestRedirect:
    def test_registers_all_methods(self) -> None:
        router = Router()
        router.redirect("/old", "/new")
        route = router.routes[0]
        assert route.path == "/old"
        assert route.methods == HTTP_METHODS

    @pytest.mark.anyio
    async def test_redirects_with_301(self) -> None:
        router = Router()
        router.redirect("/old", "/new")
        ctx = Context("GET", "/old")
        await router.middleware()(ctx, _noop)
        assert ctx.status == 301
        assert ctx.response_headers["Location"] == "/new"

    @pytest.mark.anyio
    async def test_custom_code(self) -> None:
        router = Router()
        router.redirect("/old", "/new", 307)
        ctx = Context("POST", "/old")
        await router.middleware()(ctx, _noop)
        assert ctx.status == 307

    @pytest.mark.anyio
    async def test_names_are_resolved(self) -> None:
        router = Router()
        router.get("/login", _pass, name="login")
        router.get("/sign-in", _ok, name="signin")
        router.redirect("login", "signin")

        assert router.routes[-1].path == "/login"
        ctx = Context("GET", "/login")
        await router.middleware()(ctx, _noop)
        assert ctx.response_headers["Location"] == "/sign-in"

    @pytest.mark.anyio
    async def test_absolute_destination(self) -> None:
        router = Router()
        router.redirect("/docs", "https://docs.example.com/")
        ctx = Context("GET", "/docs")
        await router.middleware()(ctx, _noop)
        assert ctx.response_headers["Location"] == "https://docs.example.com/"

    def test_unknown_name_raises(self) -> None:
        router = Router()
        with pytest.raises(UnknownRouteError):
            router.redirect("/old", "missing")

    def test_returns_router(self) -> None:
        router = Router()
        assert router.redirect("/a", "/b") is router
