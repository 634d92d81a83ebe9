"""Tests for switchyard.routing.router — registration, matching, and setup."""

import re

import pytest

from switchyard.config import RouterConfig
from switchyard.errors import ConfigurationError
from switchyard.routing.router import HTTP_METHODS, Router


async def _handler(ctx, next):
    ctx.body = "ok"


async def _mw(ctx, next):
    return await next()


class TestRegistration:
    def test_verbs(self) -> None:
        router = Router()
        router.get("/a", _handler)
        router.head("/a", _handler)
        router.options("/a", _handler)
        router.put("/a", _handler)
        router.patch("/a", _handler)
        router.post("/a", _handler)
        router.delete("/a", _handler)
        router.connect("/a", _handler)
        router.trace("/a", _handler)
        assert [r.methods for r in router.routes] == [
            ("GET",),
            ("HEAD",),
            ("OPTIONS",),
            ("PUT",),
            ("PATCH",),
            ("POST",),
            ("DELETE",),
            ("CONNECT",),
            ("TRACE",),
        ]

    def test_verbs_return_router(self) -> None:
        router = Router()
        assert router.get("/a", _handler).post("/b", _handler) is router
        assert len(router.routes) == 2

    def test_get_does_not_register_head(self) -> None:
        router = Router()
        router.get("/a", _handler)
        assert router.routes[0].methods == ("GET",)

    def test_all_registers_every_method(self) -> None:
        router = Router()
        router.all("/a", _handler)
        assert router.routes[0].methods == HTTP_METHODS

    def test_name(self) -> None:
        router = Router()
        router.get("/users/:id", _handler, name="user")
        assert router.routes[0].name == "user"

    def test_decorator_form(self) -> None:
        router = Router()

        @router.get("/users", name="users")
        async def list_users(ctx, next):
            ctx.body = []

        assert router.routes[0].stack == [list_users]
        assert router.routes[0].name == "users"

    def test_list_of_paths(self) -> None:
        router = Router()
        router.get(["/a", "/b"], _handler, name="ab")
        assert [r.path for r in router.routes] == ["/a", "/b"]
        assert all(r.name == "ab" for r in router.routes)

    def test_regex_path(self) -> None:
        router = Router()
        router.get(re.compile(r"^/files/(.+)$"), _handler)
        assert router.match("/files/a.txt", "GET").route_found

    def test_missing_path(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="provide a path when adding a GET handler"):
            router.get(_handler)

    def test_missing_path_all(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="adding a all handler"):
            router.all(None, _handler)

    def test_non_callable_handler(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError):
            router.get("/a", 42)

    def test_register_returns_route(self) -> None:
        router = Router()
        route = router.register("/a", ["GET"], [_handler])
        assert router.routes == (route,)

    def test_register_list_returns_routes(self) -> None:
        router = Router()
        routes = router.register(["/a", "/b"], ["GET"], [_handler])
        assert isinstance(routes, list)
        assert len(routes) == 2

    def test_repr(self) -> None:
        router = Router(RouterConfig(prefix="/api"))
        router.get("/a", _handler)
        assert repr(router) == "<Router prefix='/api' routes=1>"


class TestMatch:
    def test_path_and_method(self) -> None:
        router = Router()
        router.get("/users", _handler)
        router.post("/users", _handler)

        match = router.match("/users", "POST")
        assert len(match.path_matches) == 2
        assert [r.methods for r in match.path_and_method_matches] == [("POST",)]
        assert match.route_found

    def test_path_only(self) -> None:
        router = Router()
        router.get("/users", _handler)
        match = router.match("/users", "DELETE")
        assert len(match.path_matches) == 1
        assert match.path_and_method_matches == ()
        assert not match.route_found

    def test_middleware_alone_is_not_a_route(self) -> None:
        router = Router()
        router.use(_mw)
        match = router.match("/anything", "GET")
        assert len(match.path_and_method_matches) == 1
        assert not match.route_found

    def test_no_match(self) -> None:
        router = Router()
        router.get("/users", _handler)
        match = router.match("/posts", "GET")
        assert match.path_matches == ()
        assert not match.route_found

    def test_registration_order(self) -> None:
        router = Router()
        router.get("/users/:id", _handler, name="param")
        router.get("/users/me", _handler, name="static")
        match = router.match("/users/me", "GET")
        assert [r.name for r in match.path_and_method_matches] == ["param", "static"]
        assert match.most_specific is not None
        assert match.most_specific.name == "static"

    def test_case_insensitive(self) -> None:
        router = Router()
        router.get("/Users", _handler)
        assert router.match("/users", "GET").route_found

    def test_sensitive(self) -> None:
        router = Router(RouterConfig(sensitive=True))
        router.get("/Users", _handler)
        assert not router.match("/users", "GET").route_found

    def test_strict(self) -> None:
        router = Router(RouterConfig(strict=True))
        router.get("/users", _handler)
        assert router.match("/users", "GET").route_found
        assert not router.match("/users/", "GET").route_found


class TestMatchHost:
    def test_no_host_configured(self) -> None:
        assert Router().match_host("anything.example.com")
        assert Router().match_host(None)

    def test_exact(self) -> None:
        router = Router(RouterConfig(host="api.example.com"))
        assert router.match_host("api.example.com")
        assert not router.match_host("www.example.com")

    def test_pattern(self) -> None:
        router = Router(RouterConfig(host=re.compile(r"^\w+\.example\.com$")))
        assert router.match_host("api.example.com")
        assert not router.match_host("example.org")

    def test_missing_request_host(self) -> None:
        router = Router(RouterConfig(host="api.example.com"))
        assert not router.match_host("")
        assert not router.match_host(None)


class TestUse:
    def test_use_without_path_matches_everything(self) -> None:
        router = Router()
        router.use(_mw)
        route = router.routes[0]
        assert route.methods == ()
        assert route.match("/")
        assert route.match("/deep/path")

    def test_use_with_path_is_prefix_match(self) -> None:
        router = Router()
        router.use("/admin", _mw)
        route = router.routes[0]
        assert route.match("/admin")
        assert route.match("/admin/users")
        assert not route.match("/administrator")

    def test_use_multiple_middleware(self) -> None:
        router = Router()
        router.use(_mw, _mw)
        assert len(router.routes) == 2

    def test_use_list_of_paths(self) -> None:
        router = Router()
        router.use(["/a", "/b"], _mw)
        assert [r.path for r in router.routes] == ["/a", "/b"]

    def test_use_requires_middleware(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="requires at least one"):
            router.use("/admin")

    def test_use_non_callable(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError):
            router.use("/admin", "nope")

    def test_use_returns_router(self) -> None:
        router = Router()
        assert router.use(_mw) is router


class TestPrefix:
    def test_config_prefix(self) -> None:
        router = Router(RouterConfig(prefix="/api"))
        router.get("/users", _handler)
        assert router.routes[0].path == "/api/users"

    def test_trailing_slash_removed(self) -> None:
        router = Router(RouterConfig(prefix="/api/"))
        router.get("/users", _handler)
        assert router.routes[0].path == "/api/users"

    def test_root_route_under_prefix(self) -> None:
        router = Router(RouterConfig(prefix="/api"))
        router.get("/", _handler)
        assert router.match("/api", "GET").route_found

    def test_prefix_rewrites_existing_routes(self) -> None:
        router = Router()
        router.get("/users", _handler)
        router.prefix("/v1")
        router.get("/posts", _handler)
        assert [r.path for r in router.routes] == ["/v1/users", "/v1/posts"]

    def test_prefix_replaces_previous(self) -> None:
        router = Router(RouterConfig(prefix="/v1"))
        router.get("/users", _handler)
        router.prefix("/v2")
        assert router.routes[0].path == "/v2/users"
        assert not router.match("/v1/users", "GET").route_found
        assert router.match("/v2/users", "GET").route_found

    def test_prefix_returns_router(self) -> None:
        router = Router()
        assert router.prefix("/x") is router


class TestParamRegistration:
    def test_param_applies_to_earlier_and_later_routes(self) -> None:
        async def load_user(value, ctx, next):
            return await next()

        router = Router()
        router.get("/users/:user", _handler)
        router.param("user", load_user)
        router.get("/users/:user/posts", _handler)
        router.get("/about", _handler)

        assert [len(r.stack) for r in router.routes] == [2, 2, 1]
        assert router.params == {"user": load_user}


class TestMeta:
    def test_meta_applies_to_later_routes(self) -> None:
        router = Router()
        router.get("/public", _handler)
        router.meta({"auth": True})
        router.get("/private", _handler)
        assert router.routes[0].metadata == {}
        assert router.routes[1].metadata == {"auth": True}

    def test_config_accessors(self) -> None:
        router = Router(RouterConfig(methods=("GET",), exclusive=True))
        assert router.methods == ("GET",)
        assert router.exclusive
