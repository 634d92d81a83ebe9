"""Router — ordered route table with middleware-style dispatch.

Routes are registered during setup and matched in registration order on
every request. Registration order is both match priority (the last match
is the most specific) and, outside exclusive mode, execution order.

Thread safety:
    Registration (``get``/``use``/``param``/``prefix`` ...) is meant for
    single-threaded setup and takes no locks. Dispatch only reads the
    table and keeps all per-request state on the ``Context``, so any
    number of requests can be dispatched concurrently.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeAlias

from switchyard.config import AllowedMethodsConfig, RouterConfig
from switchyard.context import Context
from switchyard.errors import (
    ConfigurationError,
    MethodNotAllowed,
    MethodNotImplemented,
    UnknownRouteError,
    URLBuildError,
)
from switchyard.middleware.compose import compose
from switchyard.middleware.protocol import Middleware, Next, ParamHandler
from switchyard.routing.pattern import has_params
from switchyard.routing.route import Match, Route, RouteOptions

logger = logging.getLogger("switchyard.router")

# Registered by all() and redirect()
HTTP_METHODS: tuple[str, ...] = (
    "CONNECT",
    "DELETE",
    "GET",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "TRACE",
)

# Path for use() without one: any path, matched as a prefix
_ANY_PATH = "([^/]*)"

PathLike: TypeAlias = str | re.Pattern[str]
Paths: TypeAlias = PathLike | Sequence[PathLike]


def _is_path(path: object) -> bool:
    if isinstance(path, (str, re.Pattern)):
        return True
    return (
        isinstance(path, (list, tuple))
        and len(path) > 0
        and all(isinstance(p, (str, re.Pattern)) for p in path)
    )


def _bridge(route: Route, path: str) -> Middleware:
    """Publish *route*'s params and identity on the context, then continue."""

    def bridge(ctx: Context, next: Next) -> Any:
        ctx.captures = route.captures(path, ctx.captures)
        ctx.params = route.params(path, ctx.captures, ctx.params)
        ctx.router_path = route.path
        ctx.router_name = route.name
        ctx.matched_route = route.path
        if route.name:
            ctx.matched_route_name = route.name
        return next()

    return bridge


class Dispatch:
    """A router's request handler, as returned by ``Router.middleware()``.

    Passing one to another router's ``use()`` mounts the router's routes
    instead of delegating to it.
    """

    __slots__ = ("router",)

    def __init__(self, router: Router) -> None:
        self.router = router

    async def __call__(self, ctx: Context, next: Next) -> Any:
        return await self.router._dispatch(ctx, next)

    def __repr__(self) -> str:
        return f"<Dispatch {self.router!r}>"


class Router:
    """An ordered route table that dispatches like middleware.

    Usage::

        router = Router(RouterConfig(prefix="/api"))

        @router.get("/users/:id", name="user")
        async def show_user(ctx, next):
            ctx.body = {"id": ctx.params["id"]}

        app.add_middleware(router.middleware())
        app.add_middleware(router.allowed_methods())
    """

    __slots__ = ("_params", "_prefix", "_routes", "config", "metadata")

    def __init__(self, config: RouterConfig | None = None) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self._prefix: str = self.config.prefix.removesuffix("/")
        self._routes: list[Route] = []
        self._params: dict[str, ParamHandler] = {}
        self.metadata: dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"<Router prefix={self._prefix!r} routes={len(self._routes)}>"

    @property
    def routes(self) -> tuple[Route, ...]:
        """The route table, in registration order."""
        return tuple(self._routes)

    @property
    def methods(self) -> tuple[str, ...]:
        """Methods this router treats as implemented."""
        return self.config.methods

    @property
    def exclusive(self) -> bool:
        return self.config.exclusive

    @property
    def params(self) -> Mapping[str, ParamHandler]:
        return dict(self._params)

    # -- Registration --

    def register(
        self,
        path: Paths,
        methods: Sequence[str],
        handlers: Sequence[Middleware],
        *,
        name: str | None = None,
        end: bool = True,
        ignore_captures: bool = False,
    ) -> Route | list[Route]:
        """Create a route (one per path if *path* is a list) and append it.

        The router's current prefix and every declared param handler are
        applied to the new route. Returns the created route, or a list of
        routes for a list of paths.
        """
        if isinstance(path, (list, tuple)):
            routes: list[Route] = []
            for p in path:
                created = self.register(
                    p, methods, handlers, name=name, end=end, ignore_captures=ignore_captures
                )
                routes.extend(created if isinstance(created, list) else [created])
            return routes

        if not isinstance(path, (str, re.Pattern)):
            msg = f"Route path must be a string or compiled pattern, got {type(path).__name__}"
            raise ConfigurationError(msg)

        options = RouteOptions(
            end=end,
            sensitive=self.config.sensitive,
            strict=self.config.strict,
            ignore_captures=ignore_captures,
        )
        route = Route(path, methods, handlers, name=name, options=options, metadata=self.metadata)
        if self._prefix:
            route.set_router_prefix(self._prefix)
        for param_name, handler in self._params.items():
            route.param(param_name, handler)

        self._routes.append(route)
        logger.debug("defined route %s %s", ",".join(route.methods) or "*", route.path)
        return route

    def _add(
        self,
        methods: Sequence[str],
        path: Paths,
        handlers: tuple[Middleware, ...],
        name: str | None,
    ) -> Any:
        if not _is_path(path):
            label = "all" if methods is HTTP_METHODS else methods[0]
            msg = f"You have to provide a path when adding a {label} handler"
            raise ConfigurationError(msg)

        if not handlers:

            def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
                self.register(path, methods, [func], name=name)
                return func

            return decorator

        self.register(path, methods, handlers, name=name)
        return self

    # One method per verb. With handlers they return the router for
    # chaining; without, they return a decorator.

    def get(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("GET",), path, handlers, name)

    def head(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("HEAD",), path, handlers, name)

    def options(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("OPTIONS",), path, handlers, name)

    def put(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("PUT",), path, handlers, name)

    def patch(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("PATCH",), path, handlers, name)

    def post(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("POST",), path, handlers, name)

    def delete(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("DELETE",), path, handlers, name)

    def connect(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("CONNECT",), path, handlers, name)

    def trace(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        return self._add(("TRACE",), path, handlers, name)

    def all(self, path: Paths, *handlers: Middleware, name: str | None = None) -> Any:
        """Register *handlers* for every HTTP method."""
        return self._add(HTTP_METHODS, path, handlers, name)

    def use(self, *args: Any) -> Router:
        """Add middleware, or mount other routers.

        Forms::

            router.use(mw)                      # every path
            router.use("/admin", mw1, mw2)      # paths under /admin
            router.use(["/a", "/b"], mw)        # each path in turn
            router.use("/api", other_router)    # mount a copy of other's routes

        A ``Router`` (or its ``Dispatch``) is mounted by copying its routes
        into this table with the mount path and then this router's prefix
        applied. Anything else is registered as method-agnostic middleware
        matching by path prefix.
        """
        middleware = list(args)
        if middleware and isinstance(middleware[0], (list, tuple)) and _is_path(middleware[0]):
            for p in middleware[0]:
                self.use(p, *middleware[1:])
            return self

        has_path = bool(middleware) and isinstance(middleware[0], str)
        path: str | None = middleware.pop(0) if has_path else None
        if not middleware:
            msg = "use() requires at least one middleware or router"
            raise ConfigurationError(msg)

        for mw in middleware:
            if isinstance(mw, Router):
                self._mount(mw, path)
                continue
            if isinstance(mw, Dispatch):
                self._mount(mw.router, path)
                continue
            # Positional captures from the catch-all would leak into params,
            # unless the prefix itself has params worth keeping.
            prefix_has_params = bool(self._prefix) and has_params(self._prefix)
            self.register(
                path or _ANY_PATH,
                (),
                [mw],
                end=False,
                ignore_captures=not has_path and not prefix_has_params,
            )
        return self

    def _mount(self, child: Router, path: str | None) -> None:
        # "/" mounts at the parent's root
        mount_path = (path or "").removesuffix("/")
        clones: list[Route] = []
        for route in list(child._routes):
            clone = route.clone()
            if mount_path:
                clone.set_prefix(mount_path)
            if self._prefix:
                clone.set_router_prefix(self._prefix)
            clones.append(clone)
        self._routes.extend(clones)

        for param_name, handler in self._params.items():
            for clone in clones:
                clone.param(param_name, handler)
            child._params[param_name] = handler

        logger.debug("mounted %d routes from %r at %r", len(clones), child, path or "/")

    def prefix(self, prefix: str) -> Router:
        """Set the router prefix and rewrite every registered route with it.

        Replaces the previous prefix; it never stacks on it.
        """
        self._prefix = prefix.removesuffix("/")
        for route in self._routes:
            route.set_router_prefix(self._prefix)
        return self

    def param(self, name: str, handler: ParamHandler) -> Router:
        """Run *handler* for every route whose path declares *name*.

        Applies to routes registered before and after this call.
        """
        self._params[name] = handler
        for route in self._routes:
            route.param(name, handler)
        return self

    def meta(self, data: Mapping[str, Any]) -> Router:
        """Attach *data* to routes registered from now on."""
        self.metadata = dict(data)
        return self

    # -- Named routes --

    def route(self, name: str) -> Route | None:
        """Return the first route registered under *name*."""
        for route in self._routes:
            if route.name and route.name == name:
                return route
        return None

    def url(self, name: str, *args: Any, **kwargs: Any) -> str | URLBuildError:
        """Build the URL for the route named *name*.

        Takes the same arguments as ``Route.url``. Failures are returned,
        not raised::

            url = router.url("user", 42)
            if isinstance(url, URLBuildError):
                ...
        """
        route = self.route(name)
        if route is None:
            return UnknownRouteError(name)
        try:
            return route.url(*args, **kwargs)
        except URLBuildError as exc:
            return exc

    def _resolve(self, name: str) -> str:
        url = self.url(name)
        if isinstance(url, URLBuildError):
            raise url
        return url

    def redirect(self, source: str, destination: str, code: int = 301) -> Router:
        """Redirect *source* to *destination* for every method.

        Either end may be a route name. The destination may also be an
        absolute URL. Names that can't be resolved raise ``URLBuildError``
        here, at registration.
        """
        if not source.startswith("/"):
            source = self._resolve(source)
        if not destination.startswith("/") and "://" not in destination:
            destination = self._resolve(destination)

        def redirect(ctx: Context, next: Next) -> None:
            ctx.redirect(destination)
            ctx.status = code

        return self.all(source, redirect)

    # -- Matching --

    def match(self, path: str, method: str) -> Match:
        """Match *path* and *method* against every route, in order."""
        path_matches: list[Route] = []
        path_and_method: list[Route] = []
        route_found = False
        for route in self._routes:
            logger.debug("test %s %s", route.path, route.pattern.regex.pattern)
            if not route.match(path):
                continue
            path_matches.append(route)
            if route.answers(method):
                path_and_method.append(route)
                if route.methods:
                    route_found = True
        return Match(tuple(path_matches), tuple(path_and_method), route_found)

    def match_host(self, host: str | None) -> bool:
        """Whether this router handles requests for *host*."""
        expected = self.config.host
        if expected is None:
            return True
        if not host:
            return False
        if isinstance(expected, re.Pattern):
            return expected.search(host) is not None
        return host == expected

    # -- Dispatch --

    def middleware(self) -> Dispatch:
        """Return the middleware that dispatches requests to this router."""
        return Dispatch(self)

    async def _dispatch(self, ctx: Context, next: Next) -> Any:
        logger.debug("%s %s", ctx.method, ctx.path)

        if not self.match_host(ctx.host):
            return await next()

        path = self.config.router_path or ctx.new_router_path or ctx.path
        matched = self.match(path, ctx.method)

        if ctx.matched is None:
            ctx.matched = list(matched.path_matches)
        else:
            ctx.matched.extend(matched.path_matches)
        ctx.router = self

        most_specific = matched.most_specific
        if not matched.route_found or most_specific is None:
            return await next()

        ctx.matched_route = most_specific.path
        if most_specific.name:
            ctx.matched_route_name = most_specific.name

        candidates = (most_specific,) if self.config.exclusive else matched.path_and_method_matches
        chain: list[Middleware] = []
        for route in candidates:
            chain.append(_bridge(route, path))
            chain.extend(route.stack)

        return await compose(chain)(ctx, next)

    def allowed_methods(
        self,
        config: AllowedMethodsConfig | None = None,
        *,
        throw: bool = False,
        not_implemented: Callable[[], BaseException] | None = None,
        method_not_allowed: Callable[[], BaseException] | None = None,
    ) -> Middleware:
        """Return middleware answering OPTIONS and rejecting unmatched methods.

        Runs after everything downstream. If the response is still unset
        or 404 and some route matched the path, it responds with:

        - 501 when the method isn't one of this router's ``methods``;
        - 200 with an ``Allow`` header for OPTIONS;
        - 405 with an ``Allow`` header when no matched route takes the method.

        In throwing mode 501/405 raise instead (see ``AllowedMethodsConfig``).
        """
        options = config or AllowedMethodsConfig(
            throw=throw,
            not_implemented=not_implemented,
            method_not_allowed=method_not_allowed,
        )
        implemented = self.methods

        if options.throw:

            def reject_not_implemented(ctx: Context, allowed: list[str]) -> None:
                if options.not_implemented is not None:
                    raise options.not_implemented()
                raise MethodNotImplemented(allowed)

            def reject_not_allowed(ctx: Context, allowed: list[str]) -> None:
                if options.method_not_allowed is not None:
                    raise options.method_not_allowed()
                raise MethodNotAllowed(allowed)

        else:

            def reject_not_implemented(ctx: Context, allowed: list[str]) -> None:
                ctx.status = 501
                ctx.set("Allow", ", ".join(allowed))

            def reject_not_allowed(ctx: Context, allowed: list[str]) -> None:
                ctx.status = 405
                ctx.set("Allow", ", ".join(allowed))

        async def allowed_methods(ctx: Context, next: Next) -> None:
            await next()

            if not ctx.matched or ctx.effective_status != 404:
                return

            allowed = list(dict.fromkeys(m for route in ctx.matched for m in route.methods))
            if ctx.method not in implemented:
                reject_not_implemented(ctx, allowed)
            elif allowed:
                if ctx.method == "OPTIONS":
                    ctx.status = 200
                    ctx.body = ""
                    ctx.set("Allow", ", ".join(allowed))
                elif ctx.method not in allowed:
                    reject_not_allowed(ctx, allowed)

        return allowed_methods
