"""Route, RouteOptions, and Match.

A ``Route`` is one entry in a router's table: a compiled path pattern,
the methods it answers, an optional name, and its handler chain. Routes
are created at registration time and only ever change by having a prefix
applied or a param handler inserted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlencode

from switchyard.context import Context
from switchyard.errors import ConfigurationError, URLBuildError
from switchyard.middleware.protocol import Middleware, Next, ParamHandler
from switchyard.routing.pattern import PathPattern, build_url, compile_pattern, join_prefix


@dataclass(frozen=True, slots=True)
class RouteOptions:
    """Per-route matching options."""

    end: bool = True
    sensitive: bool = False
    strict: bool = False
    # Don't expose this route's capture groups as params (bare use() middleware)
    ignore_captures: bool = False


class _ParamMiddleware:
    """Runs a ``ParamHandler`` with the current value of one path parameter."""

    __slots__ = ("handler", "param")

    def __init__(self, param: str, handler: ParamHandler) -> None:
        self.param = param
        self.handler = handler

    def __call__(self, ctx: Context, next: Next) -> Any:
        return self.handler(ctx.params.get(self.param), ctx, next)

    def __repr__(self) -> str:
        return f"<param {self.param!r} {self.handler!r}>"


class Route:
    """A single registered path pattern plus its methods, name, and handlers.

    ``methods`` is empty for method-agnostic middleware registered through
    ``Router.use()``; such routes match every method.
    """

    __slots__ = (
        "_pattern",
        "_router_prefix",
        "_template",
        "metadata",
        "methods",
        "name",
        "options",
        "stack",
    )

    def __init__(
        self,
        path: str | re.Pattern[str],
        methods: Iterable[str],
        handlers: Iterable[Middleware],
        *,
        name: str | None = None,
        options: RouteOptions | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.methods: tuple[str, ...] = tuple(dict.fromkeys(m.upper() for m in methods))
        self.options = options or RouteOptions()
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.stack: list[Middleware] = list(handlers)
        for handler in self.stack:
            if not callable(handler):
                label = " ".join(self.methods) or "use"
                msg = (
                    f"{label} {name or path!r}: handlers must be callable, "
                    f"got {type(handler).__name__}"
                )
                raise ConfigurationError(msg)

        self._template = path
        self._router_prefix = ""
        self._pattern = self._compile()

    def __repr__(self) -> str:
        methods = ",".join(self.methods) or "*"
        return f"<Route {methods} {self.path!r}>"

    # -- Path --

    @property
    def path(self) -> str:
        """The effective path template, with every prefix applied."""
        source = self._source()
        return source.pattern if isinstance(source, re.Pattern) else source

    @property
    def pattern(self) -> PathPattern:
        return self._pattern

    @property
    def param_names(self) -> tuple[str, ...]:
        return self._pattern.param_names

    def _source(self) -> str | re.Pattern[str]:
        return join_prefix(self._router_prefix, self._template, strict=self.options.strict)

    def _compile(self) -> PathPattern:
        return compile_pattern(
            self._source(),
            end=self.options.end,
            sensitive=self.options.sensitive,
            strict=self.options.strict,
        )

    def set_prefix(self, prefix: str) -> Route:
        """Permanently prepend *prefix* to this route's own path.

        Used when mounting; nested prefixes are applied innermost first.
        """
        self._template = join_prefix(prefix, self._template, strict=self.options.strict)
        self._pattern = self._compile()
        return self

    def set_router_prefix(self, prefix: str) -> Route:
        """Set the prefix contributed by the router that owns this route.

        Replaces any previous router prefix rather than stacking on it.
        """
        self._router_prefix = prefix
        self._pattern = self._compile()
        return self

    def clone(self) -> Route:
        """Return an independent copy for mounting into another router.

        The current effective path becomes the copy's own path. The handler
        list is copied; the handlers themselves are shared.
        """
        copy = Route.__new__(Route)
        copy.name = self.name
        copy.methods = self.methods
        copy.options = self.options
        copy.metadata = dict(self.metadata)
        copy.stack = list(self.stack)
        copy._template = self._source()
        copy._router_prefix = ""
        copy._pattern = self._pattern
        return copy

    # -- Matching --

    def match(self, path: str) -> bool:
        return self._pattern.test(path)

    def answers(self, method: str) -> bool:
        """Whether this route runs for *method* (empty method set = any)."""
        return not self.methods or method in self.methods

    def captures(self, path: str, previous: Iterable[str | None] = ()) -> list[str | None]:
        """Capture groups of *path*, or the inherited ones if ignored."""
        if self.options.ignore_captures:
            return list(previous)
        return self._pattern.captures(path)

    def params(
        self,
        path: str,
        captures: Iterable[str | None],
        existing: Mapping[str, str] | None = None,
    ) -> dict[str, str]:
        """Map *captures* onto this route's parameter names.

        Inherited *existing* params are kept unless a capture overrides them.
        Empty captures are skipped; values are percent-decoded.
        """
        params = dict(existing or {})
        if self.options.ignore_captures:
            return params
        for key, value in zip(self._pattern.keys, captures, strict=False):
            if value:
                params[key.name] = unquote(value)
        return params

    # -- Params --

    def param(self, name: str, handler: ParamHandler) -> Route:
        """Run *handler* before this route's handlers if the path has *name*.

        Param handlers run in the order they were added, ahead of the
        route's own handlers.
        """
        if name not in self.param_names:
            return self
        index = next(
            (i for i, fn in enumerate(self.stack) if not isinstance(fn, _ParamMiddleware)),
            len(self.stack),
        )
        self.stack.insert(index, _ParamMiddleware(name, handler))
        return self

    # -- URL generation --

    def url(self, *args: Any, query: Mapping[str, Any] | str | None = None, **kwargs: Any) -> str:
        """Build a URL for this route.

        Values can be positional (filling parameters in order), a single
        mapping, or keyword arguments::

            route.url(42)
            route.url({"id": 42})
            route.url(id=42, query={"page": 2})   # /users/42?page=2

        Raises ``URLBuildError`` (or its ``MissingParameterError`` subclass).
        """
        if len(args) == 1 and isinstance(args[0], Mapping):
            values: dict[str, Any] = dict(args[0])
        else:
            names = self.param_names
            if len(args) > len(names):
                msg = f"Too many values for path {self.path!r}: expected at most {len(names)}"
                raise URLBuildError(msg)
            values = dict(zip(names, args, strict=False))
        values.update(kwargs)

        url = build_url(self._source(), values)
        if query:
            qs = query if isinstance(query, str) else urlencode(query, doseq=True)
            url = f"{url}?{qs.removeprefix('?')}"
        return url


@dataclass(frozen=True, slots=True)
class Match:
    """Result of matching one path and method against a route table."""

    # Routes whose path matched, whatever their methods
    path_matches: tuple[Route, ...] = ()
    # Subset that also answers the request method
    path_and_method_matches: tuple[Route, ...] = ()
    # True if a route with explicit methods answered (not only middleware)
    route_found: bool = False

    @property
    def most_specific(self) -> Route | None:
        """The last-registered route answering the method, if any."""
        if not self.path_and_method_matches:
            return None
        return self.path_and_method_matches[-1]
