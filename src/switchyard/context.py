"""Request-scoped context.

``Context`` carries both halves of an exchange: the request fields the
router reads (method, path, host) and the response fields middleware
writes (status, body, headers). Routing state lives here too, never on
the router, so one router can dispatch many requests concurrently.

``context_var`` holds the current ``Context`` while the app is handling
a request. Accessing it outside one raises ``LookupError``.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from switchyard.errors import HTTPError
from switchyard.http.headers import Headers, MutableHeaders

if TYPE_CHECKING:
    from switchyard._internal.asgi import Scope
    from switchyard.routing.route import Route
    from switchyard.routing.router import Router

# RFC 3986 pchar delimiters plus "/", left unescaped when re-quoting a path
_PATH_SAFE = "/:@!$&'()*+,;="


@dataclass(slots=True)
class Context:
    """A mutable request/response context.

    Only ``method`` and ``path`` are required, which keeps contexts cheap
    to build by hand in tests::

        ctx = Context("GET", "/users/42")
        await router.middleware()(ctx, next)
        assert ctx.params == {"id": "42"}
    """

    method: str
    path: str
    host: str = ""
    headers: Headers = field(default_factory=Headers)
    query_string: bytes = b""

    # -- Response --
    status: int | None = None
    body: Any = None
    response_headers: MutableHeaders = field(default_factory=MutableHeaders)

    # -- Routing state --
    params: dict[str, str] = field(default_factory=dict)
    captures: list[str | None] = field(default_factory=list)
    # Every route matched by path across all routers this request reached
    matched: list[Route] | None = None
    router: Router | None = None
    router_path: str | None = None
    router_name: str | None = None
    matched_route: str | None = None
    matched_route_name: str | None = None
    # Set by outer middleware to make routers match a rewritten path
    new_router_path: str | None = None

    # Free-form per-request storage for middleware and handlers
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def effective_status(self) -> int:
        """The status the response would go out with right now.

        An unset status is 200 once a body exists, 404 before that.
        """
        if self.status is not None:
            return self.status
        return 200 if self.body is not None else 404

    def set(self, name: str, value: str) -> None:
        """Set a response header, replacing any previous value."""
        self.response_headers[name] = value

    def get(self, name: str) -> str | None:
        """Return a request header, or ``None``."""
        return self.headers.get(name)

    def redirect(self, url: str) -> None:
        """Point the response at *url*.

        Sets ``Location`` and a plain-text body. The status becomes 302
        unless a redirect status was already chosen.
        """
        self.set("Location", url)
        if self.status is None or not 300 <= self.status < 400:
            self.status = 302
        self.body = f"Redirecting to {url}."

    def throw(self, status: int, detail: str = "") -> None:
        """Abort the request with an ``HTTPError``."""
        raise HTTPError(status=status, detail=detail)

    @classmethod
    def from_asgi(cls, scope: Scope) -> Context:
        """Create a Context from an ASGI HTTP scope.

        ``path`` keeps its percent-encoding so an encoded ``/`` stays inside
        its segment. It comes from ``raw_path`` when the server sends one,
        otherwise the decoded ``path`` is re-quoted.
        """
        headers = Headers(tuple(scope.get("headers", ())))
        raw_path = scope.get("raw_path")
        if raw_path:
            path = raw_path.decode("latin-1").partition("?")[0]
        else:
            path = quote(scope["path"], safe=_PATH_SAFE)
        return cls(
            method=scope["method"],
            path=path,
            host=headers.get("host", ""),
            headers=headers,
            query_string=scope.get("query_string", b""),
        )


context_var: ContextVar[Context] = ContextVar("switchyard_context")
"""The current context. Set by the app before dispatch."""


def get_context() -> Context:
    """Return the current context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()
