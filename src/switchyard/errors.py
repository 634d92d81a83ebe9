"""Switchyard exception hierarchy.

Shared across Router, App, and middleware so every module raises and
catches the same types.
"""

from collections.abc import Iterable
from dataclasses import dataclass


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when a route or router is registered with invalid arguments.

    Always raised synchronously at setup time, never while dispatching.
    """


class URLBuildError(SwitchyardError):
    """Raised when a URL cannot be generated for a route."""


class UnknownRouteError(URLBuildError):
    """No route is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No route found for name: {name}")


class MissingParameterError(URLBuildError):
    """A required path parameter was not supplied."""

    def __init__(self, param: str, path: str) -> None:
        self.param = param
        self.path = path
        super().__init__(f"Missing parameter {param!r} for path {path!r}")


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers or by the allowed-methods policy in throwing mode.
    The ASGI app catches these and turns them into responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — nothing answered the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


def _allow_headers(allowed: Iterable[str]) -> tuple[tuple[str, str], ...]:
    allow_value = ", ".join(allowed)
    return (("Allow", allow_value),) if allow_value else ()


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — a route matched the path but not the method.

    Carries an ``Allow`` header listing the methods that would have matched,
    in the order the routes declared them.
    """

    def __init__(self, allowed: Iterable[str] = (), detail: str = "Method Not Allowed") -> None:
        super().__init__(status=405, detail=detail, headers=_allow_headers(allowed))


class MethodNotImplemented(HTTPError):  # noqa: N818
    """501 — the request method is not one the router implements."""

    def __init__(self, allowed: Iterable[str] = (), detail: str = "Not Implemented") -> None:
        super().__init__(status=501, detail=detail, headers=_allow_headers(allowed))
