"""Router and application configuration.

Frozen dataclasses — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

# Methods a router answers for before the allowed-methods policy steps in
DEFAULT_METHODS: tuple[str, ...] = ("HEAD", "OPTIONS", "GET", "PUT", "PATCH", "POST", "DELETE")


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(prefix="/api", exclusive=True)
        router = Router(config)
    """

    # Methods considered "implemented" by allowed_methods() (501 otherwise)
    methods: tuple[str, ...] = DEFAULT_METHODS

    # Run only the most specific matching route instead of every match
    exclusive: bool = False

    # Literal host or compiled pattern; requests for other hosts pass through
    host: str | re.Pattern[str] | None = None

    # Prepended to every route path (trailing slash is stripped)
    prefix: str = ""

    # Forces the path the dispatcher matches against, ahead of ctx.path
    router_path: str | None = None

    # Path matching options forwarded to the pattern compiler
    sensitive: bool = False
    strict: bool = False


@dataclass(frozen=True, slots=True)
class AllowedMethodsConfig:
    """Behaviour of ``Router.allowed_methods()``.

    With ``throw=False`` the policy sets 501/405 statuses and an ``Allow``
    header. With ``throw=True`` it raises instead, using the factories when
    given (each is called with no arguments and must return an exception).
    """

    throw: bool = False
    not_implemented: Callable[[], BaseException] | None = None
    method_not_allowed: Callable[[], BaseException] | None = None


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation."""

    # Include exception text in 500 responses
    debug: bool = False
