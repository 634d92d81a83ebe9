"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: Context, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.

``next()`` takes no arguments and returns an awaitable that runs the rest
of the chain. A middleware that never calls it ends the chain there, which
is how handlers produce early responses.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias

from switchyard.context import Context

# The rest of the chain, as seen from inside one middleware
Next: TypeAlias = Callable[[], Awaitable[Any]]


class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            ctx.set("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class RequireJSON:
            async def __call__(self, ctx: Context, next: Next) -> None:
                ...
    """

    def __call__(self, ctx: Context, next: Next) -> Any: ...


class ParamHandler(Protocol):
    """Protocol for ``Router.param()`` handlers.

    Receives the decoded parameter value before the route's own handlers::

        async def load_user(user_id: str, ctx: Context, next: Next) -> None:
            ctx.state["user"] = await users.get(user_id)
            await next()
    """

    def __call__(self, value: str | None, ctx: Context, next: Next) -> Any: ...
