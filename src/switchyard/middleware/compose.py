"""Middleware composition.

Turns an ordered list of middleware into a single middleware. Each one
receives ``next``; awaiting it runs everything after, ending with the
continuation the composed middleware was itself called with.
"""

import inspect
from collections.abc import Coroutine, Sequence
from typing import Any

from switchyard._internal.invoke import invoke
from switchyard.context import Context
from switchyard.errors import ConfigurationError
from switchyard.middleware.protocol import Middleware, Next


def compose(middleware: Sequence[Middleware]) -> Middleware:
    """Compose *middleware* into one callable ``(ctx, next=None)``.

    Middleware may be sync. A sync middleware that calls ``next()`` without
    returning it still has the rest of the chain run before its own step
    completes.

    Raises ``ConfigurationError`` if any entry is not callable. At request
    time, calling ``next()`` more than once from the same middleware raises
    ``RuntimeError``. Exceptions from middleware propagate unchanged.
    """
    stack = tuple(middleware)
    for fn in stack:
        if not callable(fn):
            msg = f"Middleware must be callable, got {type(fn).__name__}"
            raise ConfigurationError(msg)

    async def composed(ctx: Context, next: Next | None = None) -> Any:
        index = -1

        async def dispatch(i: int) -> Any:
            nonlocal index
            if i <= index:
                msg = "next() called multiple times"
                raise RuntimeError(msg)
            index = i
            if i == len(stack):
                return await invoke(next) if next is not None else None

            started: list[Coroutine[Any, Any, Any]] = []

            def step() -> Coroutine[Any, Any, Any]:
                coro = dispatch(i + 1)
                started.append(coro)
                return coro

            result = stack[i](ctx, step)
            if inspect.isawaitable(result):
                return await result
            for coro in started:
                if inspect.getcoroutinestate(coro) == inspect.CORO_CREATED:
                    await coro
            return result

        return await dispatch(0)

    return composed
