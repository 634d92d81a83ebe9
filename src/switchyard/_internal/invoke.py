"""Await-if-needed calls for user callables with no chain of their own.

Used for lifespan hooks and for the continuation a composed chain ends
in. Middleware steps go through ``compose`` instead, which also tracks
the ``next()`` calls a sync step makes.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any) -> Any:
    """Call *func* and return its result, awaited when it is awaitable::

        await invoke(app_hook)           # def or async def
        await invoke(outer_next)
    """
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result
