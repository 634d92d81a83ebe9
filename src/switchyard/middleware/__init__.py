"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: Context, next: Next) -> None
"""

from switchyard.middleware.compose import compose
from switchyard.middleware.protocol import Middleware, Next, ParamHandler

__all__ = [
    "Middleware",
    "Next",
    "ParamHandler",
    "compose",
]
