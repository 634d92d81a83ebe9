"""Error handling for switchyard requests.

Maps HTTPError exceptions and unexpected failures onto the context's
response fields.
"""

import logging

from switchyard.context import Context
from switchyard.errors import HTTPError

logger = logging.getLogger("switchyard.server")


def handle_http_error(exc: HTTPError, ctx: Context, debug: bool) -> None:
    """Turn an HTTPError into the response status, body, and headers."""
    logger.debug("%d %s %s — %s", exc.status, ctx.method, ctx.path, exc.detail)

    detail = exc.detail or f"Error {exc.status}"
    if debug and exc.detail:
        detail = f"{exc.status}: {exc.detail}"

    ctx.status = exc.status
    ctx.body = detail
    for name, value in exc.headers:
        ctx.set(name, value)


def handle_internal_error(exc: Exception, ctx: Context, debug: bool) -> None:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", ctx.method, ctx.path)

    ctx.status = 500
    ctx.body = f"Internal Server Error: {exc!r}" if debug else "Internal Server Error"
