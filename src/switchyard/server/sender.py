"""ASGI response sending — translates a finished Context into ASGI messages."""

import json
import logging
from typing import Any

from switchyard._internal.asgi import Send
from switchyard.context import Context

logger = logging.getLogger("switchyard.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def encode_body(body: Any) -> tuple[bytes, str | None]:
    """Encode a context body, returning the bytes and a default content type."""
    if body is None:
        return b"", None
    if isinstance(body, bytes):
        return body, "application/octet-stream"
    if isinstance(body, str):
        return body.encode("utf-8"), "text/plain; charset=utf-8"
    return json.dumps(body).encode("utf-8"), "application/json"


async def send_response(ctx: Context, send: Send) -> None:
    """Send the response described by *ctx* through ASGI ``send()``."""
    status = ctx.effective_status
    body_value = ctx.body
    if body_value is None and ctx.status is None:
        body_value = "Not Found"

    body, content_type = encode_body(body_value)
    if content_type is not None and "content-type" not in ctx.response_headers:
        ctx.set("Content-Type", content_type)

    if not _body_allowed(status):
        body = b""
    ctx.set("Content-Length", str(len(body)))
    if ctx.method == "HEAD":
        body = b""

    logger.debug("%d %s %s", status, ctx.method, ctx.path)
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": ctx.response_headers.raw(),
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
