"""Switchyard application class.

A thin ASGI shell around a middleware list. Routers plug in through
``router.middleware()`` and ``router.allowed_methods()``; the app only
builds the ``Context``, runs the chain, maps errors, and sends the result.
"""

import logging
import threading
from collections.abc import Callable
from contextvars import Token
from typing import Any

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard._internal.invoke import invoke
from switchyard.config import AppConfig
from switchyard.context import Context, context_var
from switchyard.errors import HTTPError
from switchyard.middleware.compose import compose
from switchyard.middleware.protocol import Middleware
from switchyard.server.errors import handle_http_error, handle_internal_error
from switchyard.server.sender import send_response

logger = logging.getLogger("switchyard.server")


class App:
    """The switchyard application.

    Mutable during setup (middleware, lifecycle hooks). Frozen when the
    first request or lifespan event arrives.

    Usage::

        app = App()
        app.add_middleware(router.middleware())
        app.add_middleware(router.allowed_methods())
    """

    __slots__ = (
        "_freeze_lock",
        "_frozen",
        "_handler",
        "_middleware_list",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._middleware_list: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._handler: Middleware | None = None

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook to run at ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook to run at ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        self._ensure_frozen()
        assert self._handler is not None

        ctx = Context.from_asgi(scope)
        token: Token[Context] = context_var.set(ctx)
        try:
            await self._handler(ctx)
        except HTTPError as exc:
            handle_http_error(exc, ctx, self.config.debug)
        except Exception as exc:
            handle_internal_error(exc, ctx, self.config.debug)
        finally:
            context_var.reset(token)

        await send_response(ctx, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run startup hooks (sync or async) in registration order."""
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        """Run shutdown hooks (sync or async) in registration order."""
        for hook in self._shutdown_hooks:
            await invoke(hook)

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Compose the middleware exactly once, even under concurrent first requests."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._handler = compose(self._middleware_list)
            self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Add middleware and hooks before the first request."
            )
            raise RuntimeError(msg)
