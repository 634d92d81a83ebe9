"""Switchyard — request routing and middleware dispatch for ASGI apps.

Routes live in ordered tables; a request runs the handlers of every
matching route (or only the most specific one, in exclusive mode).

Basic usage::

    from switchyard import App, Router

    router = Router()

    @router.get("/users/:id", name="user")
    async def show_user(ctx, next):
        ctx.body = {"id": ctx.params["id"]}

    app = App()
    app.add_middleware(router.middleware())
    app.add_middleware(router.allowed_methods())
"""

__version__ = "0.1.0"
__all__ = [
    "AllowedMethodsConfig",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "Dispatch",
    "HTTPError",
    "MethodNotAllowed",
    "MethodNotImplemented",
    "Middleware",
    "MissingParameterError",
    "Next",
    "NotFound",
    "Route",
    "Router",
    "RouterConfig",
    "SwitchyardError",
    "URLBuildError",
    "UnknownRouteError",
    "compose",
    "get_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name in ("AllowedMethodsConfig", "AppConfig", "RouterConfig"):
        from switchyard import config as _config

        return getattr(_config, name)

    if name in ("Context", "get_context"):
        from switchyard import context as _ctx

        return getattr(_ctx, name)

    if name in ("Router", "Dispatch"):
        from switchyard.routing import router as _router

        return getattr(_router, name)

    if name == "Route":
        from switchyard.routing.route import Route

        return Route

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "compose":
        from switchyard.middleware.compose import compose

        return compose

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "MethodNotImplemented",
        "MissingParameterError",
        "NotFound",
        "SwitchyardError",
        "URLBuildError",
        "UnknownRouteError",
    ):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
