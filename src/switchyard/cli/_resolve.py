"""Router import resolution — resolves ``"module:attribute"`` strings to Routers."""

import importlib

from switchyard.routing.router import Dispatch, Router


def resolve_router(import_string: str) -> Router:
    """Resolve an import string to a switchyard Router.

    Accepts ``"module:attribute"`` format. When the attribute portion is
    omitted, defaults to ``"router"``. The attribute may be a ``Router``,
    the ``Dispatch`` returned by ``router.middleware()``, or a factory
    returning either.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a Router.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "router"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if isinstance(obj, Dispatch):
        return obj.router
    if callable(obj) and not isinstance(obj, Router):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc
        if isinstance(obj, Dispatch):
            obj = obj.router

    if not isinstance(obj, Router):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a switchyard.Router"
        raise TypeError(msg)

    return obj
