"""``switchyard routes`` — list a router's route table.

Prints one row per route in registration order, which is also match
priority order.
"""

import argparse
import sys

from switchyard.cli._resolve import resolve_router


def run_routes(args: argparse.Namespace) -> None:
    """Print METHOD, PATH, and NAME for every route of ``args.router``."""
    try:
        router = resolve_router(args.router)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = router.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str]] = []
    for route in routes:
        methods_str = ", ".join(route.methods) if route.methods else "(middleware)"
        rows.append((methods_str, route.path, route.name or ""))

    max_methods = max(max(len(r[0]) for r in rows), 6)  # "METHOD" header
    max_path = max(max(len(r[1]) for r in rows), 4)  # "PATH" header

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "NAME"))
    sep_len = max_methods + max_path + 4 + max((len(r[2]) for r in rows), default=0)
    print("-" * min(sep_len, 80))
    for methods_str, path, name in rows:
        print(fmt.format(methods_str, path, name).rstrip())
