"""Routing — ordered route tables with middleware-style dispatch.

Routes are registered during setup and matched in registration order on
every request.
"""

from switchyard.routing.route import Match, Route, RouteOptions
from switchyard.routing.router import HTTP_METHODS, Dispatch, Router

__all__ = [
    "HTTP_METHODS",
    "Dispatch",
    "Match",
    "Route",
    "RouteOptions",
    "Router",
]
