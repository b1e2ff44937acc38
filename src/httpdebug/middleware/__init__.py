"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    AccessListMiddleware -- 403 for source addresses outside the access list
    TimeoutMiddleware -- 408 when a handler overruns the request timeout
"""

from httpdebug.middleware.guards import AccessListMiddleware, TimeoutMiddleware
from httpdebug.middleware.pipeline import guard, wrap
from httpdebug.middleware.protocol import Middleware, Next

__all__ = [
    "AccessListMiddleware",
    "Middleware",
    "Next",
    "TimeoutMiddleware",
    "guard",
    "wrap",
]
