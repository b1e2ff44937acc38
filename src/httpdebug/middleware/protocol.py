"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The guard pipeline checks the shape, not the
lineage.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from httpdebug.http.request import Request
from httpdebug.http.response import Response

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for guard middleware.

    Accepts both functions and callable objects::

        async def stamp(request: Request, next: Next) -> Response:
            response = await next(request)
            return response.with_header("X-Debug", "1")
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
