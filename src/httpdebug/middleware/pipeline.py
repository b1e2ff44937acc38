"""Guard pipeline — wraps every debug endpoint in the same stages.

A raw handler ``h`` is served as ``Timeout(AccessList(endpoint(h)))``:
the timeout bounds everything, including the access check.
"""

from collections.abc import Callable, Sequence
from typing import Any

from httpdebug.acl import AccessList
from httpdebug.http.request import Request
from httpdebug.http.response import Response
from httpdebug.middleware.guards import AccessListMiddleware, TimeoutMiddleware
from httpdebug.middleware.protocol import Middleware, Next
from httpdebug.server.handler import as_endpoint


def wrap(endpoint: Next, middleware: Sequence[Middleware]) -> Next:
    """Chain *middleware* around *endpoint*, first element outermost."""
    handler = endpoint
    for mw in reversed(middleware):
        outer = handler

        async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler


def guard(
    handler: Any,
    get_acl: Callable[[], AccessList | None],
    timeout: float,
) -> Next:
    """Return the guarded endpoint for a raw *handler*.

    Raises ``ContractViolation`` if *handler* is ``None``.
    """
    endpoint = as_endpoint(handler)
    return wrap(endpoint, (TimeoutMiddleware(timeout), AccessListMiddleware(get_acl)))
