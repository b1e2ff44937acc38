"""Built-in guard middleware: source-address checks and request timeouts."""

import logging
from collections.abc import Callable

import anyio
import anyio.to_thread

from httpdebug.acl import AccessList, AddressLookupError, request_address
from httpdebug.http.request import Request
from httpdebug.http.response import Response, error_response
from httpdebug.middleware.protocol import Next

logger = logging.getLogger("httpdebug.access")


class AccessListMiddleware:
    """Refuse requests whose source address the access list rejects.

    The list is fetched through *get_acl* on every request, so swapping
    it on the multiplexer applies to endpoints that were wrapped earlier.
    A ``None`` list admits everyone. An unknown source address is refused.
    The lookup runs on a worker thread so the request timeout can abandon it.
    """

    __slots__ = ("_get_acl",)

    def __init__(self, get_acl: Callable[[], AccessList | None]) -> None:
        self._get_acl = get_acl

    async def __call__(self, request: Request, next: Next) -> Response:
        acl = self._get_acl()
        if acl is None:
            return await next(request)

        try:
            address = request_address(request)
        except AddressLookupError as exc:
            logger.warning("403 %s %s — %s", request.method, request.path, exc)
            return error_response(403)

        permitted = await anyio.to_thread.run_sync(acl.permitted, address, abandon_on_cancel=True)
        if not permitted:
            logger.warning(
                "403 %s %s — %s not in access list", request.method, request.path, address
            )
            return error_response(403)

        return await next(request)


class TimeoutMiddleware:
    """Answer 408 when the wrapped chain runs longer than *seconds*.

    ``0`` disables the limit. Async handlers are cancelled; sync handlers
    are abandoned in their worker thread and their result discarded. Work
    that never yields to the event loop (a blocking access-list lookup)
    cannot be cut short, but a response that arrives after the deadline
    is still replaced by 408, even a 403.
    """

    __slots__ = ("seconds",)

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds

    async def __call__(self, request: Request, next: Next) -> Response:
        if self.seconds <= 0:
            return await next(request)

        response: Response | None = None
        with anyio.move_on_after(self.seconds) as scope:
            response = await next(request)

        late = anyio.current_time() >= scope.deadline
        if scope.cancelled_caught or late or response is None:
            logger.warning(
                "408 %s %s — no response within %.3gs",
                request.method,
                request.path,
                self.seconds,
            )
            return error_response(408)
        return response
