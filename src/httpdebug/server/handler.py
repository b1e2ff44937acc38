"""ASGI handler — translates ASGI scope/messages to httpdebug types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches through the router to guarded
endpoints, and sends the Response back through ASGI send().
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from httpdebug._internal.asgi import Receive, Scope, Send
from httpdebug._internal.invoke import invoke
from httpdebug._internal.types import Handler
from httpdebug.errors import ContractViolation, HTTPError
from httpdebug.http.request import Request
from httpdebug.http.response import Response, error_response
from httpdebug.routing.params import convert_param
from httpdebug.routing.router import Router
from httpdebug.server.negotiation import negotiate
from httpdebug.server.sender import send_response

logger = logging.getLogger("httpdebug.server")

# A handler after adaptation: one request in, one response out
type Endpoint = Callable[[Request], Awaitable[Response]]


def as_endpoint(handler: Handler | None) -> Endpoint:
    """Adapt a user handler into an ``Endpoint``.

    Handlers can be sync or async and may take any of:

    - nothing: ``def ok(): return "ok\\n"``
    - the request (by name or ``Request`` annotation)
    - path parameters by name: ``def named(request, name): ...``

    Return values go through content negotiation.

    Raises ``ContractViolation`` if *handler* is ``None``.
    """
    if handler is None:
        msg = "httpdebug: a None handler cannot be registered"
        raise ContractViolation(msg)
    if not callable(handler):
        msg = f"httpdebug: handler {handler!r} is not callable"
        raise ContractViolation(msg)

    wants = _handler_params(handler)

    async def endpoint(request: Request) -> Response:
        kwargs = _build_handler_kwargs(wants, request)
        result = await invoke(handler, **kwargs)
        return negotiate(result)

    endpoint.__qualname__ = getattr(handler, "__qualname__", repr(handler))
    return endpoint


def _handler_params(handler: Handler) -> tuple[tuple[str, Any], ...]:
    try:
        sig = inspect.signature(handler, eval_str=True)
    except (TypeError, ValueError, NameError):
        # Builtins and some C callables: assume they take the request
        return (("request", Request),)
    return tuple((name, param.annotation) for name, param in sig.parameters.items())


def _build_handler_kwargs(
    wants: tuple[tuple[str, Any], ...],
    request: Request,
) -> dict[str, Any]:
    """Build kwargs from the handler's parameter names.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name, converted to ``int`` when annotated so)
    """
    kwargs: dict[str, Any] = {}
    for name, annotation in wants:
        if name == "request" or annotation is Request:
            kwargs[name] = request
        elif name in request.path_params:
            value = request.path_params[name]
            if annotation is int:
                kwargs[name] = convert_param(value, "int")
            else:
                kwargs[name] = value
    return kwargs


async def respond(request: Request, *, router: Router, ready: bool) -> Response:
    """Route *request* to its guarded endpoint and return the response.

    *ready* is False until the debug multiplexer has been set up; every
    request before that answers 500 regardless of path.
    """
    if not ready:
        logger.warning("500 %s %s — debug handler used before setup", request.method, request.path)
        return error_response(500)

    try:
        match = router.match(request.method, request.path)
        endpoint: Endpoint = match.route.handler
        return await endpoint(request.with_path_params(match.path_params))
    except HTTPError as exc:
        logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
        return error_response(exc.status, exc.headers)
    except Exception:
        logger.exception("500 %s %s", request.method, request.path)
        return error_response(500)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    ready: bool,
) -> None:
    """Process a single HTTP request through the guarded pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = await respond(request, router=router, ready=ready)
    await send_response(response, send, head=request.method == "HEAD")
