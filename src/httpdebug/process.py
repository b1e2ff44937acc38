"""Process-wide debug multiplexer.

Tracing authorization is a process-global hook, so a process gets exactly
one multiplexer. Create it with ``new_localhost()`` or ``new()``, then
reach it through the functions below::

    import httpdebug

    httpdebug.new_localhost(timeout=10.0)
    httpdebug.register(app)          # mounts at /debug

Every function here shares one lock. Calling anything but the
constructors first raises ``NotConfigured``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from httpdebug import tracing
from httpdebug._internal.asgi import ASGIApp
from httpdebug._internal.types import Handler
from httpdebug.acl import AccessList, AdminAuthenticator
from httpdebug.config import DebugConfig
from httpdebug.errors import AlreadyInitialized, NotConfigured
from httpdebug.http.request import Request
from httpdebug.http.response import Response
from httpdebug.mux import DebugMux
from httpdebug.server.dispatch import default_dispatcher

logger = logging.getLogger("httpdebug.process")

_lock = threading.Lock()
_debugger: DebugMux | None = None


class Mountable(Protocol):
    """Anything that can serve an ASGI app under a path prefix."""

    def mount(self, path: str, app: ASGIApp) -> Any: ...


def _config(
    config: DebugConfig | None,
    timeout: float,
    pprof_disable: bool,
    trace_disable: bool,
) -> DebugConfig:
    base = config or DebugConfig()
    return base.with_overrides(
        request_timeout=timeout or base.request_timeout,
        pprof_enabled=base.pprof_enabled and not pprof_disable,
        trace_enabled=base.trace_enabled and not trace_disable,
    )


def _install(mux: DebugMux) -> None:
    global _debugger
    _debugger = mux
    logger.info("debug multiplexer created: %r", mux)


def new_localhost(
    timeout: float = 0.0,
    pprof_disable: bool = False,
    trace_disable: bool = False,
    *,
    config: DebugConfig | None = None,
) -> None:
    """Create the multiplexer, reachable only from loopback addresses.

    *timeout* is in seconds; ``0`` means no limit.

    Raises ``AlreadyInitialized`` if a multiplexer exists; nothing changes.
    """
    with _lock:
        if _debugger is not None:
            raise AlreadyInitialized
        _install(DebugMux.localhost(_config(config, timeout, pprof_disable, trace_disable)))


def new(
    acl: AccessList | None,
    admin: AdminAuthenticator | None,
    timeout: float = 0.0,
    pprof_disable: bool = False,
    trace_disable: bool = False,
    *,
    config: DebugConfig | None = None,
) -> None:
    """Create the multiplexer with an arbitrary access list.

    ``acl=None`` admits every address. ``admin=None`` uses the config's
    ``sensitive_default``.

    Raises ``AlreadyInitialized`` if a multiplexer exists; nothing changes.
    """
    with _lock:
        if _debugger is not None:
            raise AlreadyInitialized
        _install(DebugMux(_config(config, timeout, pprof_disable, trace_disable), acl, admin))


def _require() -> DebugMux:
    if _debugger is None:
        raise NotConfigured
    return _debugger


def _setup() -> DebugMux:
    mux = _require()
    mux.register()
    return mux


def setup() -> None:
    """Install the debug endpoints. Safe to call repeatedly."""
    with _lock:
        _setup()


def handler() -> DebugMux:
    """Set up if needed and return the multiplexer as an ASGI app."""
    with _lock:
        return _setup()


def handler_func() -> Callable[[Request], Awaitable[Response]]:
    """Set up if needed and return an async ``Request -> Response`` callable."""
    with _lock:
        return _setup().dispatch


def register(router: Mountable | None = None) -> None:
    """Set up if needed and mount the multiplexer at its prefix.

    *router* is anything with ``mount(path, app)``. ``None`` mounts on
    ``httpdebug.default_dispatcher``.
    """
    with _lock:
        mux = _setup()
        target = default_dispatcher if router is None else router
        target.mount(mux.config.prefix, mux)
    logger.info("debug endpoints mounted at %s on %r", mux.config.prefix, target)


def set_admin_acl(acl: AccessList) -> None:
    """Treat callers whose address *acl* permits as admins."""
    with _lock:
        _require().set_admin_acl(acl)


def set_admin(admin: AdminAuthenticator) -> None:
    """Replace the admin authenticator."""
    with _lock:
        _require().set_admin(admin)


def local_admin() -> None:
    """Treat loopback callers as admins."""
    with _lock:
        _require().local_admin()


def set_access_list(acl: AccessList | None) -> None:
    """Replace the access list; ``None`` admits every address."""
    with _lock:
        _require().set_access_list(acl)


def handle(pattern: str, handler: Handler, methods: list[str] | None = None) -> None:
    """Serve an extra debugging endpoint at *pattern* (a full path)."""
    with _lock:
        _require().handle(pattern, handler, methods)


def handle_func(
    pattern: str,
    *,
    methods: list[str] | None = None,
) -> Callable[[Handler], Handler]:
    """Decorator form of ``handle()``."""
    with _lock:
        _require()

    def decorator(func: Handler) -> Handler:
        handle(pattern, func, methods)
        return func

    return decorator


def add_profile(name: str) -> None:
    """Expose application profile *name* at ``<prefix>/pprof/<name>``."""
    with _lock:
        _require().add_profile(name)


def current() -> DebugMux | None:
    """The process multiplexer, or ``None`` before construction."""
    return _debugger


def _reset() -> None:
    """Forget the multiplexer and restore default trace auth (tests only)."""
    global _debugger
    with _lock:
        if _debugger is not None:
            default_dispatcher.unmount(_debugger.config.prefix)
        _debugger = None
    tracing.reset_auth()
