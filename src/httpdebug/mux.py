"""The debug multiplexer — guarded routing for operational endpoints.

A ``DebugMux`` collects endpoints (profiling, tracing, and anything the
application adds), wraps each one in the guard pipeline, and serves them
as an ASGI app. It moves through two states:

- *constructed*: the built-in endpoints and anything added with
  ``handle()`` are staged in the route table, and every request answers
  500;
- *registered*: entered once through ``register()``, which installs the
  tracing authorization bridge and starts serving the staged table.

Conflicting patterns are rejected by the ``handle()`` call that adds them,
with the same rule in both states.

The access list and admin authenticator can be swapped at any time; every
guard reads them per request.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from httpdebug import profiling, tracing
from httpdebug._internal.asgi import Receive, Scope, Send
from httpdebug._internal.lifespan import acknowledge_lifespan
from httpdebug._internal.types import Handler
from httpdebug.acl import (
    AccessList,
    AddressLookupError,
    AdminAuthenticator,
    acl_authenticator,
    loopback,
    request_address,
)
from httpdebug.config import DebugConfig, SensitivePolicy
from httpdebug.errors import ContractViolation
from httpdebug.http.request import Request
from httpdebug.http.response import Response
from httpdebug.middleware.pipeline import guard
from httpdebug.routing.route import Route
from httpdebug.routing.router import Router
from httpdebug.server.handler import handle_request, respond
from httpdebug.tracing.auth import AuthRequest

logger = logging.getLogger("httpdebug.mux")


def allow_sensitive(request: Request) -> bool:
    """Admin authenticator that shows sensitive trace data to everyone."""
    return True


def deny_sensitive(request: Request) -> bool:
    """Admin authenticator that shows sensitive trace data to no one."""
    return False


def default_admin(policy: SensitivePolicy) -> AdminAuthenticator:
    """The admin authenticator used when none is supplied."""
    if policy is SensitivePolicy.ALWAYS:
        return allow_sensitive
    return deny_sensitive


@dataclass(frozen=True, slots=True)
class Policy:
    """Access list and admin authenticator, always replaced together."""

    access_list: AccessList | None
    admin: AdminAuthenticator


class _Settings:
    """Holder for the current ``Policy``.

    Writers serialize on the lock; readers take the reference as-is, so a
    request never sees one field from an old policy and one from a new.
    """

    __slots__ = ("_lock", "policy")

    def __init__(self, policy: Policy) -> None:
        self._lock = threading.Lock()
        self.policy = policy

    def update(self, **changes: Any) -> Policy:
        with self._lock:
            self.policy = replace(self.policy, **changes)
            return self.policy


class DebugMux:
    """Guarded multiplexer for debug endpoints. An ASGI application.

    Usage::

        mux = DebugMux(DebugConfig(request_timeout=5.0), acl=loopback())
        mux.handle("/debug/ping", lambda: "pong\\n")
        mux.register()
        # serve ``mux`` with any ASGI server

    Args:
        config: Prefix, timeout, and which endpoint groups to install.
        acl: Source addresses allowed to reach any endpoint. ``None``
            allows everyone.
        admin: Decides whether sensitive trace data is shown. ``None``
            uses the config's ``sensitive_default``.
        install_trace_auth: Where the tracing authorization bridge is
            installed. Defaults to the process-wide tracing hook.
    """

    __slots__ = (
        "_install_trace_auth",
        "_lock",
        "_registered",
        "_router",
        "_settings",
        "config",
    )

    def __init__(
        self,
        config: DebugConfig | None = None,
        acl: AccessList | None = None,
        admin: AdminAuthenticator | None = None,
        *,
        install_trace_auth: Callable[[AuthRequest], None] = tracing.install_auth,
    ) -> None:
        self.config: DebugConfig = config or DebugConfig()
        if admin is None:
            admin = default_admin(self.config.sensitive_default)
        self._settings = _Settings(Policy(acl, admin))
        self._install_trace_auth = install_trace_auth
        self._lock = threading.Lock()
        self._registered: bool = False
        self._router = Router()
        for route in self._builtin_routes():
            self._router.add(route)

    @classmethod
    def localhost(cls, config: DebugConfig | None = None, **kwargs: Any) -> DebugMux:
        """A multiplexer reachable only from 127.0.0.1 and ::1."""
        return cls(config, loopback(), **kwargs)

    # -- State --

    @property
    def registered(self) -> bool:
        """True once ``register()`` has completed. Never reverts."""
        return self._registered

    @property
    def access_list(self) -> AccessList | None:
        return self._settings.policy.access_list

    @property
    def admin(self) -> AdminAuthenticator:
        return self._settings.policy.admin

    @property
    def routes(self) -> list[Route]:
        """Served routes (empty until registered)."""
        return self._router.routes if self._registered else []

    # -- Registration --

    def _builtin_routes(self) -> list[Route]:
        routes: list[Route] = []
        if self.config.pprof_enabled:
            endpoints = profiling.make_endpoints(self.config.prefix, self.config.max_profile_seconds)
            routes.extend(self._route(pattern, h) for pattern, h in endpoints.items())
        if self.config.trace_enabled:
            routes.append(self._route(f"{self.config.prefix}/requests", tracing.trace_request))
            routes.append(self._route(f"{self.config.prefix}/events", tracing.event_request))
        return routes

    def register(self) -> None:
        """Install the tracing bridge and start serving. Idempotent."""
        if self._registered:
            return
        with self._lock:
            if self._registered:
                return
            if self.config.trace_enabled:
                self._install_trace_auth(self._trace_auth)
            self._registered = True

        logger.debug(
            "debug endpoints registered under %s (%d routes, timeout=%gs)",
            self.config.prefix,
            len(self._router),
            self.config.request_timeout,
        )

    def handle(
        self,
        pattern: str,
        handler: Handler,
        methods: list[str] | None = None,
    ) -> None:
        """Serve *handler* at *pattern*, guarded like the built-in endpoints.

        Before ``register()`` the endpoint is staged and answers 500 like
        everything else; afterwards it is served immediately.

        Raises ``ContractViolation`` if *handler* is ``None``.
        Raises ``ConfigurationError`` if *pattern* is already taken for an
        overlapping set of methods, built-in endpoints included.
        """
        route = self._route(pattern, handler, methods)
        self._router.add(route)
        logger.debug("%s %s", "installed" if self._registered else "staged", pattern)

    def handle_func(
        self,
        pattern: str,
        *,
        methods: list[str] | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of ``handle()``::

            @mux.handle_func("/debug/config")
            def show_config():
                return settings.as_dict()
        """

        def decorator(func: Handler) -> Handler:
            self.handle(pattern, func, methods)
            return func

        return decorator

    def add_profile(self, name: str) -> None:
        """Expose the application profile *name* at ``<prefix>/pprof/<name>``.

        Works whether or not the built-in profiling endpoints are enabled.
        The route answers 404 until ``profiling.new_profile(name)`` exists.
        """
        self.handle(f"{self.config.prefix}/pprof/{name}", profiling.profile_endpoint(name))

    def _route(
        self,
        pattern: str,
        handler: Handler,
        methods: list[str] | None = None,
    ) -> Route:
        if handler is None:
            msg = f"httpdebug: nil handler registered for {pattern!r}"
            raise ContractViolation(msg)
        endpoint = guard(handler, self._access_list, self.config.request_timeout)
        return Route(
            path=pattern,
            handler=endpoint,
            methods=frozenset(m.upper() for m in methods) if methods else None,
            name=getattr(handler, "__name__", None),
        )

    def _access_list(self) -> AccessList | None:
        return self._settings.policy.access_list

    # -- Admin policy --

    def set_admin(self, admin: AdminAuthenticator) -> None:
        """Replace the admin authenticator."""
        self._settings.update(admin=admin)
        self._refresh_trace_auth()

    def set_admin_acl(self, acl: AccessList) -> None:
        """Treat callers whose address *acl* permits as admins."""
        self.set_admin(acl_authenticator(acl))

    def local_admin(self) -> None:
        """Treat loopback callers as admins."""
        self.set_admin_acl(loopback())

    def set_access_list(self, acl: AccessList | None) -> None:
        """Replace the access list. ``None`` allows every address."""
        self._settings.update(access_list=acl)
        logger.info("access list set to %r", acl)
        self._refresh_trace_auth()

    def _refresh_trace_auth(self) -> None:
        if self._registered and self.config.trace_enabled:
            self._install_trace_auth(self._trace_auth)

    def _trace_auth(self, request: Request) -> tuple[bool, bool]:
        """``(any_access, sensitive_access)`` under the current policy."""
        policy = self._settings.policy
        if policy.access_list is None:
            return True, policy.admin(request)
        try:
            address = request_address(request)
        except AddressLookupError:
            return False, False
        return policy.access_list.permitted(address), policy.admin(request)

    # -- Serving --

    async def dispatch(self, request: Request) -> Response:
        """Serve an already-built ``Request``."""
        return await respond(request, router=self._router, ready=self._registered)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point."""
        if scope["type"] == "lifespan":
            await acknowledge_lifespan(receive, send)
            return
        await handle_request(scope, receive, send, router=self._router, ready=self._registered)

    def __repr__(self) -> str:
        state = "registered" if self._registered else "constructed"
        return f"<DebugMux {self.config.prefix} {state}>"
