"""httpdebug — Guarded HTTP debug endpoints for ASGI applications.

Profiling and live request tracing over HTTP, reachable only from the
addresses you allow, with a separate admin check for sensitive data.

Basic usage::

    import httpdebug

    httpdebug.new_localhost(timeout=10.0)
    app = httpdebug.handler()          # an ASGI app serving /debug/...

Custom access lists::

    from httpdebug import BasicAccessList

    httpdebug.new(BasicAccessList(["10.0.0.5"]), admin=None)
    httpdebug.local_admin()
    httpdebug.register(my_router)      # my_router.mount("/debug", ...)
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "AccessList",
    "AdminAuthenticator",
    "AlreadyInitialized",
    "BasicAccessList",
    "ConfigurationError",
    "ContractViolation",
    "DebugConfig",
    "DebugMux",
    "HTTPError",
    "HttpDebugError",
    "InlineTemplate",
    "NetworkAccessList",
    "NotConfigured",
    "PrefixDispatcher",
    "Request",
    "Response",
    "SensitivePolicy",
    "add_profile",
    "default_dispatcher",
    "handle",
    "handle_func",
    "handler",
    "handler_func",
    "local_admin",
    "loopback",
    "new",
    "new_localhost",
    "register",
    "serve",
    "set_access_list",
    "set_admin",
    "set_admin_acl",
    "setup",
]

_PROCESS = (
    "add_profile",
    "handle",
    "handle_func",
    "handler",
    "handler_func",
    "local_admin",
    "new",
    "new_localhost",
    "register",
    "set_access_list",
    "set_admin",
    "set_admin_acl",
    "setup",
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import httpdebug`` free of kida and anyio until used.
    """
    if name in _PROCESS:
        from httpdebug import process as _process

        return getattr(_process, name)

    if name == "DebugMux":
        from httpdebug.mux import DebugMux

        return DebugMux

    if name in ("DebugConfig", "SensitivePolicy"):
        from httpdebug import config as _config

        return getattr(_config, name)

    if name in ("AccessList", "AdminAuthenticator", "BasicAccessList", "NetworkAccessList", "loopback"):
        from httpdebug import acl as _acl

        return getattr(_acl, name)

    if name == "Request":
        from httpdebug.http.request import Request

        return Request

    if name == "Response":
        from httpdebug.http.response import Response

        return Response

    if name == "InlineTemplate":
        from httpdebug.templating.returns import InlineTemplate

        return InlineTemplate

    if name in ("PrefixDispatcher", "default_dispatcher"):
        from httpdebug.server import dispatch as _dispatch

        return getattr(_dispatch, name)

    if name == "serve":
        from httpdebug.server.dev import serve

        return serve

    if name in (
        "AlreadyInitialized",
        "ConfigurationError",
        "ContractViolation",
        "HTTPError",
        "HttpDebugError",
        "NotConfigured",
    ):
        from httpdebug import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
