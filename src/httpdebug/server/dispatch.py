"""Prefix dispatcher — a tiny ASGI app that hands paths to mounted apps.

Stands in for a host application's router when the debug endpoints are
served on their own. Mounted apps receive the scope unchanged (the full
path), so an app mounted at ``/debug`` routes ``/debug/pprof`` itself.
"""

import logging
import threading

from httpdebug._internal.asgi import ASGIApp, Receive, Scope, Send
from httpdebug._internal.lifespan import acknowledge_lifespan
from httpdebug.errors import ConfigurationError
from httpdebug.http.response import error_response
from httpdebug.server.sender import send_response

logger = logging.getLogger("httpdebug.server")


class PrefixDispatcher:
    """Route requests to the app mounted at the longest matching prefix.

    Usage::

        dispatcher = PrefixDispatcher()
        dispatcher.mount("/debug", debug_app)
        dispatcher.mount("/", main_app)

    Unmatched paths answer 404. Mounting is safe while requests are in
    flight: the mount table is replaced, never edited in place.
    """

    __slots__ = ("_lock", "_mounts")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._mounts: tuple[tuple[str, ASGIApp], ...] = ()

    def mount(self, path: str, app: ASGIApp) -> None:
        """Serve *path* and everything below it with *app*.

        Raises ``ConfigurationError`` if *path* is already mounted.
        """
        prefix = path.rstrip("/") or "/"
        if not prefix.startswith("/"):
            msg = f"mount path must start with '/', got {path!r}"
            raise ConfigurationError(msg)
        with self._lock:
            if any(existing == prefix for existing, _ in self._mounts):
                msg = f"{prefix!r} is already mounted"
                raise ConfigurationError(msg)
            mounts = (*self._mounts, (prefix, app))
            self._mounts = tuple(sorted(mounts, key=lambda m: len(m[0]), reverse=True))
        logger.debug("mounted %r at %s", app, prefix)

    def unmount(self, path: str) -> None:
        """Remove the app at *path*; unknown paths are ignored."""
        prefix = path.rstrip("/") or "/"
        with self._lock:
            self._mounts = tuple(m for m in self._mounts if m[0] != prefix)

    @property
    def mounts(self) -> tuple[str, ...]:
        """Mounted prefixes, longest first."""
        return tuple(prefix for prefix, _ in self._mounts)

    def resolve(self, path: str) -> ASGIApp | None:
        """Return the app that serves *path*, or ``None``."""
        for prefix, app in self._mounts:
            if prefix == "/" or path == prefix or path.startswith(prefix + "/"):
                return app
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await acknowledge_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        app = self.resolve(scope["path"])
        if app is None:
            await send_response(error_response(404), send, head=scope["method"] == "HEAD")
            return
        await app(scope, receive, send)


# Used by ``httpdebug.register()`` when no router is given
default_dispatcher = PrefixDispatcher()
