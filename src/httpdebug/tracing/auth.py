"""Process-wide authorization hook for the tracing pages.

The hook returns ``(any_access, sensitive_access)``: whether the caller
may see the pages at all, and whether sensitive log lines are shown
unredacted. A debug multiplexer replaces it with a bridge to its own
access list and admin authenticator when it is set up.
"""

import logging
import threading
from collections.abc import Callable

from httpdebug.acl import LOOPBACK_ADDRESSES, AddressLookupError, request_address
from httpdebug.http.request import Request

logger = logging.getLogger("httpdebug.mux")

type AuthRequest = Callable[[Request], tuple[bool, bool]]

_LOOPBACK = frozenset(LOOPBACK_ADDRESSES)

_lock = threading.Lock()


def default_auth_request(request: Request) -> tuple[bool, bool]:
    """Full access from loopback addresses, nothing otherwise."""
    try:
        address = request_address(request)
    except AddressLookupError:
        return False, False
    local = str(address) in _LOOPBACK
    return local, local


_auth: AuthRequest = default_auth_request


def install_auth(hook: AuthRequest) -> None:
    """Replace the process-wide hook."""
    global _auth
    with _lock:
        _auth = hook
    logger.debug("trace authorization hook set to %r", hook)


def auth_request(request: Request) -> tuple[bool, bool]:
    """Ask the current hook about *request*."""
    return _auth(request)


def reset_auth() -> None:
    """Restore ``default_auth_request``."""
    install_auth(default_auth_request)
