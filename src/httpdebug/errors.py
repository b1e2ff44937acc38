"""httpdebug exception hierarchy.

Shared across the router, the multiplexer, and the process-wide entry
points so every module raises and catches the same types.

``ContractViolation`` sits outside the hierarchy: it marks a
programming error and nothing in httpdebug catches it.
"""

from dataclasses import dataclass


class HttpDebugError(Exception):
    """Base for all recoverable httpdebug errors."""


class ConfigurationError(HttpDebugError):
    """Raised when debug configuration or registration is invalid."""


class AlreadyInitialized(HttpDebugError):  # noqa: N818
    """A debug multiplexer already occupies the process-wide slot."""

    def __init__(self) -> None:
        super().__init__("httpdebug: already initialised")


class NotConfigured(HttpDebugError):  # noqa: N818
    """An operation was attempted before ``new()`` or ``new_localhost()``."""

    def __init__(self) -> None:
        super().__init__(
            "httpdebug: the debug handler has not been set up "
            "(use new() or new_localhost())"
        )


class ContractViolation(Exception):  # noqa: N818
    """A required handler was ``None``.

    Registering it would install an endpoint with no guard and no body,
    so the registration call fails loudly instead.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(HttpDebugError):
    """An error that maps directly to an HTTP status code.

    Raised by the router. The ASGI handler catches these and answers
    with the bare status text.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
