"""The request as the guard pipeline and debug endpoints see it.

Everything except the body is captured from the ASGI scope up front. The
peer address in ``client`` is what access lists are checked against.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from httpdebug._internal.asgi import Receive, Scope
from httpdebug.http.headers import Headers
from httpdebug.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """A frozen HTTP request with a lazily read body.

    ``client`` is the ``(host, port)`` pair reported by the ASGI server,
    or ``None`` when the server could not determine the peer (unix
    sockets, some test transports).
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    client: tuple[str, int] | None
    _receive: Receive
    # Shared between copies made by with_path_params
    _body: dict[str, bytes] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            client=(client[0], client[1]) if client else None,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Copy carrying the matched route's parameters; the body is shared."""
        return replace(self, path_params=path_params)

    async def body(self) -> bytes:
        """Read the whole body. The ASGI stream is consumed only once."""
        if "data" not in self._body:
            chunks: list[bytes] = []
            more = True
            while more:
                message = await self._receive()
                chunks.append(message.get("body", b""))
                more = message.get("more_body", False)
            self._body["data"] = b"".join(chunks)
        return self._body["data"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")
