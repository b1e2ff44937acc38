"""Access lists and admin authenticators.

An ``AccessList`` answers one question: is this source address permitted?
Anything with a ``permitted(address)`` method qualifies — no base class
required::

    class OfficeOnly:
        def permitted(self, address: IPAddress) -> bool:
            return address in ipaddress.ip_network("10.1.0.0/16")

An ``AdminAuthenticator`` is a plain predicate over a request that decides
whether privacy-sensitive data (trace payloads) may be shown.
"""

from __future__ import annotations

import ipaddress
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Protocol, TypeAlias

if TYPE_CHECKING:
    from httpdebug.http.request import Request

IPAddress: TypeAlias = ipaddress.IPv4Address | ipaddress.IPv6Address
IPNetwork: TypeAlias = ipaddress.IPv4Network | ipaddress.IPv6Network

# Predicate deciding whether sensitive data may be revealed
type AdminAuthenticator = Callable[[Request], bool]

LOOPBACK_ADDRESSES = ("127.0.0.1", "::1")


class AddressLookupError(ValueError):
    """The request's source address is missing or unparseable."""


class AccessList(Protocol):
    """Protocol for source-address allow lists.

    Implementations must be safe for concurrent reads.
    """

    def permitted(self, address: IPAddress) -> bool: ...


class BasicAccessList:
    """A set of individual addresses.

    Usage::

        acl = BasicAccessList(["127.0.0.1", "::1"])
        acl.add("10.0.0.7")
        acl.permitted(ipaddress.ip_address("10.0.0.7"))  # True
    """

    __slots__ = ("_addresses", "_lock")

    def __init__(self, addresses: Iterable[str | IPAddress] = ()) -> None:
        self._lock = threading.Lock()
        self._addresses: frozenset[IPAddress] = frozenset(
            _unmap(ipaddress.ip_address(a)) for a in addresses
        )

    def add(self, address: str | IPAddress) -> None:
        """Permit *address*."""
        ip = _unmap(ipaddress.ip_address(address))
        with self._lock:
            self._addresses = self._addresses | {ip}

    def remove(self, address: str | IPAddress) -> None:
        """Stop permitting *address*; unknown addresses are ignored."""
        ip = _unmap(ipaddress.ip_address(address))
        with self._lock:
            self._addresses = self._addresses - {ip}

    def permitted(self, address: IPAddress) -> bool:
        return _unmap(address) in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

    def __repr__(self) -> str:
        return f"BasicAccessList({sorted(str(a) for a in self._addresses)!r})"


class NetworkAccessList:
    """Allow and deny CIDR ranges, deny taking precedence.

    Addresses matching neither list get *default*::

        acl = NetworkAccessList(allow=["192.168.1.0/24"], deny=["192.168.1.66"])
    """

    __slots__ = ("allow", "default", "deny")

    def __init__(
        self,
        allow: Iterable[str] = (),
        deny: Iterable[str] = (),
        *,
        default: bool = False,
    ) -> None:
        self.allow: tuple[IPNetwork, ...] = tuple(
            ipaddress.ip_network(n, strict=False) for n in allow
        )
        self.deny: tuple[IPNetwork, ...] = tuple(
            ipaddress.ip_network(n, strict=False) for n in deny
        )
        self.default = default

    def permitted(self, address: IPAddress) -> bool:
        address = _unmap(address)
        if any(address in net for net in self.deny):
            return False
        if any(address in net for net in self.allow):
            return True
        return self.default


def loopback() -> BasicAccessList:
    """A list permitting only the IPv4 and IPv6 loopback addresses."""
    return BasicAccessList(LOOPBACK_ADDRESSES)


def request_address(request: Request | None) -> IPAddress:
    """Return the source address of *request*.

    Only the transport peer reported by the ASGI server is consulted;
    forwarding headers are client-controlled and ignored.

    Raises ``AddressLookupError`` if the peer is unknown or not an IP.
    """
    client = getattr(request, "client", None)
    if not client:
        msg = "request has no client address"
        raise AddressLookupError(msg)
    host = client[0]
    try:
        return _unmap(ipaddress.ip_address(host.split("%", 1)[0]))
    except ValueError as exc:
        msg = f"client address {host!r} is not an IP address"
        raise AddressLookupError(msg) from exc


def acl_authenticator(acl: AccessList) -> AdminAuthenticator:
    """Admin predicate derived from an access list.

    Address lookup failure denies.
    """

    def authenticate(request: Request | None) -> bool:
        try:
            address = request_address(request)
        except AddressLookupError:
            return False
        return acl.permitted(address)

    return authenticate


def _unmap(address: IPAddress) -> IPAddress:
    """Collapse IPv4-mapped IPv6 (``::ffff:127.0.0.1``) to plain IPv4."""
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address
