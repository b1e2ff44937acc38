"""Trie-based router with copy-on-write publication.

Routes can be added before and after the debug multiplexer is set up.
Every ``add()`` builds a new trie from the full route list and swaps it
in with a single reference assignment, so ``match()`` running on another
thread always walks a complete, immutable snapshot.

At each level a static segment is tried first, then a ``{param}``, then a
``{name:path}`` catch-all. A dead end backtracks to the next candidate.
"""

import re
import threading
from dataclasses import dataclass, field

from httpdebug.errors import ConfigurationError, MethodNotAllowed, NotFound
from httpdebug.routing.params import CONVERTERS
from httpdebug.routing.route import ANY_METHOD, PathSegment, Route, RouteMatch

_PARAM = re.compile(r"^\{(?P<name>\w+)(?::(?P<type>\w+))?\}$")


def _split(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route pattern into segments.

    ``"/debug/pprof/{name:path}"`` gives two static segments and a
    ``path`` parameter called ``name``.

    Raises ``ConfigurationError`` for ``<param>`` syntax or an unknown
    converter.
    """
    segments: list[PathSegment] = []
    for part in _split(path):
        if part.startswith("<") and part.endswith(">"):
            msg = f"Route {path!r} uses <param> syntax; use {{param}} instead."
            raise ConfigurationError(msg)
        found = _PARAM.match(part)
        if found is None:
            segments.append(PathSegment(value=part))
            continue
        param_type = found["type"] or "str"
        if param_type not in CONVERTERS:
            msg = f"Route {path!r} uses unknown converter {param_type!r}."
            raise ConfigurationError(msg)
        segments.append(PathSegment(part, True, found["name"], param_type))
    return segments


@dataclass(slots=True)
class _Node:
    """One trie level. Only mutated while a snapshot is being built."""

    static: dict[str, "_Node"] = field(default_factory=dict)
    # (name, segment regex, child); one parameter shape per level
    param: tuple[str, re.Pattern[str], "_Node"] | None = None
    # (name, routes by method) for a trailing {name:path}
    rest: tuple[str, dict[str, Route]] | None = None
    routes: dict[str, Route] = field(default_factory=dict)

    def insert(self, route: Route) -> None:
        node = self
        for seg in parse_path(route.path):
            if seg.param_type == "path" and seg.is_param:
                if node.rest is None:
                    node.rest = (seg.param_name or "path", {})
                node.rest[1].update(dict.fromkeys(route.method_keys, route))
                return
            if seg.is_param:
                if node.param is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param = (seg.param_name or "", re.compile(f"^{pattern}$"), _Node())
                node = node.param[2]
            else:
                node = node.static.setdefault(seg.value, _Node())
        node.routes.update(dict.fromkeys(route.method_keys, route))

    def find(
        self, parts: list[str], index: int, params: dict[str, str]
    ) -> tuple[dict[str, Route], dict[str, str]] | None:
        """Routes-by-method for *parts* plus captured params, or ``None``."""
        if index == len(parts):
            return (self.routes, params) if self.routes else None

        part = parts[index]
        child = self.static.get(part)
        if child is not None:
            found = child.find(parts, index + 1, params)
            if found is not None:
                return found

        if self.param is not None:
            name, regex, child = self.param
            if regex.match(part):
                found = child.find(parts, index + 1, {**params, name: part})
                if found is not None:
                    return found

        if self.rest is not None:
            name, routes = self.rest
            return routes, {**params, name: "/".join(parts[index:])}

        return None


def _key(path: str) -> str:
    return "/" + "/".join(_split(path))


class Router:
    """Trie-based router that accepts routes at any time.

    Usage::

        router = Router()
        router.add(Route("/debug/pprof", index))
        router.add(Route("/debug/pprof/{name:path}", named))
        match = router.match("GET", "/debug/pprof/threads")
    """

    __slots__ = ("_lock", "_root", "_routes")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._root = _Node()
        self._routes: tuple[Route, ...] = ()

    def add(self, route: Route) -> None:
        """Add *route* and publish a new snapshot.

        Raises ``ConfigurationError`` if the same pattern is already
        registered for an overlapping set of methods.
        """
        key = _key(route.path)
        with self._lock:
            for existing in self._routes:
                if _key(existing.path) != key:
                    continue
                methods = existing.method_keys | route.method_keys
                if ANY_METHOD in methods or existing.method_keys & route.method_keys:
                    msg = f"multiple registrations for {route.path!r}"
                    raise ConfigurationError(msg)

            routes = (*self._routes, route)
            root = _Node()
            for r in routes:
                root.insert(r)
            self._root, self._routes = root, routes

    @property
    def routes(self) -> list[Route]:
        """Registered routes, in registration order."""
        return list(self._routes)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        key = _key(path)
        return any(_key(r.path) == key for r in self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def match(self, method: str, path: str) -> RouteMatch:
        """Match against the current snapshot.

        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        found = self._root.find(_split(path), 0, {})
        if found is None:
            raise NotFound(f"No route matches {method} {path!r}")

        by_method, params = found
        route = by_method.get(method) or by_method.get(ANY_METHOD)
        if route is None:
            raise MethodNotAllowed(frozenset(by_method))
        return RouteMatch(route=route, path_params=params)
