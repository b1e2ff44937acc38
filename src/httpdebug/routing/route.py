"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Key used in the trie for routes that accept every method
ANY_METHOD = "*"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/pprof``  (is_param=False)
    Param:   ``/{name}`` (is_param=True, param_name="name")
    Typed:   ``/{name:path}`` (is_param=True, param_name="name", param_type="path")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    ``methods=None`` accepts any HTTP method, which is what debug
    endpoints want (``symbol`` answers both GET and POST).
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str] | None = None
    name: str | None = None

    @property
    def method_keys(self) -> frozenset[str]:
        """Methods this route is stored under in the trie."""
        return self.methods if self.methods is not None else frozenset({ANY_METHOD})


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
