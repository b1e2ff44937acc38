"""Query string parameters for debug endpoints (``?seconds=``, ``?debug=``)."""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs

_TRUTHY = frozenset({"true", "1", "yes", "on"})


class QueryParams(Mapping[str, str]):
    """Read-only query parameters; indexing gives the first value."""

    __slots__ = ("_query", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        self._query = query_string.decode("latin-1")
        self._values = parse_qs(self._query, keep_blank_values=True)

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._query!r})"

    @property
    def raw(self) -> str:
        """The undecoded query string."""
        return self._query

    def get_list(self, key: str) -> list[str]:
        return list(self._values.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Integer value of *key*, or *default* when absent or empty.

        Raises ``ValueError`` when the value is present but not numeric,
        so endpoints can answer 400 instead of silently using a default.
        """
        value = self.get(key)
        if not value:
            return default
        return int(value)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """``true``, ``1``, ``yes`` or ``on`` (any case) mean True."""
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in _TRUTHY
