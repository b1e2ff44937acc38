"""Return types for handlers that render HTML.

Handlers return ``InlineTemplate`` and the negotiation layer renders it
with kida. The built-in profiling and tracing pages use it; ad-hoc
endpoints can too.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class InlineTemplate:
    """A kida template rendered from a string source.

    Usage::

        def index(request):
            return InlineTemplate("<h1>{{ title }}</h1>", title="Profiles")
    """

    source: str
    context: dict[str, Any] = field(default_factory=dict)

    def __init__(self, source: str, /, **context: Any) -> None:
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "context", context)
