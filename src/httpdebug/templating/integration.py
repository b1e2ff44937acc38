"""Kida environment for debug pages.

One environment per process, created on first use. Autoescaping is always
on: trace titles and log lines come from the application and must never be
interpreted as markup.
"""

import threading
from functools import lru_cache

from kida import Environment

from httpdebug.templating.returns import InlineTemplate

_render_lock = threading.Lock()


@lru_cache(maxsize=1)
def get_environment() -> Environment:
    """Return the shared kida environment."""
    return Environment(autoescape=True)


@lru_cache(maxsize=64)
def _compile(source: str) -> object:
    return get_environment().from_string(source)


def render_inline(tpl: InlineTemplate) -> str:
    """Render an ``InlineTemplate`` to HTML.

    Sources are compiled once and cached; the built-in pages reuse a
    handful of module-level template strings.
    """
    with _render_lock:
        template = _compile(tpl.source)
    return template.render(tpl.context)  # type: ignore[attr-defined]
