"""HTTP endpoints for the profiling subsystem.

Every endpoint is a plain handler; the multiplexer wraps each one in the
guard pipeline before it is routed. Blocking endpoints (``profile``,
``trace``) are sync and run in a worker thread.
"""

import inspect
import pkgutil
import sys
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote_plus

from httpdebug.http.request import Request
from httpdebug.http.response import PLAIN_TEXT, Response, error_response
from httpdebug.profiling import profiles, sampler
from httpdebug.templating.returns import InlineTemplate

INDEX_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head><title>{{ prefix }}/pprof/</title></head>
<body>
<h1>{{ prefix }}/pprof/</h1>
<p>Profile descriptions:</p>
<table>
<thead><tr><th>Count</th><th>Profile</th></tr></thead>
<tbody>
{% for p in profiles %}<tr><td>{{ p.count }}</td><td><a href="{{ prefix }}/pprof/{{ p.name }}?debug=1">{{ p.name }}</a></td></tr>
{% end %}</tbody>
</table>
<ul>
<li><a href="{{ prefix }}/pprof/cmdline">cmdline</a>: the command line of this process</li>
<li><a href="{{ prefix }}/pprof/profile?seconds=30">profile</a>: sampled CPU profile, folded stacks</li>
<li><a href="{{ prefix }}/pprof/symbol">symbol</a>: resolve dotted names to source locations</li>
<li><a href="{{ prefix }}/pprof/trace?seconds=5">trace</a>: allocations made during the interval</li>
</ul>
</body>
</html>
"""

DEFAULT_PROFILE_SECONDS = 30
DEFAULT_TRACE_SECONDS = 1
TRACE_TOP = 50


class _Row:
    __slots__ = ("count", "name")

    def __init__(self, profile: profiles.Profile) -> None:
        self.name = profile.name
        self.count = profile.count()


def _seconds(request: Request, default: int, limit: int) -> float | Response:
    try:
        seconds = request.query.get_int("seconds", default)
    except ValueError:
        return error_response(400)
    if seconds is None or seconds <= 0:
        return error_response(400)
    return float(min(seconds, limit))


def _write_profile(profile: profiles.Profile, request: Request) -> Response:
    try:
        debug = request.query.get_int("debug", 0) or 0
    except ValueError:
        return error_response(400)
    body = profile.write(debug)
    response = Response(body=body, content_type=PLAIN_TEXT).with_header(
        "X-Content-Type-Options", "nosniff"
    )
    if debug <= 0:
        response = response.with_header(
            "Content-Disposition", f'attachment; filename="{profile.name.replace("/", "_")}"'
        )
    return response


def make_endpoints(prefix: str, max_seconds: int) -> dict[str, Callable[..., Any]]:
    """Build the profiling endpoint table, keyed by full path pattern."""

    def index(request: Request) -> InlineTemplate | str:
        rows = [_Row(p) for p in profiles.profiles()]
        if request.query.get_bool("debug"):
            return "".join(f"{row.count}\t{row.name}\n" for row in rows)
        return InlineTemplate(INDEX_TEMPLATE, prefix=prefix, profiles=rows)

    def cmdline() -> Response:
        return Response(body="\x00".join(sys.orig_argv), content_type=PLAIN_TEXT)

    def profile(request: Request) -> Response:
        seconds = _seconds(request, DEFAULT_PROFILE_SECONDS, max_seconds)
        if isinstance(seconds, Response):
            return seconds
        counts = sampler.sample(seconds)
        return Response(body=sampler.render_folded(counts), content_type=PLAIN_TEXT).with_header(
            "Content-Disposition", 'attachment; filename="profile"'
        )

    def trace(request: Request) -> Response:
        seconds = _seconds(request, DEFAULT_TRACE_SECONDS, max_seconds)
        if isinstance(seconds, Response):
            return seconds
        return Response(body=allocation_trace(seconds), content_type=PLAIN_TEXT)

    def named(request: Request, name: str) -> Response:
        if name not in profiles.BUILTIN_NAMES:
            return error_response(404)
        found = profiles.lookup(name)
        if found is None:
            return error_response(404)
        return _write_profile(found, request)

    base = f"{prefix}/pprof"
    return {
        base: index,
        f"{base}/cmdline": cmdline,
        f"{base}/profile": profile,
        f"{base}/symbol": symbol,
        f"{base}/trace": trace,
        f"{base}/{{name:path}}": named,
    }


def profile_endpoint(name: str) -> Callable[[Request], Response]:
    """Endpoint for a single application profile.

    The profile is looked up per request, so the route answers 404 until
    ``new_profile(name)`` has been called.
    """

    def serve_profile(request: Request) -> Response:
        found = profiles.lookup(name)
        if found is None:
            return error_response(404)
        return _write_profile(found, request)

    serve_profile.__qualname__ = f"profile[{name}]"
    return serve_profile


async def symbol(request: Request) -> Response:
    """Resolve dotted names (``package.module:attr``) to source locations.

    GET without names reports that lookup is supported. Names come from
    the query string or a POST body, separated by ``+`` or whitespace.
    """
    if request.method == "POST":
        raw = unquote_plus((await request.text()).strip())
    else:
        raw = unquote_plus(request.query.raw)

    lines = ["num_symbols: 1\n"]
    for name in raw.split():
        lines.append(f"{name} {_locate(name)}\n")
    return Response(body="".join(lines), content_type=PLAIN_TEXT)


def _locate(name: str) -> str:
    try:
        target = pkgutil.resolve_name(name)
    except (ImportError, AttributeError, ValueError):
        return "??"
    target = inspect.unwrap(target) if callable(target) else target
    try:
        filename = inspect.getsourcefile(target) or inspect.getfile(target)
        _, lineno = inspect.getsourcelines(target)
    except (OSError, TypeError):
        return "??"
    return f"{filename}:{lineno}"


def allocation_trace(seconds: float, top: int = TRACE_TOP) -> str:
    """Allocations made during the next *seconds*, largest growth first.

    Runs tracemalloc for the interval if it is not already running;
    overlapping traces share one tracing session.
    """
    with profiles.tracing_allocations():
        before = profiles.take_snapshot()
        time.sleep(seconds)
        after = profiles.take_snapshot()
    if before is None or after is None:
        return "allocation trace: tracemalloc was stopped during the interval\n"

    stats = after.compare_to(before, "lineno")[:top]
    header = f"allocation trace: {seconds:g}s, top {len(stats)} sites\n"
    return header + "".join(f"{stat}\n" for stat in stats)
