"""HTML views of traces and event logs.

Both handlers consult the process-wide authorization hook first: no
access answers 401 and renders nothing; without sensitive access the
sensitive log lines are replaced by ``[redacted]``.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from httpdebug.http.request import Request
from httpdebug.http.response import Response, error_response
from httpdebug.templating.returns import InlineTemplate
from httpdebug.tracing import events as event_logs
from httpdebug.tracing import trace as traces
from httpdebug.tracing.auth import auth_request
from httpdebug.tracing.trace import Event

REDACTED = "[redacted]"

REQUESTS_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head><title>requests</title></head>
<body>
<h1>requests</h1>
<table>
<thead><tr><th>Family</th><th>Active</th><th>Completed</th><th>Errors</th></tr></thead>
<tbody>
{% for f in families %}<tr>
<td>{{ f.name }}</td>
<td><a href="?fam={{ f.name }}&b=active">{{ f.active }}</a></td>
<td><a href="?fam={{ f.name }}&b=completed">{{ f.completed }}</a></td>
<td><a href="?fam={{ f.name }}&b=errors">{{ f.errors }}</a></td>
</tr>
{% end %}</tbody>
</table>
{% if family %}
<h2>{{ family }}: {{ bucket }}</h2>
<table>
<thead><tr><th>When</th><th>Elapsed (s)</th><th>Title</th></tr></thead>
<tbody>
{% for t in traces %}<tr class="{{ t.state }}"><td>{{ t.when }}</td><td>{{ t.elapsed }}</td><td>{{ t.title }}</td></tr>
{% if expanded %}{% for e in t.events %}<tr><td>{{ e.when }}</td><td>{{ e.elapsed }}</td><td>. {{ e.message }}</td></tr>
{% end %}{% end %}{% end %}</tbody>
</table>
{% end %}
</body>
</html>
"""

EVENTS_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head><title>events</title></head>
<body>
<h1>events</h1>
<table>
<thead><tr><th>Family</th><th>Logs</th><th>With errors</th></tr></thead>
<tbody>
{% for f in families %}<tr>
<td>{{ f.name }}</td>
<td><a href="?fam={{ f.name }}&b=all">{{ f.count }}</a></td>
<td><a href="?fam={{ f.name }}&b=errors">{{ f.errors }}</a></td>
</tr>
{% end %}</tbody>
</table>
{% if family %}
<h2>{{ family }}: {{ bucket }}</h2>
{% for log in logs %}<h3>{{ log.title }}</h3>
<table>
{% for e in log.events %}<tr class="{{ e.state }}"><td>{{ e.when }}</td><td>{{ e.elapsed }}</td><td>{{ e.message }}</td></tr>
{% end %}</table>
{% end %}{% end %}
</body>
</html>
"""


@dataclass(frozen=True, slots=True)
class EventView:
    when: str
    elapsed: str
    message: str
    state: str


@dataclass(frozen=True, slots=True)
class TraceView:
    title: str
    when: str
    elapsed: str
    state: str
    events: list[EventView]


@dataclass(frozen=True, slots=True)
class LogView:
    title: str
    events: list[EventView]


@dataclass(frozen=True, slots=True)
class FamilyCount:
    name: str
    count: int
    errors: int


def _timestamp(when: float) -> str:
    return datetime.fromtimestamp(when, UTC).strftime("%Y/%m/%d %H:%M:%S.%f")


def _event_view(event: Event, sensitive: bool) -> EventView:
    message = REDACTED if event.sensitive and not sensitive else event.message
    return EventView(
        when=_timestamp(event.when),
        elapsed=f"{event.elapsed:.6f}",
        message=message,
        state="error" if event.is_error else "ok",
    )


def _trace_view(tr: traces.Trace, sensitive: bool, expanded: bool) -> TraceView:
    if tr.active:
        state = "active"
    else:
        state = "error" if tr.errored else "ok"
    return TraceView(
        title=tr.title,
        when=_timestamp(tr.started),
        elapsed=f"{tr.elapsed:.6f}",
        state=state,
        events=[_event_view(e, sensitive) for e in tr.events] if expanded else [],
    )


def trace_request(request: Request) -> InlineTemplate | Response:
    """``/requests``: family overview, then ``?fam=&b=`` lists a bucket."""
    allowed, sensitive = auth_request(request)
    if not allowed:
        return error_response(401)

    family = request.query.get("fam", "") or ""
    bucket_name = request.query.get("b", "active") or "active"
    expanded = request.query.get_bool("exp")

    listed: list[TraceView] = []
    if family:
        try:
            found = traces.bucket(family, bucket_name)
        except KeyError:
            return error_response(400)
        listed = [_trace_view(tr, sensitive, expanded) for tr in found]

    return InlineTemplate(
        REQUESTS_TEMPLATE,
        families=traces.summaries(),
        family=family,
        bucket=bucket_name,
        traces=listed,
        expanded=expanded,
    )


def event_request(request: Request) -> InlineTemplate | Response:
    """``/events``: family overview, then ``?fam=&b=all|errors`` lists logs."""
    allowed, sensitive = auth_request(request)
    if not allowed:
        return error_response(401)

    family = request.query.get("fam", "") or ""
    bucket_name = request.query.get("b", "all") or "all"
    if bucket_name not in ("all", "errors"):
        return error_response(400)

    listed: list[LogView] = []
    if family:
        listed = [
            LogView(log.title, [_event_view(e, sensitive) for e in log.events])
            for log in event_logs.logs(family, errors_only=bucket_name == "errors")
        ]

    return InlineTemplate(
        EVENTS_TEMPLATE,
        families=[
            FamilyCount(name, count, errors)
            for name, (count, errors) in event_logs.families().items()
        ],
        family=family,
        bucket=bucket_name,
        logs=listed,
    )
