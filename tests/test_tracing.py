"""Tests for httpdebug.tracing — traces, event logs, and their views."""

import pytest

from httpdebug import tracing
from httpdebug.http.request import Request
from httpdebug.tracing import events, trace
from httpdebug.tracing.handlers import event_request, trace_request
from httpdebug.templating.integration import render_inline
from httpdebug.templating.returns import InlineTemplate


def _request(query: str = "", client=("127.0.0.1", 1)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/debug/requests",
        "query_string": query.encode(),
        "client": client,
    }

    async def receive():
        return {"type": "http.request", "body": b""}

    return Request.from_asgi(scope, receive)


def _html(result) -> str:
    assert isinstance(result, InlineTemplate)
    return render_inline(result)


class TestTrace:
    def test_active_until_finished(self) -> None:
        tr = tracing.new_trace("svc", "one")
        assert trace.bucket("svc", "active") == [tr]
        tr.finish()
        assert trace.bucket("svc", "active") == []
        assert trace.bucket("svc", "completed") == [tr]
        assert not tr.active

    def test_finish_twice_is_harmless(self) -> None:
        tr = tracing.new_trace("svc", "one")
        tr.finish()
        tr.finish()
        assert trace.bucket("svc", "completed") == [tr]

    def test_errors_bucket(self) -> None:
        ok = tracing.new_trace("svc", "ok")
        bad = tracing.new_trace("svc", "bad")
        bad.set_error()
        ok.finish()
        bad.finish()
        assert trace.bucket("svc", "errors") == [bad]

    def test_retention_is_bounded(self) -> None:
        for i in range(trace.MAX_RETAINED + 5):
            tr = tracing.new_trace("svc", str(i))
            tr.set_error()
            tr.finish()
        completed = trace.bucket("svc", "completed")
        assert len(completed) == trace.MAX_RETAINED
        assert completed[0].title == str(trace.MAX_RETAINED + 4)
        assert len(trace.bucket("svc", "errors")) == trace.MAX_RETAINED

    def test_log_and_logf(self) -> None:
        tr = tracing.new_trace("svc", "one")
        tr.log("plain")
        tr.logf("n=%d", 3, sensitive=True)
        messages = [(e.message, e.sensitive) for e in tr.events]
        assert messages == [("plain", False), ("n=3", True)]

    def test_summaries(self) -> None:
        tracing.new_trace("b", "x")
        done = tracing.new_trace("a", "y")
        done.finish()
        summary = trace.summaries()
        assert [s.name for s in summary] == ["a", "b"]
        assert (summary[0].active, summary[0].completed) == (0, 1)
        assert summary[1].active == 1

    def test_unknown_bucket(self) -> None:
        with pytest.raises(KeyError):
            trace.bucket("svc", "recent")

    def test_unknown_family_is_empty(self) -> None:
        assert trace.bucket("nobody", "active") == []


class TestEventLog:
    def test_printf_and_errorf(self) -> None:
        log = tracing.new_event_log("worker", "w1")
        log.printf("started %s", "ok")
        assert not log.errored
        log.errorf("failed: %r", "boom")
        assert log.errored
        assert [e.message for e in log.events] == ["started ok", "failed: 'boom'"]
        assert [e.is_error for e in log.events] == [False, True]

    def test_bounded(self) -> None:
        log = tracing.new_event_log("worker", "w1")
        for i in range(events.MAX_EVENTS + 10):
            log.printf("%d", i)
        assert len(log.events) == events.MAX_EVENTS
        assert log.events[0].message == "10"

    def test_finish_removes(self) -> None:
        log = tracing.new_event_log("worker", "w1")
        assert events.families() == {"worker": (1, 0)}
        log.finish()
        assert events.families() == {}

    def test_errors_only(self) -> None:
        good = tracing.new_event_log("worker", "good")
        bad = tracing.new_event_log("worker", "bad")
        bad.errorf("nope")
        assert events.logs("worker") == [good, bad]
        assert events.logs("worker", errors_only=True) == [bad]


class TestDefaultAuth:
    def test_loopback_gets_everything(self) -> None:
        assert tracing.default_auth_request(_request()) == (True, True)
        assert tracing.default_auth_request(_request(client=("::1", 1))) == (True, True)

    def test_others_get_nothing(self) -> None:
        assert tracing.default_auth_request(_request(client=("8.8.8.8", 1))) == (False, False)

    def test_missing_peer(self) -> None:
        assert tracing.default_auth_request(_request(client=None)) == (False, False)

    def test_install_and_reset(self) -> None:
        tracing.install_auth(lambda request: (True, False))
        assert tracing.auth_request(_request(client=("8.8.8.8", 1))) == (True, False)
        tracing.reset_auth()
        assert tracing.auth_request(_request(client=("8.8.8.8", 1))) == (False, False)


class TestTraceView:
    def test_unauthorized_renders_nothing(self) -> None:
        tracing.install_auth(lambda request: (False, True))
        response = trace_request(_request())
        assert response.status == 401
        assert response.text == "Unauthorized\n"

    def test_family_overview(self) -> None:
        tracing.new_trace("svc.Get", "/a")
        html = _html(trace_request(_request()))
        assert "svc.Get" in html

    def test_redacted_without_sensitive_access(self) -> None:
        tracing.install_auth(lambda request: (True, False))
        tr = tracing.new_trace("svc", "/a")
        tr.log("token=abc", sensitive=True)
        tr.log("step two")
        html = _html(trace_request(_request("fam=svc&b=active&exp=1")))
        assert "token=abc" not in html
        assert "[redacted]" in html
        assert "step two" in html

    def test_shown_with_sensitive_access(self) -> None:
        tracing.install_auth(lambda request: (True, True))
        tr = tracing.new_trace("svc", "/a")
        tr.log("token=abc", sensitive=True)
        html = _html(trace_request(_request("fam=svc&b=active&exp=1")))
        assert "token=abc" in html

    def test_events_hidden_unless_expanded(self) -> None:
        tr = tracing.new_trace("svc", "/a")
        tr.log("detail")
        html = _html(trace_request(_request("fam=svc&b=active")))
        assert "/a" in html
        assert "detail" not in html

    def test_output_is_escaped(self) -> None:
        tr = tracing.new_trace("svc", "<script>alert(1)</script>")
        tr.finish()
        html = _html(trace_request(_request("fam=svc&b=completed")))
        assert "<script>alert" not in html
        assert "&lt;script&gt;" in html

    def test_bad_bucket(self) -> None:
        tracing.new_trace("svc", "/a")
        assert trace_request(_request("fam=svc&b=recent")).status == 400


class TestEventView:
    def test_unauthorized(self) -> None:
        tracing.install_auth(lambda request: (False, False))
        assert event_request(_request()).status == 401

    def test_lists_logs(self) -> None:
        log = tracing.new_event_log("conn", "10.0.0.1:5000")
        log.printf("opened")
        log.errorf("reset by peer")
        html = _html(event_request(_request("fam=conn&b=all")))
        assert "10.0.0.1:5000" in html
        assert "opened" in html
        assert "reset by peer" in html

    def test_errors_bucket(self) -> None:
        tracing.new_event_log("conn", "quiet").printf("fine")
        tracing.new_event_log("conn", "loud").errorf("bad")
        html = _html(event_request(_request("fam=conn&b=errors")))
        assert "loud" in html
        assert "quiet" not in html

    def test_bad_bucket(self) -> None:
        assert event_request(_request("b=sometimes")).status == 400
