"""Tests for httpdebug.server.negotiation and the kida integration."""

import pytest

from httpdebug.http.response import PLAIN_TEXT, Response
from httpdebug.server.negotiation import negotiate
from httpdebug.templating.integration import get_environment, render_inline
from httpdebug.templating.returns import InlineTemplate


class TestNegotiate:
    def test_response_passes_through(self) -> None:
        response = Response("x")
        assert negotiate(response) is response

    def test_str_is_plain_text(self) -> None:
        response = negotiate("hello\n")
        assert response.content_type == PLAIN_TEXT
        assert response.text == "hello\n"

    def test_bytes(self) -> None:
        response = negotiate(b"\x00\x01")
        assert response.content_type == "application/octet-stream"

    def test_dict_is_json(self) -> None:
        response = negotiate({"threads": 3})
        assert response.content_type.startswith("application/json")
        assert response.text == '{"threads": 3}'

    def test_none_is_empty(self) -> None:
        response = negotiate(None)
        assert response.status == 200
        assert response.text == ""

    def test_status_tuple(self) -> None:
        response = negotiate(("gone\n", 410))
        assert response.status == 410
        assert response.text == "gone\n"

    def test_status_and_headers_tuple(self) -> None:
        response = negotiate(("x", 202, {"X-Job": "7"}))
        assert response.status == 202
        assert response.header("X-Job") == "7"

    def test_inline_template(self) -> None:
        response = negotiate(InlineTemplate("<b>{{ name }}</b>", name="heap"))
        assert response.content_type.startswith("text/html")
        assert response.text == "<b>heap</b>"

    def test_unsupported(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert"):
            negotiate(object())


class TestKida:
    def test_environment_is_shared(self) -> None:
        assert get_environment() is get_environment()

    def test_autoescape(self) -> None:
        html = render_inline(InlineTemplate("{{ v }}", v="<i>"))
        assert html == "&lt;i&gt;"

    def test_loop(self) -> None:
        tpl = InlineTemplate("{% for x in xs %}{{ x }},{% end %}", xs=[1, 2])
        assert render_inline(tpl) == "1,2,"
