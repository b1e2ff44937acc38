"""Tests for the basic example."""

import pytest

from httpdebug import DebugConfig, process
from httpdebug.testing import TestClient


@pytest.mark.anyio
class TestBasicExample:
    async def test_index_is_public(self, example_module) -> None:
        app = example_module.create_app()
        client = TestClient(app, client=("203.0.113.9", 4000))
        response = await client.get("/")
        assert response.status == 200
        assert response.text == "Hello, world.\r\n"

    async def test_debug_index_from_loopback(self, example_module) -> None:
        app = example_module.create_app()
        response = await TestClient(app).get("/debug/pprof")
        assert response.status == 200
        assert "threads" in response.text

    async def test_debug_refused_from_elsewhere(self, example_module) -> None:
        app = example_module.create_app()
        client = TestClient(app, client=("203.0.113.9", 4000))
        response = await client.get("/debug/pprof")
        assert response.status == 403
        assert response.text == "Forbidden\n"

    async def test_disabled_groups_are_absent(self, example_module) -> None:
        app = example_module.create_app(
            DebugConfig(pprof_enabled=False, trace_enabled=False)
        )
        client = TestClient(app)
        assert (await client.get("/debug/pprof")).status == 404
        assert (await client.get("/debug/requests")).status == 404

    async def test_index_requests_are_traced(self, example_module) -> None:
        app = example_module.create_app()
        client = TestClient(app)
        await client.get("/")
        response = await client.get("/debug/requests?fam=example.Index&b=completed&exp=1")
        assert response.status == 200
        assert "example.Index" in response.text
        # Loopback is not an admin until local_admin() is called
        assert "[redacted]" in response.text

    async def test_timeout_from_config(self, example_module) -> None:
        example_module.create_app(DebugConfig(request_timeout=2.5))
        assert process.current().config.request_timeout == 2.5


class TestParseConfig:
    def test_defaults(self, example_module) -> None:
        config = example_module.parse_config([])
        assert (config.host, config.port) == ("127.0.0.1", 8080)
        assert config.pprof_enabled is False
        assert config.trace_enabled is False
        assert config.request_timeout == 0.0

    def test_flags(self, example_module) -> None:
        config = example_module.parse_config(["-a", "0.0.0.0:9000", "-p", "-r", "-t", "5"])
        assert (config.host, config.port) == ("0.0.0.0", 9000)
        assert config.pprof_enabled and config.trace_enabled
        assert config.request_timeout == 5.0

    def test_bare_port_keeps_loopback(self, example_module) -> None:
        config = example_module.parse_config(["-a", ":9001"])
        assert (config.host, config.port) == ("127.0.0.1", 9001)
