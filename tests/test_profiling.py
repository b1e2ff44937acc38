"""Tests for httpdebug.profiling — profiles, sampler, and endpoints."""

import sys
import threading
import time
import tracemalloc

import pytest

from httpdebug.config import DebugConfig
from httpdebug.mux import DebugMux
from httpdebug.profiling import lookup, new_profile, profiles
from httpdebug.profiling.handlers import allocation_trace
from httpdebug.profiling.sampler import render_folded, sample
from httpdebug.testing import TestClient


def _add_from_helper(profile, value) -> None:
    profile.add(value, skip=1)


class TestProfile:
    def test_new_profile_is_registered(self) -> None:
        profile = new_profile("myapp/conns")
        assert lookup("myapp/conns") is profile
        assert "myapp/conns" in [p.name for p in profiles()]

    def test_duplicate_name(self) -> None:
        new_profile("dup")
        with pytest.raises(ValueError, match="already exists"):
            new_profile("dup")

    def test_builtin_names_are_taken(self) -> None:
        with pytest.raises(ValueError):
            new_profile("threads")

    @pytest.mark.parametrize("name", ["", "/lead", "trail/"])
    def test_invalid_names(self, name) -> None:
        with pytest.raises(ValueError):
            new_profile(name)

    def test_add_remove_count(self) -> None:
        profile = new_profile("things")
        a, b = object(), object()
        profile.add(a)
        profile.add(b)
        assert profile.count() == 2
        profile.remove(a)
        assert profile.count() == 1
        profile.remove(a)
        assert profile.count() == 1

    def test_duplicate_value(self) -> None:
        profile = new_profile("things")
        value = object()
        profile.add(value)
        with pytest.raises(ValueError, match="added twice"):
            profile.add(value)

    def test_stack_records_caller(self) -> None:
        profile = new_profile("things")
        profile.add("v")
        (stack,) = profile.stacks()
        assert stack[-1].name == "test_stack_records_caller"

    def test_skip_drops_helper_frames(self) -> None:
        profile = new_profile("things")
        _add_from_helper(profile, "v")
        (stack,) = profile.stacks()
        assert stack[-1].name == "test_skip_drops_helper_frames"

    def test_write_groups_identical_stacks(self) -> None:
        profile = new_profile("things")
        for i in range(3):
            profile.add(i)
        text = profile.write(debug=1)
        assert text.startswith("things profile: total 3\n")
        assert "\n3 @\n" in text

    def test_write_folded(self) -> None:
        profile = new_profile("things")
        profile.add("v")
        line = profile.write(debug=0).strip()
        assert line.endswith(" 1")
        assert "test_write_folded" in line


class TestBuiltins:
    def test_threads(self) -> None:
        threads = lookup("threads")
        assert threads is not None
        assert threads.count() >= 1
        assert "test_threads" in threads.write(debug=1)

    def test_threads_full_dump(self) -> None:
        text = lookup("threads").write(debug=2)
        assert f"thread {threading.current_thread().name}" in text

    def test_builtins_cannot_be_added_to(self) -> None:
        with pytest.raises(TypeError):
            lookup("threads").add("x")
        with pytest.raises(TypeError):
            lookup("heap").add("x")

    def test_heap_without_tracemalloc(self) -> None:
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already running")
        assert "not tracing" in lookup("heap").write()

    def test_heap_with_tracemalloc(self) -> None:
        was_tracing = tracemalloc.is_tracing()
        if not was_tracing:
            tracemalloc.start()
        try:
            keep = [bytearray(1024) for _ in range(10)]
            text = lookup("heap").write(debug=1)
            assert text.startswith("heap profile:")
            assert keep
        finally:
            if not was_tracing:
                tracemalloc.stop()


class TestSampler:
    def test_samples_other_threads(self) -> None:
        stop = threading.Event()

        def busy_worker() -> None:
            while not stop.is_set():
                time.sleep(0.001)

        worker = threading.Thread(target=busy_worker, name="busy")
        worker.start()
        try:
            counts = sample(0.1, interval=0.005)
        finally:
            stop.set()
            worker.join()

        assert any(stack.startswith("busy;") and "busy_worker" in stack for stack in counts)
        text = render_folded(counts)
        assert text.endswith("\n")

    def test_allocation_trace(self) -> None:
        text = allocation_trace(0.01)
        assert text.startswith("allocation trace: 0.01s")


class TestAllocationTracing:
    def test_overlapping_traces_share_tracing(self) -> None:
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already running")
        results: dict[str, str] = {}
        failures: list[BaseException] = []

        def run(label: str, seconds: float) -> None:
            try:
                results[label] = allocation_trace(seconds)
            except BaseException as exc:  # noqa: BLE001
                failures.append(exc)

        first = threading.Thread(target=run, args=("first", 0.2))
        second = threading.Thread(target=run, args=("second", 0.3))
        first.start()
        time.sleep(0.05)
        second.start()
        first.join()
        second.join()

        assert failures == []
        assert results["first"].startswith("allocation trace: 0.2s")
        assert results["second"].startswith("allocation trace: 0.3s")
        assert not tracemalloc.is_tracing()

    def test_heap_profile_during_trace(self) -> None:
        if tracemalloc.is_tracing():
            pytest.skip("tracemalloc already running")
        tracer = threading.Thread(target=allocation_trace, args=(0.2,))
        tracer.start()
        time.sleep(0.05)
        text = lookup("heap").write(debug=1)
        tracer.join()
        assert text.startswith("heap profile: ")
        assert "not tracing" not in text
        assert not tracemalloc.is_tracing()

    def test_tracing_started_elsewhere_is_left_running(self) -> None:
        was_tracing = tracemalloc.is_tracing()
        if not was_tracing:
            tracemalloc.start()
        try:
            allocation_trace(0.01)
            assert tracemalloc.is_tracing()
        finally:
            if not was_tracing:
                tracemalloc.stop()


@pytest.mark.anyio
class TestEndpoints:
    @pytest.fixture
    def client(self) -> TestClient:
        mux = DebugMux(DebugConfig(max_profile_seconds=1))
        mux.register()
        return TestClient(mux)

    async def test_index_html(self, client) -> None:
        new_profile("app/<widgets>")
        response = await client.get("/debug/pprof")
        assert response.status == 200
        assert response.content_type.startswith("text/html")
        assert "threads" in response.text
        assert "app/&lt;widgets&gt;" in response.text

    async def test_index_plain(self, client) -> None:
        new_profile("app/conns").add("c")
        response = await client.get("/debug/pprof/?debug=1")
        assert response.content_type.startswith("text/plain")
        assert "1\tapp/conns\n" in response.text

    async def test_cmdline(self, client) -> None:
        response = await client.get("/debug/pprof/cmdline")
        assert response.status == 200
        assert response.text == "\x00".join(sys.orig_argv)

    async def test_profile(self, client) -> None:
        response = await client.get("/debug/pprof/profile?seconds=1")
        assert response.status == 200
        assert response.header("content-disposition") == 'attachment; filename="profile"'

    @pytest.mark.parametrize("seconds", ["abc", "0", "-3"])
    async def test_profile_bad_seconds(self, client, seconds) -> None:
        response = await client.get(f"/debug/pprof/profile?seconds={seconds}")
        assert response.status == 400

    async def test_trace(self, client) -> None:
        response = await client.get("/debug/pprof/trace?seconds=1")
        assert response.status == 200
        assert response.text.startswith("allocation trace: 1s")

    async def test_trace_bad_seconds(self, client) -> None:
        assert (await client.get("/debug/pprof/trace?seconds=x")).status == 400

    async def test_symbol_get_without_names(self, client) -> None:
        response = await client.get("/debug/pprof/symbol")
        assert response.text == "num_symbols: 1\n"

    async def test_symbol_lookup(self, client) -> None:
        response = await client.get("/debug/pprof/symbol?json.dumps+no.such.thing")
        lines = response.text.splitlines()
        assert lines[0] == "num_symbols: 1"
        assert lines[1].startswith("json.dumps ")
        assert "json" in lines[1] and lines[1].rsplit(":", 1)[1].isdigit()
        assert lines[2] == "no.such.thing ??"

    async def test_symbol_post(self, client) -> None:
        response = await client.post("/debug/pprof/symbol", body=b"json:dumps")
        assert response.text.splitlines()[1].startswith("json:dumps ")

    async def test_named_builtin(self, client) -> None:
        response = await client.get("/debug/pprof/threads?debug=1")
        assert response.status == 200
        assert "threads profile: total" in response.text

    async def test_named_builtin_download(self, client) -> None:
        response = await client.get("/debug/pprof/heap")
        assert response.status == 200
        assert "attachment" in response.header("content-disposition")

    async def test_unknown_profile_is_404(self, client) -> None:
        assert (await client.get("/debug/pprof/nope")).status == 404

    async def test_custom_profile_needs_add_profile(self, client) -> None:
        new_profile("custom")
        assert (await client.get("/debug/pprof/custom")).status == 404

    async def test_bad_debug_value(self, client) -> None:
        assert (await client.get("/debug/pprof/threads?debug=x")).status == 400
