"""Shared fixtures: every test starts with no process multiplexer, the
default trace authorization hook, and empty profile/trace registries."""

from collections.abc import Iterator

import pytest

from httpdebug import process
from httpdebug.profiling import profiles
from httpdebug.tracing import events, trace


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _clean_process_state() -> Iterator[None]:
    process._reset()
    profiles._reset()
    trace._reset()
    events._reset()
    yield
    process._reset()
    profiles._reset()
    trace._reset()
    events._reset()

