"""Shared pytest configuration for httpdebug examples.

Provides the ``example_module`` fixture that loads the ``app.py`` file in
the same directory as the test. The process-wide debug multiplexer is
reset first, so each test may build its own.
"""

import importlib.util
from collections.abc import Iterator
from pathlib import Path
from types import ModuleType

import pytest

from httpdebug import process
from httpdebug.profiling import profiles
from httpdebug.tracing import events, trace


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def example_module(request: pytest.FixtureRequest) -> Iterator[ModuleType]:
    """Load the sibling app.py next to the test file."""
    process._reset()
    profiles._reset()
    trace._reset()
    events._reset()

    app_path = Path(request.path).parent / "app.py"
    module_name = f"example_{app_path.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    yield module
    process._reset()
