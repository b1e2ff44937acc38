"""Invoke helpers — call sync or async handlers uniformly.

Debug handlers can be ``def`` or ``async def``. Any code that calls
a user-provided handler must handle both cases. This module provides
a single helper so the sync/async check lives in exactly one place.

Sync handlers run on a worker thread so a slow one (a CPU profile,
a blocking lookup) never stalls the event loop, and so the request
timeout can abandon it.

Usage::

    from httpdebug._internal.invoke import invoke

    result = await invoke(handler, *args, **kwargs)
"""

import functools
import inspect
from typing import Any

import anyio.to_thread


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine.

    Works with both sync and async callables::

        # sync: runs on a worker thread
        def cmdline(request):
            return " ".join(sys.argv)

        # async: awaited on the event loop
        async def slow(request):
            await anyio.sleep(1)
            return "done"
    """
    if inspect.iscoroutinefunction(handler):
        return await handler(*args, **kwargs)

    call = functools.partial(handler, *args, **kwargs)
    result = await anyio.to_thread.run_sync(call, abandon_on_cancel=True)
    if inspect.isawaitable(result):
        result = await result
    return result
