"""Statistical CPU sampler.

Polls ``sys._current_frames()`` at a fixed interval and counts identical
stacks. The output is the folded-stack format understood by
``flamegraph.pl`` and speedscope::

    MainThread;main (app.py:10);work (app.py:4) 37
"""

import sys
import threading
import time
from collections import Counter
from types import FrameType


def _fold(thread_name: str, frame: FrameType | None) -> str:
    parts: list[str] = []
    while frame is not None:
        code = frame.f_code
        parts.append(f"{code.co_name} ({code.co_filename}:{frame.f_lineno})")
        frame = frame.f_back
    parts.append(thread_name)
    return ";".join(reversed(parts))


def sample(seconds: float, interval: float = 0.01) -> Counter[str]:
    """Sample every other thread for *seconds*. Blocks the calling thread."""
    me = threading.get_ident()
    counts: Counter[str] = Counter()
    deadline = time.monotonic() + seconds
    while time.monotonic() < deadline:
        names = {t.ident: t.name for t in threading.enumerate()}
        for ident, frame in sys._current_frames().items():
            if ident == me:
                continue
            counts[_fold(names.get(ident, f"thread-{ident}"), frame)] += 1
        time.sleep(interval)
    return counts


def render_folded(counts: Counter[str]) -> str:
    """Folded-stack text, most frequent stack first."""
    return "".join(f"{stack} {n}\n" for stack, n in counts.most_common())
