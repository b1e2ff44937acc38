"""Named profiles — sets of live values, each remembered with the stack
that created it.

A profile answers "what is holding these things, and from where?". The
built-in ``threads`` and ``heap`` profiles compute their contents on
demand; profiles made with ``new_profile()`` are filled by the
application::

    conns = new_profile("myapp/connections")

    def open_conn():
        conn = Connection()
        conns.add(conn)
        return conn

    def close_conn(conn):
        conns.remove(conn)
"""

import sys
import threading
import traceback
import tracemalloc
from collections import Counter
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from types import FrameType
from typing import NamedTuple

_registry_lock = threading.Lock()
_registry: dict[str, "Profile"] = {}


class Frame(NamedTuple):
    """One stack frame, hashable so identical stacks can be counted."""

    filename: str
    lineno: int
    name: str


type Stack = tuple[Frame, ...]


def _capture(frame: FrameType | None) -> Stack:
    """Outermost-first stack ending at *frame*."""
    frames: list[Frame] = []
    while frame is not None:
        frames.append(Frame(frame.f_code.co_filename, frame.f_lineno, frame.f_code.co_name))
        frame = frame.f_back
    frames.reverse()
    return tuple(frames)


def _format_stack(stack: Stack) -> str:
    return "".join(
        f"#\t{frame.name}\t{frame.filename}:{frame.lineno}\n" for frame in reversed(stack)
    )


def _fold_stack(stack: Stack) -> str:
    return ";".join(f"{frame.name} ({frame.filename}:{frame.lineno})" for frame in stack)


# tracemalloc is process-global. Allocation traces share it: the first
# one in starts tracing (unless something else already did), the last
# one out stops it. Snapshots are taken under the same lock.
_tracing_lock = threading.Lock()
_tracing_users = 0
_tracing_owned = False


@contextmanager
def tracing_allocations() -> Iterator[None]:
    """Keep tracemalloc running for the duration of the block.

    Tracing started here stops when the last overlapping block exits.
    Tracing started elsewhere is never stopped.
    """
    global _tracing_owned, _tracing_users
    with _tracing_lock:
        if _tracing_users == 0 and not tracemalloc.is_tracing():
            tracemalloc.start()
            _tracing_owned = True
        _tracing_users += 1
    try:
        yield
    finally:
        with _tracing_lock:
            _tracing_users -= 1
            if _tracing_users == 0 and _tracing_owned:
                tracemalloc.stop()
                _tracing_owned = False


def take_snapshot() -> tracemalloc.Snapshot | None:
    """A tracemalloc snapshot, or ``None`` when nothing is tracing."""
    with _tracing_lock:
        if not tracemalloc.is_tracing():
            return None
        return tracemalloc.take_snapshot()


def _heap_snapshot() -> tuple[tracemalloc.Snapshot, int, int] | None:
    with _tracing_lock:
        if not tracemalloc.is_tracing():
            return None
        current, peak = tracemalloc.get_traced_memory()
        return tracemalloc.take_snapshot(), current, peak


class Profile:
    """A named collection of values with the stacks that added them.

    Safe for concurrent use. Values must be hashable and are held by
    strong reference until removed.
    """

    __slots__ = ("_entries", "_lock", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[Hashable, Stack] = {}

    def add(self, value: Hashable, skip: int = 0) -> None:
        """Record *value* with the caller's stack.

        *skip* drops that many additional frames from the top of the
        stack, for helpers that wrap ``add``.

        Raises ``ValueError`` if *value* is already in the profile.
        """
        stack = _capture(sys._getframe(1 + skip))
        with self._lock:
            if value in self._entries:
                msg = f"profile {self.name!r}: value {value!r} added twice"
                raise ValueError(msg)
            self._entries[value] = stack

    def remove(self, value: Hashable) -> None:
        """Forget *value*. Unknown values are ignored."""
        with self._lock:
            self._entries.pop(value, None)

    def count(self) -> int:
        """Number of values currently in the profile."""
        with self._lock:
            return len(self._entries)

    def stacks(self) -> list[Stack]:
        """Snapshot of the recorded stacks."""
        with self._lock:
            return list(self._entries.values())

    def write(self, debug: int = 0) -> str:
        """Render the profile.

        ``debug=0`` emits folded stacks (``frame;frame;frame count``) for
        flame graph tools. ``debug>=1`` emits a readable listing grouped
        by identical stacks, largest group first.
        """
        grouped = Counter(self.stacks())
        if debug <= 0:
            return "".join(f"{_fold_stack(stack)} {n}\n" for stack, n in grouped.most_common())

        lines = [f"{self.name} profile: total {sum(grouped.values())}\n"]
        for stack, n in grouped.most_common():
            lines.append(f"\n{n} @\n")
            lines.append(_format_stack(stack))
        return "".join(lines)

    def __repr__(self) -> str:
        return f"<Profile {self.name!r} count={self.count()}>"


class ThreadProfile(Profile):
    """Stacks of every live thread, captured when read."""

    __slots__ = ()

    def add(self, value: Hashable, skip: int = 0) -> None:
        msg = f"profile {self.name!r} is computed and cannot be added to"
        raise TypeError(msg)

    def count(self) -> int:
        return threading.active_count()

    def stacks(self) -> list[Stack]:
        return [_capture(frame) for frame in sys._current_frames().values()]

    def write(self, debug: int = 0) -> str:
        if debug < 2:
            return super().write(debug)
        # Full dump: one section per thread, named
        names = {t.ident: t.name for t in threading.enumerate()}
        sections = []
        for ident, frame in sys._current_frames().items():
            stack = "".join(traceback.format_stack(frame))
            sections.append(f"thread {names.get(ident, '?')} [{ident}]:\n{stack}")
        return "\n".join(sections)


class HeapProfile(Profile):
    """Largest live allocation sites, as seen by tracemalloc.

    Empty (with a notice) unless tracemalloc is tracing; start it with
    ``PYTHONTRACEMALLOC=25`` or ``tracemalloc.start()``.
    """

    __slots__ = ()

    limit = 50

    def add(self, value: Hashable, skip: int = 0) -> None:
        msg = f"profile {self.name!r} is computed and cannot be added to"
        raise TypeError(msg)

    def count(self) -> int:
        taken = _heap_snapshot()
        if taken is None:
            return 0
        return len(taken[0].statistics("traceback"))

    def write(self, debug: int = 0) -> str:
        taken = _heap_snapshot()
        if taken is None:
            return "heap profile: tracemalloc is not tracing\n"

        snapshot, current, peak = taken
        stats = snapshot.statistics("traceback")[: self.limit]
        lines = [f"heap profile: {current} bytes in use, {peak} bytes peak\n"]
        for stat in stats:
            if debug <= 0:
                folded = ";".join(f"{f.filename}:{f.lineno}" for f in stat.traceback)
                lines.append(f"{folded} {stat.size}\n")
            else:
                lines.append(f"\n{stat.count}: {stat.size} bytes @\n")
                lines.extend(f"#\t{line}\n" for line in stat.traceback.format())
        return "".join(lines)


BUILTIN_NAMES = frozenset({"threads", "heap"})


def _install_builtins() -> None:
    _registry["threads"] = ThreadProfile("threads")
    _registry["heap"] = HeapProfile("heap")


_install_builtins()


def new_profile(name: str) -> Profile:
    """Create and register a profile called *name*.

    Raises ``ValueError`` if a profile with that name exists.
    """
    if not name or name.startswith("/") or name.endswith("/"):
        msg = f"invalid profile name {name!r}"
        raise ValueError(msg)
    with _registry_lock:
        if name in _registry:
            msg = f"profile {name!r} already exists"
            raise ValueError(msg)
        profile = Profile(name)
        _registry[name] = profile
    return profile


def lookup(name: str) -> Profile | None:
    """Return the profile called *name*, or ``None``."""
    with _registry_lock:
        return _registry.get(name)


def profiles() -> list[Profile]:
    """All registered profiles, sorted by name."""
    with _registry_lock:
        return sorted(_registry.values(), key=lambda p: p.name)


def _reset() -> None:
    """Drop every application profile (test helper)."""
    with _registry_lock:
        _registry.clear()
        _install_builtins()
