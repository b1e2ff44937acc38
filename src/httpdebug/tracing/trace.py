"""Request traces, grouped by family.

A trace follows one unit of work (usually one request) from start to
finish. Each family keeps its active traces plus the most recent
completed and errored ones for inspection at ``<prefix>/requests``::

    tr = new_trace("myapp.Search", request.path)
    tr.log("query parsed")
    tr.log(f"user={user.email}", sensitive=True)
    ...
    tr.finish()
"""

from __future__ import annotations

import itertools
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any

# Finished traces retained per family and bucket
MAX_RETAINED = 10

_ids = itertools.count(1)
_lock = threading.Lock()
_families: dict[str, _Family] = {}


@dataclass(frozen=True, slots=True)
class Event:
    """One log line in a trace or event log."""

    when: float
    elapsed: float
    message: str
    sensitive: bool = False
    is_error: bool = False


class Trace:
    """A single traced unit of work. Safe for concurrent logging."""

    __slots__ = (
        "_events",
        "_lock",
        "errored",
        "family",
        "finished_at",
        "id",
        "started",
        "title",
    )

    def __init__(self, family: str, title: str) -> None:
        self.id = next(_ids)
        self.family = family
        self.title = title
        self.started = time.time()
        self.finished_at: float | None = None
        self.errored = False
        self._events: list[Event] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self.finished_at is None

    @property
    def elapsed(self) -> float:
        """Seconds since start, or total duration once finished."""
        end = self.finished_at if self.finished_at is not None else time.time()
        return end - self.started

    @property
    def events(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def log(self, message: str, sensitive: bool = False) -> None:
        """Append *message*. Sensitive messages are shown only to admins."""
        now = time.time()
        with self._lock:
            self._events.append(Event(now, now - self.started, message, sensitive))

    def logf(self, fmt: str, *args: Any, sensitive: bool = False) -> None:
        """Append ``fmt % args``."""
        self.log(fmt % args if args else fmt, sensitive=sensitive)

    def set_error(self) -> None:
        """Mark the trace as failed; it is retained in the errors bucket."""
        self.errored = True

    def finish(self) -> None:
        """End the trace. Further calls are ignored."""
        with self._lock:
            if self.finished_at is not None:
                return
            self.finished_at = time.time()
        with _lock:
            family = _families.get(self.family)
            if family is None:
                return
            family.active.pop(self.id, None)
            family.completed.appendleft(self)
            if self.errored:
                family.errors.appendleft(self)

    def __repr__(self) -> str:
        state = "active" if self.active else "finished"
        return f"<Trace {self.family}/{self.title} #{self.id} {state}>"


class _Family:
    __slots__ = ("active", "completed", "errors", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self.active: dict[int, Trace] = {}
        self.completed: deque[Trace] = deque(maxlen=MAX_RETAINED)
        self.errors: deque[Trace] = deque(maxlen=MAX_RETAINED)


@dataclass(frozen=True, slots=True)
class FamilySummary:
    """Counts shown on the family overview."""

    name: str
    active: int
    completed: int
    errors: int


def new_trace(family: str, title: str) -> Trace:
    """Start a trace in *family* and make it visible as active."""
    trace = Trace(family, title)
    with _lock:
        fam = _families.get(family)
        if fam is None:
            fam = _families[family] = _Family(family)
        fam.active[trace.id] = trace
    return trace


def summaries() -> list[FamilySummary]:
    """Per-family counts, sorted by family name."""
    with _lock:
        return [
            FamilySummary(f.name, len(f.active), len(f.completed), len(f.errors))
            for f in sorted(_families.values(), key=lambda f: f.name)
        ]


def bucket(family: str, name: str) -> list[Trace]:
    """Traces of *family* in bucket *name* (``active``, ``completed``,
    ``errors``), newest first.

    Raises ``KeyError`` for an unknown bucket name.
    """
    if name not in ("active", "completed", "errors"):
        raise KeyError(name)
    with _lock:
        fam = _families.get(family)
        if fam is None:
            return []
        if name == "active":
            return sorted(fam.active.values(), key=lambda t: t.started, reverse=True)
        return list(getattr(fam, name))


def _reset() -> None:
    with _lock:
        _families.clear()
