"""Long-lived event logs, for things that outlive a request.

An event log belongs to an object such as a connection or a background
worker and records its notable moments. Logs are listed at
``<prefix>/events`` until finished.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections import deque
from typing import Any

from httpdebug.tracing.trace import Event

# Events retained per log
MAX_EVENTS = 100

_ids = itertools.count(1)
_lock = threading.Lock()
_logs: dict[str, dict[int, EventLog]] = {}


class EventLog:
    """A bounded log of events for one long-lived object."""

    __slots__ = ("_events", "_lock", "errored", "family", "id", "started", "title")

    def __init__(self, family: str, title: str) -> None:
        self.id = next(_ids)
        self.family = family
        self.title = title
        self.started = time.time()
        self.errored = False
        self._events: deque[Event] = deque(maxlen=MAX_EVENTS)
        self._lock = threading.Lock()

    @property
    def events(self) -> list[Event]:
        with self._lock:
            return list(self._events)

    def _append(self, message: str, is_error: bool) -> None:
        now = time.time()
        with self._lock:
            self._events.append(Event(now, now - self.started, message, is_error=is_error))
            if is_error:
                self.errored = True

    def printf(self, fmt: str, *args: Any) -> None:
        """Record ``fmt % args``."""
        self._append(fmt % args if args else fmt, is_error=False)

    def errorf(self, fmt: str, *args: Any) -> None:
        """Record ``fmt % args`` as an error."""
        self._append(fmt % args if args else fmt, is_error=True)

    def finish(self) -> None:
        """Remove the log from the listing."""
        with _lock:
            family = _logs.get(self.family)
            if family is not None:
                family.pop(self.id, None)
                if not family:
                    del _logs[self.family]

    def __repr__(self) -> str:
        return f"<EventLog {self.family}/{self.title} #{self.id}>"


def new_event_log(family: str, title: str) -> EventLog:
    """Create an event log listed under *family*."""
    log = EventLog(family, title)
    with _lock:
        _logs.setdefault(family, {})[log.id] = log
    return log


def families() -> dict[str, tuple[int, int]]:
    """``{family: (logs, logs_with_errors)}``, sorted by family."""
    with _lock:
        snapshot = {name: list(logs.values()) for name, logs in _logs.items()}
    return {
        name: (len(logs), sum(1 for log in logs if log.errored))
        for name, logs in sorted(snapshot.items())
    }


def logs(family: str, errors_only: bool = False) -> list[EventLog]:
    """Live logs of *family*, oldest first."""
    with _lock:
        found = list(_logs.get(family, {}).values())
    if errors_only:
        found = [log for log in found if log.errored]
    return found


def _reset() -> None:
    with _lock:
        _logs.clear()
