"""Live request tracing and event logs, viewable over HTTP.

Application code creates traces and event logs; the debug multiplexer
serves them at ``<prefix>/requests`` and ``<prefix>/events`` and installs
its access policy as the process-wide authorization hook.
"""

from httpdebug.tracing.auth import (
    AuthRequest,
    auth_request,
    default_auth_request,
    install_auth,
    reset_auth,
)
from httpdebug.tracing.events import EventLog, new_event_log
from httpdebug.tracing.handlers import event_request, trace_request
from httpdebug.tracing.trace import Event, Trace, new_trace

__all__ = [
    "AuthRequest",
    "Event",
    "EventLog",
    "Trace",
    "auth_request",
    "default_auth_request",
    "event_request",
    "install_auth",
    "new_event_log",
    "new_trace",
    "reset_auth",
    "trace_request",
]
