"""Basic — an application with guarded debug endpoints beside it.

Serves a greeting at ``/`` and the profiling and tracing pages under
``/debug``, reachable only from this machine.

Run:
    python app.py -p -r -t 5
"""

import argparse
import logging

import httpdebug
from httpdebug import DebugConfig, PrefixDispatcher
from httpdebug._internal.asgi import Receive, Scope, Send
from httpdebug.http.response import PLAIN_TEXT, Response
from httpdebug.server.sender import send_response
from httpdebug.tracing import new_trace


async def index(scope: Scope, receive: Receive, send: Send) -> None:
    tr = new_trace("example.Index", scope["path"])
    tr.log(f"client={scope.get('client')}", sensitive=True)
    await send_response(Response("Hello, world.\r\n", content_type=PLAIN_TEXT), send)
    tr.finish()


def parse_config(argv: list[str] | None = None) -> DebugConfig:
    """Command-line flags as a ``DebugConfig``."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("-a", dest="addr", default="127.0.0.1:8080", help="address to listen on")
    parser.add_argument("-p", dest="pprof", action="store_true", help="enable pprof endpoints")
    parser.add_argument("-r", dest="trace", action="store_true", help="enable request tracing")
    parser.add_argument(
        "-t", dest="timeout", type=float, default=0.0, help="request timeout in seconds; 0 disables"
    )
    args = parser.parse_args(argv)

    host, _, port = args.addr.rpartition(":")
    return DebugConfig(
        request_timeout=args.timeout,
        pprof_enabled=args.pprof,
        trace_enabled=args.trace,
        host=host or "127.0.0.1",
        port=int(port),
    )


def create_app(config: DebugConfig | None = None) -> PrefixDispatcher:
    """Build the site and register the debug endpoints on it."""
    httpdebug.new_localhost(config=config)

    app = PrefixDispatcher()
    app.mount("/", index)
    httpdebug.register(app)
    return app


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    config = parse_config()
    httpdebug.serve(create_app(config), config=config)


if __name__ == "__main__":
    main()
