"""Serve an ASGI app with pounce.

pounce is an optional dependency (``pip install httpdebug[server]``);
it is imported only when ``serve()`` runs.
"""

import logging

from httpdebug._internal.asgi import ASGIApp
from httpdebug.config import DebugConfig

logger = logging.getLogger("httpdebug.server")


def server_settings(
    config: DebugConfig | None = None,
    host: str | None = None,
    port: int | None = None,
    log_level: str | None = None,
) -> tuple[str, int, str]:
    """``(host, port, log_level)``: explicit values win over *config*."""
    base = config or DebugConfig()
    return (
        base.host if host is None else host,
        base.port if port is None else port,
        base.log_level if log_level is None else log_level,
    )


def serve(
    app: ASGIApp,
    host: str | None = None,
    port: int | None = None,
    *,
    config: DebugConfig | None = None,
    workers: int = 1,
    log_level: str | None = None,
) -> None:
    """Run *app* until interrupted.

    Args:
        app: Any ASGI callable, e.g. ``httpdebug.handler()`` or the
            ``default_dispatcher``.
        host: Bind host address. Defaults to ``config.host``.
        port: Bind port number. Defaults to ``config.port``.
        config: Supplies the defaults; ``DebugConfig()`` when omitted.
        workers: Number of pounce workers.
        log_level: pounce log level (debug, info, warning, error,
            critical). Defaults to ``config.log_level``.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    host, port, log_level = server_settings(config, host, port, log_level)
    server_config = ServerConfig(host=host, port=port, workers=workers, log_level=log_level)
    logger.info("serving debug endpoints on http://%s:%d", host, port)
    Server(server_config, app).run()
