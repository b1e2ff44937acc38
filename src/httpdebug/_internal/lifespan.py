"""Minimal ASGI lifespan responder for apps with no startup work."""

from httpdebug._internal.asgi import Receive, Send


async def acknowledge_lifespan(receive: Receive, send: Send) -> None:
    """Answer startup and shutdown immediately, then return."""
    while True:
        message = await receive()
        msg_type = message["type"]

        if msg_type == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif msg_type == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return
