"""WebSocket front end: accepts players and relays messages to and from the game."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
from typing import Hashable, Optional, Sequence

from aiohttp import WSMsgType, web

from .game import Game, Join, Left
from .protocol import (
    ProtocolError,
    SetName,
    decode_client_message,
    encode_server_message,
)

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def _peer(request: web.Request) -> str:
    transport = request.transport
    peername = transport.get_extra_info("peername") if transport is not None else None
    if isinstance(peername, tuple) and len(peername) >= 2:
        host, port = peername[0], peername[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(request.remote)


def _handshake_name(message) -> Optional[str]:
    if message.type is not WSMsgType.TEXT:
        return None
    try:
        decoded = decode_client_message(message.data)
    except ProtocolError:
        return None
    if isinstance(decoded, SetName):
        return decoded.name
    return None


async def _forward(ws: web.WebSocketResponse, who: Hashable,
                   outbox: asyncio.Queue, updates: asyncio.Queue) -> None:
    while True:
        message = await outbox.get()
        try:
            await ws.send_str(encode_server_message(message))
        except Exception as exc:
            updates.put_nowait(Left(who, str(exc) or type(exc).__name__))
            return


async def handle_socket(ws: web.WebSocketResponse, who: Hashable,
                        updates: asyncio.Queue, messages: asyncio.Queue) -> None:
    """Run one player's connection: handshake, then relay both ways until it closes."""
    name = _handshake_name(await ws.receive())
    if name is None:
        log.error("client %s did not send a proper handshake", who)
        return

    reply = asyncio.get_running_loop().create_future()
    updates.put_nowait(Join(who, name, reply))
    outbox = await reply

    sender = asyncio.create_task(_forward(ws, who, outbox, updates))
    try:
        async for frame in ws:
            if frame.type is WSMsgType.TEXT:
                try:
                    message = decode_client_message(frame.data)
                except ProtocolError as exc:
                    log.warning("invalid message from %s (len = %d): %s", who, len(frame.data), exc)
                    continue
                messages.put_nowait((who, message))
            elif frame.type is WSMsgType.ERROR:
                break
            else:
                log.error("unsupported message from %s: %s", who, frame.type.name)
    finally:
        log.info("%s: closed recv loop", who)
        if not sender.done():
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender
            updates.put_nowait(Left(who, "connection closed"))


def create_app(updates: asyncio.Queue, messages: asyncio.Queue) -> web.Application:
    """Build the web application feeding ``updates`` and ``messages`` to the game."""

    async def index(request: web.Request) -> web.Response:
        return web.Response(text="Hello, World!")

    async def ws_handler(request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        await handle_socket(ws, _peer(request), updates, messages)
        return ws

    app = web.Application()
    app.router.add_get("/", index)
    app.router.add_route("*", "/ws", ws_handler)
    return app


async def run_server(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    """Serve the arena on ``host:port`` and run the game loop until cancelled."""
    updates: asyncio.Queue = asyncio.Queue()
    messages: asyncio.Queue = asyncio.Queue()
    game = Game(messages, updates)
    runner = web.AppRunner(create_app(updates, messages))
    await runner.setup()
    game_task = asyncio.create_task(game.run())
    try:
        site = web.TCPSite(runner, host, port)
        await site.start()
        log.info("listening on %s:%d", host, port)
        await game_task
    finally:
        game_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await game_task
        await runner.cleanup()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point for the arena server."""
    parser = argparse.ArgumentParser(description="Run the snake arena server.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to bind")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to bind")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("snakearena").setLevel(logging.DEBUG)
    try:
        asyncio.run(run_server(args.host, args.port))
    except KeyboardInterrupt:
        pass
    return 0