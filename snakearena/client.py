"""A sample player that connects to the arena and turns at random."""

from __future__ import annotations

import argparse
import asyncio
import random
import string
from typing import Optional, Sequence

import aiohttp

from .protocol import (
    ClientMessage,
    SetName,
    Tick,
    Turn,
    TurnDirection,
    decode_server_message,
    encode_client_message,
)

DEFAULT_URL = "ws://0.0.0.0:8000/ws"
NAME_LENGTH = 10
_ALPHANUMERIC = string.ascii_letters + string.digits
_RNG = random.Random()


def random_name(rng: Optional[random.Random] = None) -> str:
    """Return a random alphanumeric player name."""
    rng = rng if rng is not None else _RNG
    return "".join(rng.choices(_ALPHANUMERIC, k=NAME_LENGTH))


async def send_message(ws, message: ClientMessage) -> None:
    """Send a client message over a WebSocket as JSON text."""
    await ws.send_str(encode_client_message(message))


def choose_action(rng: Optional[random.Random] = None) -> Optional[Turn]:
    """Decide on a reply to a tick: half the time a random turn, otherwise nothing."""
    rng = rng if rng is not None else _RNG
    if rng.random() >= 0.5:
        return None
    if rng.random() < 0.5:
        return Turn(TurnDirection.CLOCKWISE)
    return Turn(TurnDirection.COUNTER_CLOCKWISE)


async def game_client(url: str = DEFAULT_URL) -> str:
    """Play one game at ``url`` until the server stops sending; return the name used."""
    name = random_name()
    print(f"My name is: {name}")
    async with aiohttp.ClientSession() as session:
        try:
            ws = await session.ws_connect(url)
        except aiohttp.WSServerHandshakeError as exc:
            raise RuntimeError(f"http error ({exc.status}): {exc.message}") from exc
        async with ws:
            await send_message(ws, SetName(name))
            async for frame in ws:
                if frame.type is not aiohttp.WSMsgType.TEXT:
                    break
                message = decode_server_message(frame.data)
                if isinstance(message, Tick):
                    action = choose_action()
                    if action is not None:
                        await send_message(ws, action)
    return name


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point for the sample player."""
    parser = argparse.ArgumentParser(description="Play in the snake arena with random turns.")
    parser.add_argument("--url", default=DEFAULT_URL, help="WebSocket URL of the arena")
    args = parser.parse_args(argv)
    try:
        asyncio.run(game_client(args.url))
    except KeyboardInterrupt:
        pass
    return 0