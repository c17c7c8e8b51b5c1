import asyncio

import pytest
from aiohttp import WSMsgType
from aiohttp.test_utils import TestClient, TestServer

from snakearena.game import Join, Left
from snakearena.protocol import (
    MapPiece,
    SetName,
    Tick,
    Turn,
    TurnDirection,
    decode_server_message,
    encode_client_message,
)
from snakearena.server import create_app

TIMEOUT = 5


async def _start(updates, messages):
    client = TestClient(TestServer(create_app(updates, messages)))
    await client.start_server()
    return client


async def _join(client, updates, name):
    ws = await client.ws_connect("/ws")
    await ws.send_str(encode_client_message(SetName(name)))
    join = await asyncio.wait_for(updates.get(), TIMEOUT)
    outbox = asyncio.Queue()
    join.reply.set_result(outbox)
    return ws, join, outbox


@pytest.mark.asyncio
async def test_index_greets():
    client = await _start(asyncio.Queue(), asyncio.Queue())
    try:
        response = await client.get("/")
        assert response.status == 200
        assert await response.text() == "Hello, World!"
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_handshake_registers_player():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws, join, _ = await _join(client, updates, "alice")
        assert isinstance(join, Join)
        assert join.name == "alice"
        assert ":" in join.addr
        await ws.close()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_ticks_are_forwarded_to_player():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws, _, outbox = await _join(client, updates, "alice")
        tick = Tick(map=(MapPiece.EMPTY, MapPiece.SNAKE_HEAD), map_size=(2, 1))
        outbox.put_nowait(tick)
        text = await asyncio.wait_for(ws.receive_str(), TIMEOUT)
        assert decode_server_message(text) == tick
        await ws.close()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_player_messages_reach_game_queue():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws, join, _ = await _join(client, updates, "alice")
        await ws.send_str(encode_client_message(Turn(TurnDirection.CLOCKWISE)))
        addr, message = await asyncio.wait_for(messages.get(), TIMEOUT)
        assert addr == join.addr
        assert message == Turn(TurnDirection.CLOCKWISE)
        await ws.close()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_invalid_and_binary_messages_are_skipped():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws, _, _ = await _join(client, updates, "alice")
        await ws.send_str("not json")
        await ws.send_bytes(b"\x00\x01")
        await ws.send_str(encode_client_message(Turn(TurnDirection.COUNTER_CLOCKWISE)))
        _, message = await asyncio.wait_for(messages.get(), TIMEOUT)
        assert message == Turn(TurnDirection.COUNTER_CLOCKWISE)
        assert messages.empty()
        await ws.close()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_bad_handshake_is_rejected():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws = await client.ws_connect("/ws")
        await ws.send_str(encode_client_message(Turn(TurnDirection.CLOCKWISE)))
        frame = await asyncio.wait_for(ws.receive(), TIMEOUT)
        assert frame.type in (WSMsgType.CLOSE, WSMsgType.CLOSED)
        assert updates.empty()
        await ws.close()
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_closing_socket_reports_left():
    updates, messages = asyncio.Queue(), asyncio.Queue()
    client = await _start(updates, messages)
    try:
        ws, join, _ = await _join(client, updates, "alice")
        await ws.close()
        left = await asyncio.wait_for(updates.get(), TIMEOUT)
        assert isinstance(left, Left)
        assert left.addr == join.addr
    finally:
        await client.close()