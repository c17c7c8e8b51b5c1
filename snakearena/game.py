"""Arena state: snakes on a wrapping board, advanced on a speeding-up clock."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Hashable, Optional, Sequence, Union

from .protocol import (
    ClientMessage,
    Direction,
    MapPiece,
    SetName,
    Tick,
    Turn,
    direction_from_index,
)

log = logging.getLogger(__name__)

DEFAULT_MAP_SIZE = (20, 9)
START_PERIOD = 1.0
SPEEDUP_STEP = 0.01
MIN_PERIOD = 0.1
GROWTH_CHANCE = 0.1
START_TAIL_LEN = 2

_GLYPHS = {
    MapPiece.SNAKE: "🟩",
    MapPiece.SNAKE_HEAD: "🐍",
    MapPiece.APPLE: "🍎",
    MapPiece.EMPTY: "░░",
}


@dataclass
class Snake:
    """One connected player's snake."""

    name: str
    outbox: asyncio.Queue
    position: tuple[int, int]
    direction: Direction
    tail: deque = field(default_factory=deque)
    tail_len: int = START_TAIL_LEN
    msg_count: int = 0


@dataclass
class Join:
    """A player connected; ``reply`` receives the player's outgoing queue."""

    addr: Hashable
    name: str
    reply: Optional[asyncio.Future] = None


@dataclass
class Left:
    """A player disconnected."""

    addr: Hashable
    reason: str


ClientUpdate = Union[Join, Left]


def render_map(cells: Sequence[MapPiece], map_size: tuple[int, int]) -> str:
    """Draw the map as rows of glyphs joined by newlines."""
    width = map_size[0]
    if width <= 0:
        raise ValueError("map width must be positive")
    glyphs = [_GLYPHS[cell] for cell in cells]
    return "\n".join("".join(glyphs[start:start + width]) for start in range(0, len(glyphs), width))


class Game:
    """The arena: owns every snake and the map, and runs the tick clock."""

    def __init__(
        self,
        messages: Optional[asyncio.Queue] = None,
        updates: Optional[asyncio.Queue] = None,
        map_size: tuple[int, int] = DEFAULT_MAP_SIZE,
        rng: Optional[random.Random] = None,
    ) -> None:
        width, height = map_size
        if width <= 0 or height <= 0:
            raise ValueError(f"map size must be positive, got {map_size!r}")
        self.messages = messages if messages is not None else asyncio.Queue()
        self.updates = updates if updates is not None else asyncio.Queue()
        self.map_size = (width, height)
        self.rng = rng if rng is not None else random.Random()
        self.clients: dict[Hashable, Snake] = {}
        self.map = self._empty_map()
        self.tick = 0
        self.period = START_PERIOD
        self._next_tick = time.monotonic()

    def _empty_map(self) -> list[MapPiece]:
        width, height = self.map_size
        return [MapPiece.EMPTY] * (width * height)

    def _index(self, position: tuple[int, int]) -> int:
        return position[0] + position[1] * self.map_size[0]

    def _moved(self, position: tuple[int, int], direction: Direction) -> tuple[int, int]:
        x, y = position
        width, height = self.map_size
        if direction is Direction.LEFT:
            x = (x - 1) % width
        elif direction is Direction.RIGHT:
            x = (x + 1) % width
        elif direction is Direction.UP:
            y = (y - 1) % height
        else:
            y = (y + 1) % height
        return x, y

    def add_client(self, addr: Hashable, name: str) -> asyncio.Queue:
        """Place a new snake on a free cell and return its outgoing message queue."""
        log.debug("got new client: %s | %s", addr, name)
        width, height = self.map_size
        taken = {snake.position for snake in self.clients.values()}
        if len(taken) >= width * height:
            raise RuntimeError("no free cell left for a new snake")
        while True:
            position = (self.rng.randrange(width), self.rng.randrange(height))
            if position not in taken:
                break
        outbox: asyncio.Queue = asyncio.Queue()
        self.clients[addr] = Snake(
            name=name,
            outbox=outbox,
            position=position,
            direction=direction_from_index(self.rng.randrange(4)),
        )
        return outbox

    def remove_client(self, addr: Hashable, reason: str) -> None:
        """Drop a player's snake."""
        log.info("%s: left, %s", addr, reason)
        self.clients.pop(addr, None)

    def receive(self, addr: Hashable, message: ClientMessage) -> bool:
        """Accept one message from a player; only the first per tick is applied."""
        snake = self.clients.get(addr)
        if snake is None:
            raise KeyError(f"missing client: {addr}")
        snake.msg_count += 1
        if snake.msg_count == 2 or snake.msg_count % 10 == 0:
            log.warning("%s: sent too many messages: %d", addr, snake.msg_count)
        if snake.msg_count != 1:
            return False
        self.handle_message(addr, message)
        return True

    def handle_message(self, who: Hashable, message: ClientMessage) -> None:
        """Apply a player's message to their snake."""
        snake = self.clients.get(who)
        if snake is None:
            log.error("got message for non-existent client: %s", who)
            return
        if isinstance(message, Turn):
            snake.direction += message.direction
        elif isinstance(message, SetName):
            pass

    def advance(self) -> None:
        """Move every snake one cell and redraw the map."""
        self.tick += 1
        self.map = self._empty_map()
        for snake in self.clients.values():
            snake.tail.appendleft(snake.position)
            if len(snake.tail) > snake.tail_len:
                snake.tail.pop()
            snake.tail_len += self.rng.random() < GROWTH_CHANCE
            snake.position = self._moved(snake.position, snake.direction)
            self.map[self._index(snake.position)] = MapPiece.SNAKE_HEAD
            for segment in snake.tail:
                index = self._index(segment)
                if self.map[index] is MapPiece.EMPTY:
                    self.map[index] = MapPiece.SNAKE

    def broadcast(self) -> None:
        """Send the current map to every player and reset their message budget."""
        snapshot = Tick(map=tuple(self.map), map_size=self.map_size)
        for snake in self.clients.values():
            snake.outbox.put_nowait(snapshot)
            snake.msg_count = 0

    def speedup(self) -> None:
        """Shorten the tick period, down to a floor, restarting the clock."""
        if self.period > SPEEDUP_STEP and self.period > MIN_PERIOD:
            self.period = round(self.period - SPEEDUP_STEP, 6)
            self._next_tick = time.monotonic() + self.period

    def _on_tick(self) -> None:
        self._next_tick += self.period
        self.speedup()
        self.broadcast()
        self.advance()
        print("\n" + render_map(self.map, self.map_size) + f"\nTick: {self.tick}")

    def _handle_update(self, update: ClientUpdate) -> None:
        if isinstance(update, Join):
            outbox = self.add_client(update.addr, update.name)
            if update.reply is not None and not update.reply.done():
                update.reply.set_result(outbox)
        elif isinstance(update, Left):
            self.remove_client(update.addr, update.reason)
        else:
            raise TypeError(f"unknown client update: {update!r}")

    async def step(self) -> None:
        """Wait for the next event (tick, join/leave or message) and handle it."""
        if time.monotonic() >= self._next_tick:
            self._on_tick()
            return
        if not self.updates.empty():
            self._handle_update(self.updates.get_nowait())
            return
        if not self.messages.empty():
            addr, message = self.messages.get_nowait()
            self.receive(addr, message)
            return

        timeout = max(0.0, self._next_tick - time.monotonic())
        update_task = asyncio.ensure_future(self.updates.get())
        message_task = asyncio.ensure_future(self.messages.get())
        try:
            done, _ = await asyncio.wait(
                {update_task, message_task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in (update_task, message_task):
                if not task.done():
                    task.cancel()
        if not done:
            self._on_tick()
            return
        try:
            if update_task in done:
                self._handle_update(update_task.result())
        finally:
            if message_task in done:
                addr, message = message_task.result()
                self.receive(addr, message)

    async def run(self) -> None:
        """Step forever, logging any error and carrying on."""
        while True:
            try:
                await self.step()
            except Exception as exc:
                log.error("game loop: %s", exc)