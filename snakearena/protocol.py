"""Messages exchanged between the arena server and its clients, and their JSON form."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ProtocolError(ValueError):
    """Raised when a message cannot be decoded."""


class TurnDirection(Enum):
    """A turn a snake can be asked to make."""

    CLOCKWISE = "Clockwise"
    COUNTER_CLOCKWISE = "CounterClockwise"


class Direction(Enum):
    """The direction a snake is heading in."""

    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"

    def turned(self, turn: TurnDirection) -> Direction:
        """Return the direction after making ``turn``."""
        return _TURNS[(self, turn)]

    def __add__(self, turn: object) -> Direction:
        if not isinstance(turn, TurnDirection):
            return NotImplemented
        return self.turned(turn)


_TURNS = {
    (Direction.LEFT, TurnDirection.CLOCKWISE): Direction.UP,
    (Direction.LEFT, TurnDirection.COUNTER_CLOCKWISE): Direction.DOWN,
    (Direction.RIGHT, TurnDirection.CLOCKWISE): Direction.DOWN,
    (Direction.RIGHT, TurnDirection.COUNTER_CLOCKWISE): Direction.UP,
    (Direction.UP, TurnDirection.CLOCKWISE): Direction.RIGHT,
    (Direction.UP, TurnDirection.COUNTER_CLOCKWISE): Direction.LEFT,
    (Direction.DOWN, TurnDirection.CLOCKWISE): Direction.RIGHT,
    (Direction.DOWN, TurnDirection.COUNTER_CLOCKWISE): Direction.LEFT,
}

_INDEX_ORDER = (Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN)


def direction_from_index(value: int) -> Direction:
    """Map a non-negative integer onto a direction, wrapping every four values."""
    if value < 0:
        raise ValueError(f"direction index must not be negative: {value}")
    return _INDEX_ORDER[value % 4]


class MapPiece(Enum):
    """What occupies one cell of the map."""

    SNAKE = "Snake"
    SNAKE_HEAD = "SnakeHead"
    APPLE = "Apple"
    EMPTY = "Empty"


@dataclass(frozen=True)
class SetName:
    """Client handshake announcing the player's name."""

    name: str


@dataclass(frozen=True)
class Turn:
    """Client request to turn the snake."""

    direction: TurnDirection


@dataclass(frozen=True)
class Tick:
    """Server snapshot of the whole map, row by row."""

    map: tuple[MapPiece, ...]
    map_size: tuple[int, int]

    def __post_init__(self) -> None:
        object.__setattr__(self, "map", tuple(self.map))
        object.__setattr__(self, "map_size", tuple(self.map_size))


ClientMessage = Union[SetName, Turn]
ServerMessage = Tick


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _load(data: str | bytes | bytearray) -> Any:
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolError(f"message is not valid UTF-8: {exc}") from exc
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"message is not valid JSON: {exc}") from exc


def _variant(obj: Any) -> tuple[str, Any]:
    if not isinstance(obj, dict) or len(obj) != 1:
        raise ProtocolError("expected an object with exactly one variant key")
    ((key, value),) = obj.items()
    return key, value


def _enum_value(enum_type: type[Enum], value: Any) -> Any:
    if not isinstance(value, str):
        raise ProtocolError(f"expected a {enum_type.__name__} name, got {value!r}")
    try:
        return enum_type(value)
    except ValueError as exc:
        raise ProtocolError(f"unknown {enum_type.__name__}: {value!r}") from exc


def _size(value: Any) -> tuple[int, int]:
    if not isinstance(value, list) or len(value) != 2:
        raise ProtocolError(f"map_size must be a pair, got {value!r}")
    for part in value:
        if isinstance(part, bool) or not isinstance(part, int) or part < 0:
            raise ProtocolError(f"map_size entries must be non-negative integers, got {part!r}")
    return value[0], value[1]


def encode_client_message(message: ClientMessage) -> str:
    """Encode a client message as JSON text."""
    if isinstance(message, SetName):
        return _dumps({"SetName": message.name})
    if isinstance(message, Turn):
        return _dumps({"Turn": message.direction.value})
    raise TypeError(f"not a client message: {message!r}")


def decode_client_message(data: str | bytes | bytearray) -> ClientMessage:
    """Decode JSON text or bytes into a client message."""
    key, value = _variant(_load(data))
    if key == "SetName":
        if not isinstance(value, str):
            raise ProtocolError(f"SetName expects a string, got {value!r}")
        return SetName(value)
    if key == "Turn":
        return Turn(_enum_value(TurnDirection, value))
    raise ProtocolError(f"unknown client message: {key!r}")


def encode_server_message(message: ServerMessage) -> str:
    """Encode a server message as JSON text."""
    if isinstance(message, Tick):
        return _dumps(
            {
                "Tick": {
                    "map": [piece.value for piece in message.map],
                    "map_size": list(message.map_size),
                }
            }
        )
    raise TypeError(f"not a server message: {message!r}")


def decode_server_message(data: str | bytes | bytearray) -> ServerMessage:
    """Decode JSON text or bytes into a server message."""
    key, value = _variant(_load(data))
    if key != "Tick":
        raise ProtocolError(f"unknown server message: {key!r}")
    if isinstance(value, dict):
        try:
            cells, size = value["map"], value["map_size"]
        except KeyError as exc:
            raise ProtocolError(f"Tick is missing field {exc.args[0]!r}") from exc
    elif isinstance(value, list) and len(value) == 2:
        cells, size = value
    else:
        raise ProtocolError(f"malformed Tick body: {value!r}")
    if not isinstance(cells, list):
        raise ProtocolError(f"map must be a list, got {cells!r}")
    return Tick(map=tuple(_enum_value(MapPiece, cell) for cell in cells), map_size=_size(size))