# snakearena

A small multiplayer snake game played over WebSockets. The server keeps one
shared board. On each tick it moves every snake one cell, prints the board
to the terminal and sends it to every connected player. Players steer by
asking to turn clockwise or counter-clockwise.

## Installing

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Running the server

```
snakearena-server [--host HOST] [--port PORT]
```

The defaults are `--host 0.0.0.0` and `--port 8000`. `GET /` answers with
`Hello, World!`. `/ws` is the game socket.

- The board is 20 cells wide and 9 cells high. Snakes wrap around at its
  edges.
- A new snake starts on a random cell that no other snake's head is on. It
  faces a random direction and has a tail length of 2.
- On every tick each tail has a 10% chance to grow by one cell.
- The tick period starts at 1 second. Each tick makes it 0.01 s shorter
  until it reaches 0.1 s.
- Each tick the board is printed to standard output, one glyph per cell,
  followed by the tick number.
- Log output from the `snakearena` loggers is shown at debug level.

## Running the sample client

```
snakearena-client [--url URL]
```

The default URL is `ws://0.0.0.0:8000/ws`. The client makes up a random
ten-character alphanumeric name and prints it. It then plays until the
server stops sending text frames. On each tick it sends a turn half of the
time, and the direction of that turn is clockwise or counter-clockwise with
equal chance. If the WebSocket handshake is refused, it raises
`RuntimeError` with the HTTP status.

## Protocol

Every message is a JSON text frame.

Client to server:

- `{"SetName": "alice"}` must be the first message. If the first frame is
  anything else, the server drops the connection.
- `{"Turn": "Clockwise"}` or `{"Turn": "CounterClockwise"}` turns the snake.
  Only the first message a player sends in each tick is applied. Later ones
  are ignored, and a warning is logged on the 2nd and on every 10th.
  Frames that cannot be decoded are logged and skipped.

Turning from Left or Right gives Up or Down. Left turned clockwise is Up,
and Right turned clockwise is Down. Turning from Up or Down gives Right when
clockwise and Left when counter-clockwise.

Server to client:

- `{"Tick": {"map": [...], "map_size": [20, 9]}}` carries the board row by
  row. Each cell is `"Snake"`, `"SnakeHead"`, `"Apple"` or `"Empty"`.

## Python API

`snakearena.protocol` defines the message and value types:

- `SetName`, `Turn` and `Tick` are the messages.
- `TurnDirection`, `Direction` and `MapPiece` are the value types.
- `Direction.turned(turn)`, or `direction + turn`, gives the new direction.
- `direction_from_index(n)` gives Left, Right, Up and Down for `n % 4`.

It also has `encode_client_message`, `decode_client_message`,
`encode_server_message` and `decode_server_message`. The decoders accept
`str` or `bytes`. They raise `ProtocolError`, a `ValueError`, on malformed
input.

`snakearena.game` holds the arena:

- `Game(messages, updates, map_size, rng)` creates an arena. All four
  arguments are optional. `Game.run()` runs it forever.
- To connect a player, put `Join(addr, name, reply)` on the `updates`
  queue. The future `reply` receives that player's outgoing queue of
  `Tick` messages.
- To disconnect a player, put `Left(addr, reason)` on the `updates` queue.
- Player messages go on the `messages` queue as `(addr, message)` pairs.
- `Game.add_client`, `Game.receive`, `Game.advance` and `Game.broadcast`
  can also be called directly.
- `render_map(cells, map_size)` draws a board as text.

`snakearena.server` provides `create_app(updates, messages)`, an aiohttp
application, and `run_server(host, port)`. `snakearena.client` provides
`game_client(url)`, `random_name`, `choose_action` and `send_message`.

## What it does not do

- Snakes do not collide with each other or with themselves.
- No apples are ever placed on the board.
- There is no scoring and no end of game.
- A snake only leaves when its connection closes.