"""Shared test doubles and utilities."""

import asyncio
import base64
import hashlib
import json
from collections.abc import Callable
from typing import Any

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from dashfeed.core.events import EventDispatcher, Handler
from dashfeed.core.models import ConnectionState


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll until ``predicate`` holds, failing the test after ``timeout``."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.01)


def metrics_frame(cpu: float, **extra: Any) -> str:
    return json.dumps({"type": "metrics", "data": {"system": {"cpu": {"usage": cpu}}, **extra}})


def log_frame(message: str, service: str = "n8n", **extra: Any) -> str:
    return json.dumps(
        {
            "type": "log",
            "timestamp": "2024-05-01T12:00:00Z",
            "service": service,
            "message": message,
            **extra,
        }
    )


# === Session Doubles ===


class FakeSession:
    """In-memory stand-in for TransportSession driven by the test."""

    def __init__(self, url: str, *, greeting=(), farewell=()) -> None:
        self.url = url
        self.greeting = tuple(greeting)
        self.farewell = tuple(farewell)
        self.state = ConnectionState.IDLE
        self.last_error: str | None = None
        self.sent: list[str] = []
        self.close_calls = 0
        self.close_codes: list[int] = []
        self._dispatcher = EventDispatcher(("open", "message", "error", "close"))

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        return self._dispatcher.register(event, handler)

    def open(self) -> "FakeSession":
        self.state = ConnectionState.CONNECTING
        return self

    def send(self, payload: str) -> bool:
        if self.state is not ConnectionState.OPEN:
            return False
        self.sent.append(payload)
        return True

    def close(self) -> None:
        self.close_calls += 1
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        if self.state is ConnectionState.OPEN:
            self.sent.extend(self.farewell)
        self._terminate(1000)

    # Test controls

    def simulate_open(self) -> None:
        self.state = ConnectionState.OPEN
        self.sent.extend(self.greeting)
        self._dispatcher.emit("open")

    def simulate_message(self, raw: Any) -> None:
        self._dispatcher.emit("message", raw)

    def simulate_drop(self, code: int = 1006, detail: str = "connection reset") -> None:
        self.last_error = detail
        self._dispatcher.emit("error", detail)
        self._terminate(code)

    def _terminate(self, code: int) -> None:
        if self.close_codes:
            return
        self.state = ConnectionState.CLOSED
        self.close_codes.append(code)
        self._dispatcher.emit("close", code)


class FakeSessionFactory:
    """Session factory recording every session it builds."""

    def __init__(self) -> None:
        self.sessions: list[FakeSession] = []

    def __call__(self, url: str, *, greeting=(), farewell=()) -> FakeSession:
        session = FakeSession(url, greeting=greeting, farewell=farewell)
        self.sessions.append(session)
        return session

    @property
    def latest(self) -> FakeSession:
        return self.sessions[-1]


# === Feed Server ===


class FakeFeedServer:
    """Scriptable feed endpoint for tests over real sockets.

    Records every control action received. After ``start_monitoring`` it
    acknowledges and sends the frames in ``script``.
    """

    def __init__(self) -> None:
        self.url = ""
        self.script: list[str] = []
        self.received: list[str] = []
        self.connections: list[ServerConnection] = []

    @property
    def open_connections(self) -> list[ServerConnection]:
        return [ws for ws in self.connections if ws.close_code is None]

    async def handler(self, ws: ServerConnection) -> None:
        self.connections.append(ws)
        try:
            async for raw in ws:
                action = json.loads(raw).get("action")
                self.received.append(action)
                if action == "start_monitoring":
                    await ws.send(json.dumps({"type": "connected"}))
                    for frame in self.script:
                        await ws.send(frame)
        except ConnectionClosed:
            pass

    async def push(self, frame: str) -> None:
        """Send a frame to every open connection."""
        for ws in self.open_connections:
            await ws.send(frame)

    async def drop(self, code: int = 1012) -> None:
        """Close every open connection as a server restart would."""
        for ws in self.open_connections:
            await ws.close(code=code)


WS_ACCEPT_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"


class SilentPeer:
    """Accepts the WebSocket upgrade, then never reads or writes again.

    Nothing answers the closing handshake, so a client has to give up on
    its own.
    """

    def __init__(self) -> None:
        self.url = ""
        self.writers: list[asyncio.StreamWriter] = []

    async def handler(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        request = await reader.readuntil(b"\r\n\r\n")
        key = ""
        for line in request.decode("latin-1").split("\r\n"):
            name, _, value = line.partition(":")
            if name.strip().lower() == "sec-websocket-key":
                key = value.strip()
        accept = base64.b64encode(
            hashlib.sha1((key + WS_ACCEPT_GUID).encode()).digest()
        ).decode()
        writer.write(
            (
                "HTTP/1.1 101 Switching Protocols\r\n"
                "Upgrade: websocket\r\n"
                "Connection: Upgrade\r\n"
                f"Sec-WebSocket-Accept: {accept}\r\n\r\n"
            ).encode()
        )
        await writer.drain()
        self.writers.append(writer)


class StalledConnection:
    """Connection double whose reads and closing handshake never finish."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_started = False
        self.close_code: int | None = None
        self._never = asyncio.Event()

    async def __aenter__(self) -> "StalledConnection":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    def __aiter__(self) -> "StalledConnection":
        return self

    async def __anext__(self) -> str:
        await self._never.wait()
        raise StopAsyncIteration

    async def send(self, payload: str) -> None:
        self.sent.append(payload)

    async def close(self) -> None:
        self.close_started = True
        await self._never.wait()
