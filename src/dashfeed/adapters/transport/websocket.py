"""WebSocket transport session for the telemetry feed.

A session owns exactly one connection attempt. It is never reused: the
supervisor creates a fresh session for every attempt.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from typing import Any

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException

from dashfeed.core.events import EventDispatcher, Handler
from dashfeed.core.models import ConnectionState

logger = logging.getLogger(__name__)

OPEN = "open"
MESSAGE = "message"
ERROR = "error"
CLOSE = "close"

SESSION_EVENTS = (OPEN, MESSAGE, ERROR, CLOSE)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006

# Outbox marker telling the writer to close the connection.
_CLOSE = object()


class TransportSession:
    """One persistent WebSocket connection speaking the feed protocol.

    Events, in order: ``open`` once the handshake completes, ``message(raw)``
    per inbound frame, ``error(detail)`` on transport failure, and exactly one
    ``close(code)`` that always terminates the session.

    Args:
        url: Feed endpoint (``ws://`` or ``wss://``).
        greeting: Frames sent immediately after the connection opens,
            before any other outbound frame.
        farewell: Frames sent by :meth:`close` before disconnecting.
        open_timeout: Seconds allowed for the opening handshake.
        close_timeout: Seconds allowed for the graceful close; after that
            the connection is torn down regardless.
        connector: Replacement for ``websockets.asyncio.client.connect``.
    """

    def __init__(
        self,
        url: str,
        *,
        greeting: Sequence[str] = (),
        farewell: Sequence[str] = (),
        open_timeout: float = 10.0,
        close_timeout: float = 1.0,
        connector: Callable[..., Any] = connect,
    ) -> None:
        self.url = url
        self._greeting = tuple(greeting)
        self._farewell = tuple(farewell)
        self._open_timeout = open_timeout
        self._close_timeout = close_timeout
        self._connect = connector
        self._dispatcher = EventDispatcher(SESSION_EVENTS)
        self._state = ConnectionState.IDLE
        self._last_error: str | None = None
        self._close_code: int | None = None
        self._outbox: asyncio.Queue[Any] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._deadline: asyncio.TimerHandle | None = None

    def __repr__(self) -> str:
        return f"<TransportSession {self.url} {self._state.value}>"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def close_code(self) -> int | None:
        """Close code reported to ``close`` handlers, once closed."""
        return self._close_code

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for ``open``, ``message``, ``error`` or ``close``."""
        return self._dispatcher.register(event, handler)

    def open(self) -> "TransportSession":
        """Start the connection attempt in the background.

        Must be called from a running event loop. Calling it again is a
        no-op.
        """
        if self._state is not ConnectionState.IDLE:
            return self
        self._state = ConnectionState.CONNECTING
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"dashfeed-session {self.url}")
        self._task.add_done_callback(self._on_task_done)
        return self

    def send(self, payload: str) -> bool:
        """Queue a frame for delivery.

        Frames are written in the order they were queued. Delivery is not
        confirmed.

        Returns:
            False if the session is not open; the frame is dropped.
        """
        if self._state is not ConnectionState.OPEN:
            logger.debug("Dropping frame on %s session: %s", self._state.value, payload)
            return False
        self._outbox.put_nowait(payload)
        return True

    def close(self) -> None:
        """Send the farewell frames, then disconnect.

        Returns immediately; the ``close`` event confirms termination.
        Calling it on a closing or closed session is a no-op.
        """
        if self._state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        if self._state is ConnectionState.IDLE:
            self._state = ConnectionState.CLOSED
            self._finish(NORMAL_CLOSURE)
            return
        if self._state is ConnectionState.CONNECTING:
            self._state = ConnectionState.CLOSING
            if self._task is not None:
                self._task.cancel()
            return
        self._state = ConnectionState.CLOSING
        for payload in self._farewell:
            self._outbox.put_nowait(payload)
        self._outbox.put_nowait(_CLOSE)
        self._deadline = asyncio.get_running_loop().call_later(
            self._close_timeout, self._abort
        )

    async def wait_closed(self) -> None:
        """Wait until the session has terminated."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def _run(self) -> None:
        ws: ClientConnection | None = None
        try:
            async with self._connect(
                self.url,
                open_timeout=self._open_timeout,
                close_timeout=self._close_timeout,
            ) as ws:
                await self._serve(ws)
        except asyncio.CancelledError:
            logger.debug("Session to %s cancelled", self.url)
        except (OSError, TimeoutError, WebSocketException) as exc:
            self._last_error = str(exc) or type(exc).__name__
            logger.warning("Feed connection to %s failed: %s", self.url, self._last_error)
            self._dispatcher.emit(ERROR, self._last_error)
        finally:
            code = ws.close_code if ws is not None else None
            self._finish(code if code is not None else ABNORMAL_CLOSURE)

    async def _serve(self, ws: ClientConnection) -> None:
        self._state = ConnectionState.OPEN
        logger.info("Feed connection to %s open", self.url)
        for payload in self._greeting:
            self._outbox.put_nowait(payload)
        writer = asyncio.create_task(self._drain(ws))
        self._dispatcher.emit(OPEN)
        try:
            async for raw in ws:
                self._dispatcher.emit(MESSAGE, raw)
        finally:
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                try:
                    await writer
                except (OSError, WebSocketException) as exc:
                    logger.debug("Writer for %s stopped: %s", self.url, exc)

    async def _drain(self, ws: ClientConnection) -> None:
        """Write queued frames in order until told to close."""
        while True:
            payload = await self._outbox.get()
            if payload is _CLOSE:
                break
            try:
                await ws.send(payload)
            except WebSocketException as exc:
                logger.debug("Could not deliver frame to %s: %s", self.url, exc)
                break
        await ws.close()

    def _abort(self) -> None:
        if self._task is not None and not self._task.done():
            logger.warning(
                "Graceful close of %s exceeded %.1fs, aborting",
                self.url,
                self._close_timeout,
            )
            self._task.cancel()

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        # Covers a task cancelled before its first step, which never
        # reaches the finally block in _run.
        if not task.cancelled() and task.exception() is not None:
            logger.error("Session task for %s crashed", self.url, exc_info=task.exception())
        self._finish(ABNORMAL_CLOSURE)

    def _finish(self, code: int) -> None:
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None
        self._state = ConnectionState.CLOSED
        if self._close_code is not None:
            return
        self._close_code = code
        logger.info("Feed connection to %s closed (code %d)", self.url, code)
        self._dispatcher.emit(CLOSE, code)
        self._dispatcher.clear()


def open_session(url: str, **options: Any) -> TransportSession:
    """Create a session and start connecting it.

    Args:
        url: Feed endpoint.
        **options: Keyword arguments for :class:`TransportSession`.

    Returns:
        The session, in the ``connecting`` state.
    """
    return TransportSession(url, **options).open()
