"""Feed client facade used by the presentation layer.

Wires a reconnection supervisor to a metrics store and a log buffer and
exposes subscriptions, start/stop/reconnect requests and read accessors.
"""

import functools
import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from types import TracebackType
from typing import Any

from dashfeed.adapters.storage.ring_buffer import LogStreamBuffer
from dashfeed.adapters.storage.snapshot import MetricsModelStore
from dashfeed.adapters.supervisor import ReconnectionSupervisor
from dashfeed.adapters.transport.websocket import TransportSession
from dashfeed.config import FeedConfig
from dashfeed.core.encoding import frames
from dashfeed.core.events import EventDispatcher, Handler
from dashfeed.core.models import (
    ConnectionStatus,
    FilterCriteria,
    LogRecord,
    SupervisorState,
)
from dashfeed.core.ports import SessionFactory, SessionPort

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Connection error - is the server running?"

MODEL_CHANGE = "model_change"
LOG_APPEND = "log_append"
STATUS_CHANGE = "status_change"
FEED_ERROR = "feed_error"

CLIENT_EVENTS = (MODEL_CHANGE, LOG_APPEND, STATUS_CHANGE, FEED_ERROR)


class FeedClient:
    """Live telemetry feed client.

    Subscribers receive ``model_change(snapshot)``, ``log_append(record)``,
    ``status_change(ConnectionStatus)`` and ``feed_error(message)``. None of
    the transport failures are raised to callers; they show up through
    :meth:`connection_status` instead.

    Example:
        ```python
        async with FeedClient(FeedConfig(url="ws://localhost:3001/ws/logs")) as feed:
            feed.subscribe("model_change", render)
            ...
        ```

    Args:
        config: Connection and buffering settings.
        session_factory: Builds a session per connection attempt; defaults
            to :class:`TransportSession` configured from ``config``.
    """

    def __init__(
        self,
        config: FeedConfig | None = None,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.config = config or FeedConfig()
        self.store = MetricsModelStore()
        self.logs = LogStreamBuffer(self.config.log_capacity)
        if session_factory is None:
            session_factory = functools.partial(
                TransportSession,
                open_timeout=self.config.open_timeout,
                close_timeout=self.config.close_timeout,
            )
        self.supervisor = ReconnectionSupervisor(
            self.config.url,
            greeting=[frames.encode_control(a) for a in self.config.greeting],
            farewell=[frames.encode_control(a) for a in self.config.farewell],
            reconnect_delay=self.config.reconnect_delay,
            session_factory=session_factory,
        )
        self._dispatcher = EventDispatcher(CLIENT_EVENTS)
        self._loading = False
        self.supervisor.on("open", self._on_open)
        self.supervisor.on("message", self.dispatch_frame)
        self.supervisor.on("error", self._on_transport_error)
        self.supervisor.on("state", self._on_state)

    async def __aenter__(self) -> "FeedClient":
        self.request_start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def subscribe(self, event: str, handler: Handler) -> Callable[[], None]:
        """Subscribe to a client event.

        Returns:
            A callable that cancels the subscription.

        Raises:
            ValueError: If ``event`` is not one of the client events.
            TypeError: If ``handler`` is not callable.
        """
        return self._dispatcher.register(event, handler)

    def request_start(self) -> None:
        """Start streaming; reconnects automatically until stopped."""
        if not self.supervisor.running:
            self._loading = self.store.updated_at is None
        self.supervisor.start()

    def request_stop(self) -> None:
        """Stop streaming and cancel any pending reconnect."""
        self._loading = False
        self.supervisor.stop()

    def request_reconnect(self) -> None:
        """Drop the current connection and reconnect immediately."""
        self.supervisor.reconnect()

    async def aclose(self) -> None:
        """Stop streaming and wait for the live session to terminate."""
        session = self.supervisor.session
        self.request_stop()
        wait_closed = getattr(session, "wait_closed", None)
        if wait_closed is not None:
            await wait_closed()

    def current_snapshot(self) -> Mapping[str, Any]:
        """Latest metrics snapshot (read-only)."""
        return self.store.snapshot

    def current_logs(self, criteria: FilterCriteria | None = None) -> Iterable[LogRecord]:
        """Retained log records matching ``criteria``, oldest first."""
        return self.logs.query(criteria)

    def connection_status(self) -> ConnectionStatus:
        return ConnectionStatus(
            state=self.supervisor.state,
            last_update=self.store.updated_at,
            error=self.store.error,
            loading=self._loading,
        )

    @property
    def session(self) -> SessionPort | None:
        return self.supervisor.session

    @property
    def last_update(self) -> datetime | None:
        return self.store.updated_at

    @property
    def is_loading(self) -> bool:
        return self._loading

    def clear_logs(self) -> None:
        """Empty the log buffer; the live session is unaffected."""
        self.logs.clear()

    def dispatch_frame(self, raw: Any) -> str | None:
        """Route one inbound frame to the store or the log buffer.

        Malformed frames and unknown frame types are dropped.

        Args:
            raw: Frame text as received, or an already-decoded frame.

        Returns:
            The type of the frame that was applied, or None if dropped.
        """
        frame = raw if isinstance(raw, Mapping) else frames.decode_frame(raw)
        if frame is None:
            return None
        kind = frames.frame_type(frame)
        if kind == frames.METRICS:
            if not self.store.apply_snapshot(frame):
                return None
            self._loading = False
            self._dispatcher.emit(MODEL_CHANGE, self.store.snapshot)
        elif kind == frames.LOG:
            record = self.logs.append(frame)
            if record is None:
                return None
            self._dispatcher.emit(LOG_APPEND, record)
        elif kind == frames.CONNECTED:
            self.store.apply_control_ack(frame)
        elif kind == frames.ERROR:
            message = self.store.apply_error(frame)
            self._loading = False
            self._dispatcher.emit(FEED_ERROR, message)
            self._emit_status()
        else:
            logger.debug("Ignoring frame of type %r", frame.get("type"))
            return None
        return kind

    def _on_open(self, session: SessionPort) -> None:
        self.store.clear_error()
        self._emit_status()

    def _on_transport_error(self, detail: str) -> None:
        logger.debug("Transport error surfaced to status: %s", detail)
        self.store.report_error(CONNECTION_ERROR)
        self._loading = False
        self._emit_status()

    def _on_state(self, state: SupervisorState) -> None:
        self._emit_status()

    def _emit_status(self) -> None:
        self._dispatcher.emit(STATUS_CHANGE, self.connection_status())
