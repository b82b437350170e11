"""Reconnection supervisor for feed sessions.

Reconnects after a fixed delay, forever, until stopped. A fixed delay
suits a trusted local backend where fast recovery matters; a remote or
shared feed would want exponential backoff with jitter instead.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any

from dashfeed.adapters.transport.websocket import TransportSession
from dashfeed.core.events import EventDispatcher, Handler
from dashfeed.core.models import SupervisorState
from dashfeed.core.ports import SessionFactory, SessionPort

logger = logging.getLogger(__name__)

STATE = "state"
OPEN = "open"
MESSAGE = "message"
ERROR = "error"

SUPERVISOR_EVENTS = (STATE, OPEN, MESSAGE, ERROR)

DEFAULT_RECONNECT_DELAY = 2.0


class ReconnectionSupervisor:
    """Owns the one live session and its reconnect policy.

    State machine::

        disconnected --start()--> connecting --open--> connected
        connected --unrequested close--> connecting (after delay)
        connecting/connected --stop()--> disconnected

    Events: ``state(SupervisorState)``, ``open(session)``,
    ``message(raw)`` and ``error(detail)``. Messages from sessions the
    supervisor has already let go of are not forwarded.

    Args:
        url: Feed endpoint.
        greeting: Frames each new session sends when it opens.
        farewell: Frames each session sends when closed on request.
        reconnect_delay: Fixed seconds to wait before reconnecting.
        session_factory: Builds a session per attempt.
    """

    def __init__(
        self,
        url: str,
        *,
        greeting: Sequence[str] = (),
        farewell: Sequence[str] = (),
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        session_factory: SessionFactory = TransportSession,
    ) -> None:
        self.url = url
        self.reconnect_delay = reconnect_delay
        self._greeting = tuple(greeting)
        self._farewell = tuple(farewell)
        self._session_factory = session_factory
        self._dispatcher = EventDispatcher(SUPERVISOR_EVENTS)
        self._state = SupervisorState.DISCONNECTED
        self._session: SessionPort | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._running = False
        self._attempts = 0

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def session(self) -> SessionPort | None:
        """The live session, if any."""
        return self._session

    @property
    def running(self) -> bool:
        """True between start() and stop()."""
        return self._running

    @property
    def attempts(self) -> int:
        """Number of sessions created so far."""
        return self._attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    def on(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for ``state``, ``open``, ``message`` or ``error``."""
        return self._dispatcher.register(event, handler)

    def start(self) -> None:
        """Begin connecting. A no-op while a session is live or pending."""
        self._running = True
        if self._session is not None or self._timer is not None:
            return
        self._attempt()

    def stop(self) -> None:
        """Close the live session and cancel any scheduled reconnect.

        Idempotent. No reconnect happens until start() is called again.
        """
        self._running = False
        self._cancel_timer()
        session, self._session = self._session, None
        if session is not None:
            session.close()
        self._set_state(SupervisorState.DISCONNECTED)

    def reconnect(self) -> None:
        """Drop the live session and connect again immediately."""
        self._running = True
        self._cancel_timer()
        session, self._session = self._session, None
        if session is not None:
            logger.info("Manual reconnect requested, closing %r", session)
            session.close()
        self._attempt()

    def _attempt(self) -> None:
        self._timer = None
        if not self._running:
            return
        self._attempts += 1
        session = self._session_factory(
            self.url, greeting=self._greeting, farewell=self._farewell
        )
        self._session = session
        session.on("open", lambda: self._on_open(session))
        session.on("message", lambda raw: self._on_message(session, raw))
        session.on("error", lambda detail: self._on_error(session, detail))
        session.on("close", lambda code: self._on_close(session, code))
        self._set_state(SupervisorState.CONNECTING)
        logger.debug("Connection attempt %d to %s", self._attempts, self.url)
        session.open()

    def _on_open(self, session: SessionPort) -> None:
        if session is not self._session:
            return
        self._set_state(SupervisorState.CONNECTED)
        self._dispatcher.emit(OPEN, session)

    def _on_message(self, session: SessionPort, raw: Any) -> None:
        if session is self._session:
            self._dispatcher.emit(MESSAGE, raw)

    def _on_error(self, session: SessionPort, detail: str) -> None:
        if session is self._session:
            self._dispatcher.emit(ERROR, detail)

    def _on_close(self, session: SessionPort, code: int) -> None:
        if session is not self._session:
            return
        self._session = None
        if not self._running:
            self._set_state(SupervisorState.DISCONNECTED)
            return
        logger.info(
            "Feed session closed (code %d), reconnecting in %.1fs",
            code,
            self.reconnect_delay,
        )
        self._set_state(SupervisorState.CONNECTING)
        self._timer = asyncio.get_running_loop().call_later(
            self.reconnect_delay, self._attempt
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _set_state(self, state: SupervisorState) -> None:
        if state is self._state:
            return
        self._state = state
        self._dispatcher.emit(STATE, state)

