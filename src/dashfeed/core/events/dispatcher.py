"""Named-event dispatch table."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventDispatcher:
    """Dispatch table mapping a fixed set of event names to handlers.

    Handlers run synchronously in registration order. A handler that
    raises is logged and skipped; the remaining handlers still run.

    Args:
        events: The event names this dispatcher accepts.
    """

    def __init__(self, events: Iterable[str]) -> None:
        self._handlers: dict[str, list[Handler]] = {name: [] for name in events}

    @property
    def events(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def register(self, event: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for an event.

        Args:
            event: Event name.
            handler: Callable invoked with the event's arguments.

        Returns:
            A callable that unregisters the handler.

        Raises:
            ValueError: If the event name is unknown.
            TypeError: If the handler is not callable.
        """
        if event not in self._handlers:
            raise ValueError(f"unknown event {event!r}")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[event].append(handler)
        return lambda: self.unregister(event, handler)

    def unregister(self, event: str, handler: Handler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        """Invoke every handler registered for ``event``."""
        for handler in list(self._handlers[event]):
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler for %r event failed", event)

    def clear(self) -> None:
        for handlers in self._handlers.values():
            handlers.clear()
