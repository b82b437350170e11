"""Port interfaces for the feed client.

These protocols define the contracts the client facade and the
supervisor depend on. Concrete adapters live under ``dashfeed.adapters``.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from dashfeed.core.models import ConnectionState, FilterCriteria, LogRecord


@runtime_checkable
class SessionPort(Protocol):
    """One attempt-scoped connection to the feed.

    Emits ``open``, ``message(raw)``, ``error(detail)`` and exactly one
    ``close(code)``.
    """

    @property
    def state(self) -> ConnectionState: ...

    @property
    def last_error(self) -> str | None: ...

    def on(self, event: str, handler: Callable[..., Any]) -> Callable[[], None]:
        """Register an event handler; returns an unregister callable."""
        ...

    def open(self) -> "SessionPort":
        """Begin the connection attempt without waiting for it."""
        ...

    def send(self, payload: str) -> bool:
        """Queue a frame; returns False (and drops it) unless open."""
        ...

    def close(self) -> None:
        """Say goodbye and terminate. Idempotent."""
        ...


class SessionFactory(Protocol):
    """Builds a new session for each connection attempt."""

    def __call__(
        self,
        url: str,
        *,
        greeting: Sequence[str],
        farewell: Sequence[str],
    ) -> SessionPort: ...


@runtime_checkable
class SnapshotStorePort(Protocol):
    """Holder of the latest full metrics snapshot."""

    @property
    def snapshot(self) -> Mapping[str, Any]: ...

    @property
    def updated_at(self) -> datetime | None: ...

    @property
    def error(self) -> str | None: ...

    def apply_snapshot(self, raw: Any) -> bool:
        """Replace the snapshot wholesale; returns False if rejected."""
        ...


@runtime_checkable
class LogBufferPort(Protocol):
    """Bounded, ordered store of log records."""

    def append(self, raw: Any) -> LogRecord | None:
        """Normalise and append one log event."""
        ...

    def add(self, record: LogRecord) -> None:
        """Append an already-built record."""
        ...

    def query(self, criteria: FilterCriteria | None = None) -> Iterable[LogRecord]:
        """Records matching the criteria, in arrival order."""
        ...

    def clear(self) -> None: ...
