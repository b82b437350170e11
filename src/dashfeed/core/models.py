"""Core domain models for the telemetry feed client."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

# Placeholder rendered for string metrics before the first snapshot arrives.
PLACEHOLDER = "--"

ALL = "all"


class Severity(StrEnum):
    """Coarse log classification used for filtering."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class ConnectionState(StrEnum):
    """Lifecycle of a single transport session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class SupervisorState(StrEnum):
    """Lifecycle of the reconnection supervisor."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Intent(StrEnum):
    """What a session asks the feed to stream.

    Each intent maps to the control action sent right after the
    connection opens and the one sent before it is closed.
    """

    MONITORING = "monitoring"
    LOGS = "logs"

    @property
    def start_action(self) -> str:
        return f"start_{self.value}"

    @property
    def stop_action(self) -> str:
        return f"stop_{self.value}"


@dataclass(frozen=True)
class LogRecord:
    """A single feed log line.

    Attributes:
        timestamp: When the line was produced (arrival time if the feed
            did not say).
        source: Service that emitted the line.
        severity: Supplied by the feed or derived from the message.
        message: The log message.
    """

    timestamp: datetime
    source: str
    severity: Severity
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "severity": self.severity.value,
            "message": self.message,
        }


@dataclass(frozen=True)
class FilterCriteria:
    """Query over the log buffer.

    Attributes:
        source_or_level: "all" for no filter, otherwise a source name or a
            severity value; a record matches if either equals it.
        search_text: Case-insensitive substring the message must contain.
            Empty matches everything.
    """

    source_or_level: str = ALL
    search_text: str = ""

    def matches(self, record: LogRecord) -> bool:
        if self.source_or_level != ALL and self.source_or_level not in (
            record.source,
            record.severity.value,
        ):
            return False
        if self.search_text and (
            self.search_text.lower() not in record.message.lower()
        ):
            return False
        return True


@dataclass(frozen=True)
class ConnectionStatus:
    """Point-in-time view of the feed connection for status indicators.

    Attributes:
        state: Current supervisor state.
        last_update: When the last valid snapshot was applied, if ever.
        error: User-visible error string, if any.
        loading: True until the first snapshot or feed error arrives.
    """

    state: SupervisorState
    last_update: datetime | None = None
    error: str | None = None
    loading: bool = False

    @property
    def live(self) -> bool:
        """True when the LIVE indicator should be lit."""
        return self.state is SupervisorState.CONNECTED


def freeze(value: Any) -> Any:
    """Return a read-only deep copy of decoded JSON.

    Mappings become ``MappingProxyType`` and lists become tuples so
    readers can never mutate a stored snapshot.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`, producing plain JSON-serialisable data."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


def default_snapshot() -> Mapping[str, Any]:
    """Zero-valued snapshot exposed before the first one arrives.

    Every counter is zero and every string is the placeholder token so
    dependent views can render without checking for missing fields.
    """
    return freeze(
        {
            "system": {
                "disk": {
                    "total": PLACEHOLDER,
                    "used": PLACEHOLDER,
                    "available": PLACEHOLDER,
                    "percentage": 0,
                },
                "ram": {"total": 0, "used": 0, "free": 0, "percentage": 0},
                "cpu": {"usage": 0},
            },
            "docker": {
                "containers": [],
                "images": [],
                "totalContainers": 0,
                "totalImages": 0,
                "totalImageSize": PLACEHOLDER,
            },
            "redis": {
                "memory": {
                    "used": PLACEHOLDER,
                    "peak": PLACEHOLDER,
                    "fragmentation": PLACEHOLDER,
                },
                "performance": {"opsPerSec": 0, "hitRate": 0, "connectedClients": 0},
                "version": PLACEHOLDER,
                "uptime": PLACEHOLDER,
            },
            "redisQueues": {
                "queues": {
                    "waiting": 0,
                    "active": 0,
                    "completed": 0,
                    "failed": 0,
                    "delayed": 0,
                    "paused": 0,
                    "total": 0,
                },
                "memoryPerQueue": {},
            },
            "postgresql": {
                "memory": PLACEHOLDER,
                "cpu": PLACEHOLDER,
                "dbSize": PLACEHOLDER,
                "connections": 0,
            },
            "workerDetails": {"workers": [], "count": 0, "avgCpu": 0},
            "n8n": {"waiting": 0, "active": 0, "completed": 0, "failed": 0, "workers": 0},
            "alerts": [],
        }
    )
