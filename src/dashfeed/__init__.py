"""Real-time telemetry feed client for live operational dashboards."""

from dashfeed.adapters.logging import LogBufferHandler
from dashfeed.adapters.storage import LogStreamBuffer, MetricsModelStore
from dashfeed.adapters.supervisor import ReconnectionSupervisor
from dashfeed.adapters.transport import TransportSession, open_session
from dashfeed.client import FeedClient
from dashfeed.config import FeedConfig
from dashfeed.core.models import (
    ConnectionState,
    ConnectionStatus,
    FilterCriteria,
    Intent,
    LogRecord,
    Severity,
    SupervisorState,
    default_snapshot,
)
from dashfeed.core.severity import classify

__all__ = [
    "ConnectionState",
    "ConnectionStatus",
    "FeedClient",
    "FeedConfig",
    "FilterCriteria",
    "Intent",
    "LogBufferHandler",
    "LogRecord",
    "LogStreamBuffer",
    "MetricsModelStore",
    "ReconnectionSupervisor",
    "Severity",
    "SupervisorState",
    "TransportSession",
    "classify",
    "default_snapshot",
    "open_session",
]
