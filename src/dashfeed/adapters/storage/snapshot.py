"""In-memory store for the latest metrics snapshot."""

import logging
import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from dashfeed.core.encoding.frames import CONNECTED, ERROR, METRICS, decode_frame
from dashfeed.core.models import default_snapshot, freeze

logger = logging.getLogger(__name__)


def _as_frame(raw: Any) -> Mapping[str, Any] | None:
    """Accept either an already-decoded frame or raw frame text."""
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (str, bytes, bytearray)):
        return decode_frame(raw)
    return None


class MetricsModelStore:
    """Holds the latest full metrics snapshot.

    Each accepted snapshot replaces the previous one wholesale; nothing is
    ever merged. Before the first snapshot the store exposes a zero-valued
    default so readers never see missing fields. Writes hold a lock only
    for the assignment, so readers on other threads never observe a torn
    snapshot.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Mapping[str, Any] = default_snapshot()
        self._updated_at: datetime | None = None
        self._acknowledged_at: datetime | None = None
        self._error: str | None = None

    @property
    def snapshot(self) -> Mapping[str, Any]:
        """The current read-only snapshot."""
        return self._snapshot

    @property
    def updated_at(self) -> datetime | None:
        """When the current snapshot was applied; None for the default."""
        return self._updated_at

    @property
    def acknowledged_at(self) -> datetime | None:
        """When the feed last confirmed the connection."""
        return self._acknowledged_at

    @property
    def error(self) -> str | None:
        """User-visible feed error, if any."""
        return self._error

    def apply_snapshot(self, raw: Any) -> bool:
        """Replace the stored snapshot with the one carried by ``raw``.

        Args:
            raw: A metrics frame, decoded or as received.

        Returns:
            True if the snapshot was replaced. False (and no change) if the
            frame is malformed, is not a metrics frame, or has no object
            payload.
        """
        frame = _as_frame(raw)
        if frame is None or frame.get("type") != METRICS:
            return False
        data = frame.get("data")
        if not isinstance(data, Mapping):
            logger.warning("Ignoring metrics frame without an object payload")
            return False
        try:
            snapshot = freeze(data)
        except RecursionError:
            logger.warning("Ignoring metrics frame nested too deeply to store")
            return False
        now = datetime.now(UTC)
        with self._lock:
            self._snapshot = snapshot
            self._updated_at = now
        return True

    def apply_control_ack(self, raw: Any) -> bool:
        """Record a connection confirmation. Never touches the snapshot."""
        frame = _as_frame(raw)
        if frame is None or frame.get("type") != CONNECTED:
            return False
        self._acknowledged_at = datetime.now(UTC)
        logger.info("Feed confirmed monitoring, waiting for metrics")
        return True

    def apply_error(self, raw: Any) -> str | None:
        """Surface a feed-reported error.

        The last good snapshot is kept; stale data is preferred over an
        empty display.

        Returns:
            The error message now exposed, or None if ``raw`` is not an
            error frame.
        """
        frame = _as_frame(raw)
        if frame is None or frame.get("type") != ERROR:
            return None
        message = frame.get("message")
        self.report_error(str(message) if message is not None else "Unknown feed error")
        return self._error

    def report_error(self, message: str) -> None:
        """Set the user-visible error string directly."""
        self._error = message

    def clear_error(self) -> None:
        self._error = None

    def reset(self) -> None:
        """Return to the default snapshot and forget all state."""
        with self._lock:
            self._snapshot = default_snapshot()
            self._updated_at = None
        self._acknowledged_at = None
        self._error = None
