"""Bounded log buffer for feed log lines.

Stores records in arrival order in a fixed-size deque. When the buffer
is full the oldest record is evicted to make room; the newest record is
never dropped.
"""

import logging
import threading
from collections import deque
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from typing import Any

from dashfeed.core.encoding.frames import LOG, decode_frame
from dashfeed.core.models import FilterCriteria, LogRecord
from dashfeed.core.severity import classify, coerce_severity

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 500

UNKNOWN_SOURCE = "unknown"


def _parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp, falling back to the arrival time."""
    if isinstance(value, str) and value:
        try:
            # fromisoformat() accepts a trailing "Z" since Python 3.11
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.debug("Unparsable log timestamp %r, using arrival time", value)
        else:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.now(UTC)


def to_log_record(event: Mapping[str, Any]) -> LogRecord:
    """Normalise a decoded log event into a LogRecord.

    An upstream ``level`` is honoured when it names a known severity;
    otherwise the severity is classified from the message.
    """
    message = event.get("message")
    message = "" if message is None else str(message)
    source = event.get("service") or event.get("source") or UNKNOWN_SOURCE
    severity = coerce_severity(event.get("level")) or classify(message)
    return LogRecord(
        timestamp=_parse_timestamp(event.get("timestamp")),
        source=str(source),
        severity=severity,
        message=message,
    )


class LogQuery:
    """Lazy, restartable view of the records matching some criteria.

    Each iteration takes a fresh copy of the buffer and filters it
    lazily, so iterating twice reflects appends made in between and the
    buffer itself is never mutated.
    """

    def __init__(self, buffer: "LogStreamBuffer", criteria: FilterCriteria) -> None:
        self._buffer = buffer
        self.criteria = criteria

    def __iter__(self) -> Iterator[LogRecord]:
        return (r for r in self._buffer.records() if self.criteria.matches(r))


class LogStreamBuffer:
    """Ring buffer of log records with predicate-based querying.

    Args:
        capacity: Maximum number of records retained.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._lock = threading.Lock()
        self._records: deque[LogRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    def __len__(self) -> int:
        return len(self._records)

    def append(self, raw: Any) -> LogRecord | None:
        """Normalise one log event and append it.

        Args:
            raw: A log frame, decoded or as received. Frames whose type is
                present but not "log" are rejected.

        Returns:
            The stored record, or None if ``raw`` was not a log event.
        """
        if isinstance(raw, (str, bytes, bytearray)):
            raw = decode_frame(raw)
        if not isinstance(raw, Mapping) or raw.get("type", LOG) != LOG:
            return None
        record = to_log_record(raw)
        self.add(record)
        return record

    def add(self, record: LogRecord) -> None:
        """Append an already-built record, evicting the oldest if full."""
        with self._lock:
            self._records.append(record)

    def records(self) -> list[LogRecord]:
        """Copy of all retained records in arrival order."""
        with self._lock:
            return list(self._records)

    def query(self, criteria: FilterCriteria | None = None) -> LogQuery:
        """Records satisfying ``criteria``, in arrival order.

        Args:
            criteria: Filter to apply; None means no filtering.

        Returns:
            A restartable iterable; see :class:`LogQuery`.
        """
        return LogQuery(self, criteria or FilterCriteria())

    def sources(self) -> list[str]:
        """Distinct sources among retained records, in first-seen order."""
        return list(dict.fromkeys(r.source for r in self.records()))

    def clear(self) -> None:
        """Drop every record."""
        with self._lock:
            self._records.clear()
