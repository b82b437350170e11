"""Python logging handler adapter for the log buffer.

This adapter bridges Python's standard library logging module to a
LogStreamBuffer, so a dashboard can show the client's own diagnostics
next to the feed's log lines.
"""

import logging
from datetime import UTC, datetime

from dashfeed.core.models import LogRecord, Severity
from dashfeed.core.ports import LogBufferPort


def severity_for_level(levelno: int) -> Severity:
    """Map a stdlib logging level number to a Severity."""
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARN
    if levelno >= logging.INFO:
        return Severity.INFO
    return Severity.DEBUG


class LogBufferHandler(logging.Handler):
    """Logging handler that appends records to a log buffer.

    Example:
        ```python
        from dashfeed import FeedClient, LogBufferHandler

        feed = FeedClient()
        logging.getLogger("dashfeed").addHandler(LogBufferHandler(feed.logs))
        ```
    """

    def __init__(
        self,
        buffer: LogBufferPort,
        source: str | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a target buffer.

        Args:
            buffer: Buffer receiving the records; must provide ``add``.
            source: Source name for every record. Defaults to the logger
                name of each record.
            level: Minimum level handled.
        """
        super().__init__(level)
        self._buffer = buffer
        self._source = source

    def emit(self, record: logging.LogRecord) -> None:
        """Append a log record to the buffer.

        Args:
            record: The log record to emit.
        """
        try:
            message = record.getMessage()
            if record.exc_info and record.exc_info[1] is not None:
                exc = record.exc_info[1]
                message = f"{message} ({type(exc).__name__}: {exc})"
            entry = LogRecord(
                timestamp=datetime.fromtimestamp(record.created, UTC),
                source=self._source or record.name,
                severity=severity_for_level(record.levelno),
                message=message,
            )
            self._buffer.add(entry)
        except Exception:
            self.handleError(record)
