"""Severity classification for feed log lines.

The feed does not reliably label its log lines, so severity is inferred
from the message text. This is a best-effort heuristic: it matches plain
substrings with no word-boundary check, so "Error-free run" classifies as
``error``.
"""

from dashfeed.core.models import Severity

# Checked in order; the first keyword found wins.
_KEYWORDS: tuple[tuple[str, Severity], ...] = (
    ("error", Severity.ERROR),
    ("warn", Severity.WARN),
    ("debug", Severity.DEBUG),
)

_ALIASES = {
    "warning": Severity.WARN,
    "err": Severity.ERROR,
    "critical": Severity.ERROR,
    "fatal": Severity.ERROR,
}


def classify(message: str) -> Severity:
    """Derive a severity from message content.

    Args:
        message: The raw log message.

    Returns:
        ``error`` if the message mentions "error" (case-insensitive),
        else ``warn`` for "warn", else ``debug`` for "debug", else ``info``.
    """
    lowered = message.lower()
    for keyword, severity in _KEYWORDS:
        if keyword in lowered:
            return severity
    return Severity.INFO


def coerce_severity(value: object) -> Severity | None:
    """Map an upstream-supplied level to a Severity.

    Args:
        value: Level as sent by the feed (e.g. "WARNING", "info").

    Returns:
        The matching Severity, or None if the value is missing or unknown.
    """
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in _ALIASES:
        return _ALIASES[lowered]
    try:
        return Severity(lowered)
    except ValueError:
        return None
