"""NDJSON encoder for feed log records."""

import json
from collections.abc import Iterable

from dashfeed.core.models import LogRecord


def encode_logs(records: Iterable[LogRecord]) -> str:
    """Encode log records to newline-delimited JSON.

    Args:
        records: An iterable of LogRecord objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no records.
    """
    lines = [json.dumps(record.to_dict()) for record in records]

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
