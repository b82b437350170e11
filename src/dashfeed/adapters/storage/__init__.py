"""Storage adapters implementing core ports."""

from dashfeed.adapters.storage.ring_buffer import (
    DEFAULT_CAPACITY,
    LogQuery,
    LogStreamBuffer,
)
from dashfeed.adapters.storage.snapshot import MetricsModelStore

__all__ = [
    "DEFAULT_CAPACITY",
    "LogQuery",
    "LogStreamBuffer",
    "MetricsModelStore",
]
