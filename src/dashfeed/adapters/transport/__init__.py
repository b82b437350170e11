"""Transport adapters."""

from dashfeed.adapters.transport.websocket import (
    ABNORMAL_CLOSURE,
    NORMAL_CLOSURE,
    TransportSession,
    open_session,
)

__all__ = [
    "ABNORMAL_CLOSURE",
    "NORMAL_CLOSURE",
    "TransportSession",
    "open_session",
]
