"""JSON frame codec for the feed wire protocol.

Client to server frames are control messages: ``{"action": "<action>"}``.
Server to client frames are objects discriminated by ``type``.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Server -> client frame types
CONNECTED = "connected"
METRICS = "metrics"
LOG = "log"
ERROR = "error"

FRAME_TYPES = frozenset({CONNECTED, METRICS, LOG, ERROR})

# Client -> server control actions
START_MONITORING = "start_monitoring"
STOP_MONITORING = "stop_monitoring"
START_LOGS = "start_logs"
STOP_LOGS = "stop_logs"

CONTROL_ACTIONS = frozenset({START_MONITORING, STOP_MONITORING, START_LOGS, STOP_LOGS})


def encode_control(action: str) -> str:
    """Encode a control message.

    Args:
        action: One of the control actions (e.g. "start_monitoring").

    Returns:
        The JSON text to send.

    Raises:
        ValueError: If the action is not a known control action.
    """
    if action not in CONTROL_ACTIONS:
        raise ValueError(f"unknown control action: {action!r}")
    return json.dumps({"action": action})


def decode_frame(raw: str | bytes | bytearray) -> dict[str, Any] | None:
    """Decode one inbound frame.

    Malformed frames are dropped: the failure is logged and None is
    returned so one bad frame never affects the ones that follow.

    Args:
        raw: Frame payload as received from the transport.

    Returns:
        The decoded JSON object, or None if the frame is not a JSON object
        with a string ``type``.
    """
    try:
        frame = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
        logger.warning("Dropping malformed frame: %s", exc)
        return None
    if not isinstance(frame, dict) or not isinstance(frame.get("type"), str):
        logger.warning("Dropping frame without a type discriminator")
        return None
    return frame


def frame_type(frame: dict[str, Any]) -> str:
    """Return the frame's type, or "" if it is not one we handle."""
    kind = frame.get("type", "")
    if not isinstance(kind, str):
        return ""
    return kind if kind in FRAME_TYPES else ""
