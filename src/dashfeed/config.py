"""Configuration for the feed client."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any
from urllib.parse import urlparse

from dashfeed.adapters.storage.ring_buffer import DEFAULT_CAPACITY
from dashfeed.adapters.supervisor import DEFAULT_RECONNECT_DELAY
from dashfeed.core.models import Intent

DEFAULT_URL = "ws://localhost:3001/ws/logs"


@dataclass(frozen=True)
class FeedConfig:
    """Connection and buffering settings.

    Attributes:
        url: Feed endpoint, ``ws://`` or ``wss://``.
        reconnect_delay: Fixed seconds between a dropped session and the
            next attempt.
        log_capacity: Maximum log records retained.
        open_timeout: Seconds allowed for the opening handshake.
        close_timeout: Seconds allowed for a graceful close.
        intents: Streams requested when a session opens.
    """

    url: str = DEFAULT_URL
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    log_capacity: int = DEFAULT_CAPACITY
    open_timeout: float = 10.0
    close_timeout: float = 1.0
    intents: tuple[Intent, ...] = (Intent.MONITORING, Intent.LOGS)

    def __post_init__(self) -> None:
        if urlparse(self.url).scheme not in ("ws", "wss"):
            raise ValueError(f"url must use ws:// or wss://, got {self.url!r}")
        if self.reconnect_delay <= 0:
            raise ValueError("reconnect_delay must be positive")
        if self.log_capacity < 1:
            raise ValueError("log_capacity must be at least 1")
        if self.open_timeout <= 0 or self.close_timeout <= 0:
            raise ValueError("timeouts must be positive")
        if not self.intents:
            raise ValueError("at least one intent is required")
        # Accept plain strings such as "logs" from settings files.
        object.__setattr__(self, "intents", tuple(Intent(i) for i in self.intents))

    @property
    def greeting(self) -> tuple[str, ...]:
        """Control actions sent when a session opens."""
        return tuple(intent.start_action for intent in self.intents)

    @property
    def farewell(self) -> tuple[str, ...]:
        """Control actions sent before a session is closed on request."""
        return tuple(intent.stop_action for intent in self.intents)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "FeedConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        options = {key: value for key, value in values.items() if key in known}
        if "intents" in options:
            options["intents"] = tuple(options["intents"])
        return cls(**options)
