"""Event dispatch for sessions and client subscriptions."""

from dashfeed.core.events.dispatcher import EventDispatcher, Handler

__all__ = [
    "EventDispatcher",
    "Handler",
]
