"""ASGI generic adapter exposing feed client state.

This adapter provides a framework-agnostic ASGI application that serves
the client's connection status, latest snapshot and filtered log buffer
to other processes, without requiring FastAPI as a dependency.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any
from urllib.parse import parse_qs

from dashfeed.adapters.frameworks.query_params import (
    _parse_filter_params,
    _parse_limit_param,
)
from dashfeed.client import FeedClient
from dashfeed.core.encoding.ndjson import encode_logs
from dashfeed.core.models import ConnectionStatus, thaw

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _parse_query_params(scope: Scope) -> dict[str, list[str]]:
    """Parse query string from ASGI scope into parameter dictionary."""
    query_string = scope.get("query_string", b"").decode(errors="replace")
    return parse_qs(query_string)


def status_to_dict(status: ConnectionStatus) -> dict[str, Any]:
    """JSON form of a connection status."""
    return {
        "state": status.state.value,
        "live": status.live,
        "last_update": status.last_update.isoformat() if status.last_update else None,
        "error": status.error,
        "loading": status.loading,
    }


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _handle_endpoint(
    send: Send,
    render: Callable[[], str],
    content_type: str,
    log_message: str,
) -> None:
    """Render a response body with error handling and send it.

    Args:
        send: ASGI send callable for writing response.
        render: Function that returns the response body.
        content_type: Content-Type header for success response.
        log_message: Message to log on error.
    """
    try:
        body = render()
    except Exception:
        logger.exception(log_message)
        error_body = json.dumps({"error": "Internal Server Error"})
        await _send_response(send, 500, "application/json", error_body)
        return
    await _send_response(send, 200, content_type, body)


def create_asgi_app(client: FeedClient) -> ASGIApp:
    """Create an ASGI app with /status, /snapshot and /logs endpoints.

    ``/logs`` accepts ``filter`` (source or severity), ``search`` and
    ``limit`` (most recent N matches) query parameters.

    Args:
        client: The feed client whose state is served.

    Returns:
        ASGI application callable.
    """

    def render_logs(params: dict[str, list[str]]) -> str:
        records = list(client.current_logs(_parse_filter_params(params)))
        limit = _parse_limit_param(params)
        if limit is not None:
            records = records[-limit:]
        return encode_logs(records)

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]

        if path == "/status":
            await _handle_endpoint(
                send,
                lambda: json.dumps(status_to_dict(client.connection_status())),
                "application/json",
                "Error encoding status endpoint",
            )
        elif path == "/snapshot":
            await _handle_endpoint(
                send,
                lambda: json.dumps(thaw(client.current_snapshot())),
                "application/json",
                "Error encoding snapshot endpoint",
            )
        elif path == "/logs":
            params = _parse_query_params(scope)
            await _handle_endpoint(
                send,
                lambda: render_logs(params),
                "application/x-ndjson",
                "Error encoding logs endpoint",
            )
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
