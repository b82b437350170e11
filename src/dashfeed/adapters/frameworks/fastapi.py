"""FastAPI adapter exposing feed client state."""

from fastapi import APIRouter, Query, Response
from fastapi.responses import JSONResponse

from dashfeed.adapters.frameworks.asgi import status_to_dict
from dashfeed.client import FeedClient
from dashfeed.core.encoding.ndjson import encode_logs
from dashfeed.core.models import ALL, FilterCriteria, thaw


def create_feed_router(client: FeedClient) -> APIRouter:
    """Create a FastAPI router with /status, /snapshot and /logs endpoints.

    Args:
        client: The feed client whose state is served.

    Returns:
        APIRouter with the endpoints configured.
    """
    router = APIRouter()

    @router.get("/status")
    async def get_status() -> JSONResponse:
        """Return the connection status driving the LIVE indicator."""
        return JSONResponse(content=status_to_dict(client.connection_status()))

    @router.get("/snapshot")
    async def get_snapshot() -> JSONResponse:
        """Return the latest metrics snapshot."""
        return JSONResponse(content=thaw(client.current_snapshot()))

    @router.get("/logs")
    async def get_logs(
        filter: str = Query(default=ALL),
        search: str = Query(default=""),
        limit: int | None = Query(default=None, gt=0),
    ) -> Response:
        """Return buffered logs in NDJSON format.

        Args:
            filter: Source name or severity; "all" disables filtering.
            search: Case-insensitive substring of the message.
            limit: Keep only the most recent N matches.
        """
        criteria = FilterCriteria(source_or_level=filter or ALL, search_text=search)
        records = list(client.current_logs(criteria))
        if limit is not None:
            records = records[-limit:]
        body = encode_logs(records)
        return Response(content=body, media_type="application/x-ndjson")

    return router
