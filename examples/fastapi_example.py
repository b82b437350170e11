"""Example FastAPI application serving live feed state.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /feed/status                  - connection status (LIVE indicator)
    /feed/snapshot                - latest metrics snapshot
    /feed/logs                    - NDJSON logs (all retained lines)
    /feed/logs?filter=<value>     - logs from a service or of a severity
    /feed/logs?search=<text>      - logs whose message contains text
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dashfeed import FeedClient, LogBufferHandler
from dashfeed.adapters.frameworks.fastapi import create_feed_router

feed = FeedClient()
logging.getLogger("dashfeed").addHandler(LogBufferHandler(feed.logs, source="dashboard"))


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Connect to the feed for the lifetime of the app."""
    async with feed:
        yield


app = FastAPI(title="Live Feed Example", lifespan=lifespan)
app.include_router(create_feed_router(feed), prefix="/feed")
