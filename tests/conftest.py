"""Shared test fixtures for all test modules."""

import asyncio
import socket
from collections.abc import AsyncGenerator

import pytest
from websockets.asyncio.server import serve

from dashfeed.client import FeedClient
from dashfeed.config import FeedConfig
from tests.helpers import FakeFeedServer, FakeSessionFactory, SilentPeer

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    """Factory producing test-driven fake sessions."""
    return FakeSessionFactory()


@pytest.fixture
def fast_config() -> FeedConfig:
    """Config with a short reconnect delay for timing tests."""
    return FeedConfig(reconnect_delay=0.05, close_timeout=0.5, open_timeout=1.0)


@pytest.fixture
def feed_client(fast_config: FeedConfig, session_factory: FakeSessionFactory) -> FeedClient:
    """Feed client wired to fake sessions."""
    return FeedClient(fast_config, session_factory=session_factory)


@pytest.fixture
async def feed_server() -> AsyncGenerator[FakeFeedServer]:
    """Feed server listening on an ephemeral localhost port."""
    server = FakeFeedServer()
    async with serve(server.handler, "127.0.0.1", 0) as ws_server:
        port = ws_server.sockets[0].getsockname()[1]
        server.url = f"ws://127.0.0.1:{port}/ws/logs"
        yield server


@pytest.fixture
async def silent_peer() -> AsyncGenerator[SilentPeer]:
    """Peer that completes the upgrade and then stops responding."""
    peer = SilentPeer()
    server = await asyncio.start_server(peer.handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    peer.url = f"ws://127.0.0.1:{port}/ws/logs"
    try:
        yield peer
    finally:
        for writer in peer.writers:
            writer.close()
        server.close()
        await server.wait_closed()


@pytest.fixture
def unused_url() -> str:
    """URL of a localhost port with nothing listening."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"ws://127.0.0.1:{port}/ws/logs"


# === HTTP Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(feed_client)
            async with asgi_test_client(app) as client:
                response = await client.get("/status")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
