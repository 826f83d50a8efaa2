"""API-specific test fixtures."""

from contextlib import asynccontextmanager

import fakeredis
import pytest
from fakeredis import aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.testclient import TestClient


@pytest.fixture
def redis_server():
    """Shared fake Redis server so every request sees the same data."""
    return fakeredis.FakeServer()


@pytest.fixture
def api_client(redis_server, settings):
    """FastAPI test client backed by fakeredis.

    Each request gets its own client on the shared server, created inside
    the TestClient's event loop.
    """
    from bikeshop.api.dependencies import get_redis_client
    from bikeshop.api.routes import api_router
    from bikeshop.core.config import get_settings
    from bikeshop.main import register_exception_handlers
    from bikeshop.middleware.correlation import setup_correlation_middleware

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        """Test lifespan - no shared pool, requests use the override below."""
        app.state.shutting_down = False
        yield

    async def fake_redis_client():
        client = aioredis.FakeRedis(server=redis_server, decode_responses=True)
        try:
            yield client
        finally:
            await client.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="Bikeshop Workflow - Test Client",
        version="0.1.0",
        lifespan=test_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_correlation_middleware(app)

    # Exception handlers (needed for error kind and debug_id testing)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    app.dependency_overrides[get_redis_client] = fake_redis_client
    app.dependency_overrides[get_settings] = lambda: settings

    with TestClient(app) as client:
        yield client
