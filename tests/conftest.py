"""Shared test fixtures.

Settings are instantiated at import time and JWT_SECRET has no default, so
it is set before anything under src/ or config/ is imported.
"""

import os
from collections.abc import AsyncIterator

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("NOTIFY_ENABLED", "false")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from tests.fakes import World, build_world  # noqa: E402


@pytest.fixture
def world() -> World:
    return build_world()


@pytest.fixture
async def client(world: World) -> AsyncIterator[AsyncClient]:
    """Async HTTP client over the app wired to the in-memory world."""
    from src.main import create_app

    app = create_app(world.container)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
