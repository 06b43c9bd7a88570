"""Integration test fixtures: the ASGI app over the in-memory test database."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from livestock_ops.api.app import create_app
from livestock_ops.api.dependencies import get_db_session
from livestock_ops.models import User
from livestock_ops.security import create_access_token

API = "/api/v1"


def auth(user: User) -> dict[str, str]:
    """Bearer header for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.user_id, user.role)}"}


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()

    async def test_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = test_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
