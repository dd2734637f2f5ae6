"""Integration-test fixtures.

Pre-condition: a PostgreSQL reachable at DATABASE_URL with `alembic upgrade head`
applied. All tests share a single event loop so the module-level SQLAlchemy
async engine pool stays valid across the session; the whole directory is
skipped when the database cannot be reached.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError

from src.main import app
from src.mp_common.database import engine


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _require_database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM processed_payments LIMIT 1"))
    except (OSError, OperationalError, DBAPIError) as e:
        pytest.skip(f"PostgreSQL not available: {e}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
