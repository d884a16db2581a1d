"""Service test fixtures — async DB, FastAPI test client, and seeded actors.

Invariants:
    - One in-memory SQLite engine per test; schema created from Base.metadata
    - Requests resolve get_db to sessions from that engine
    - db_manager patched so the readiness probe sees the test engine
    - Certificate design rate limiter reset between tests

Design Decisions:
    - SQLite keeps the suite free of a Postgres service
      (conditional UPDATEs and JSON columns behave the same for these cases)
    - Seed users and events written straight through test_db; workspaces are
      provisioned through the API so tests exercise the real tree
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from eventdesk.api.dependencies import get_anthropic_client
from eventdesk.core.domain_types import UserRole
from eventdesk.db.base import Base
from eventdesk.infrastructure.database import get_db, DatabaseSessionManager
from eventdesk.services.certificate_design import reset_rate_limiter
import eventdesk.infrastructure.database as db_module
from eventdesk.main import app

from tests.services.factories import make_event, make_user, provision
from tests.services.mock_anthropic import MockAnthropicClient


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _fresh_rate_limiter():
    reset_rate_limiter()
    yield
    reset_rate_limiter()


@pytest.fixture
def mock_anthropic():
    """Controllable stand-in for ResilientAnthropicClient."""
    mock = MockAnthropicClient()
    app.dependency_overrides[get_anthropic_client] = lambda: mock
    return mock


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed data ───────────────────────────────────────────────────

@pytest.fixture
async def organizer(test_db):
    return await make_user(test_db, "olivia@example.com", "Olivia Organizer", UserRole.ORGANIZER)


@pytest.fixture
async def participant(test_db):
    return await make_user(test_db, "pat@example.com", "Pat Participant")


@pytest.fixture
async def volunteer(test_db):
    return await make_user(test_db, "vic@example.com", "Vic Volunteer", UserRole.VOLUNTEER)


@pytest.fixture
async def admin(test_db):
    return await make_user(test_db, "root@example.com", "Ada Admin", UserRole.SUPER_ADMIN)


@pytest.fixture
async def event(test_db, organizer):
    """A published offline event ten days out."""
    return await make_event(test_db, organizer)


@pytest.fixture
async def root_workspace(client, organizer, event) -> dict:
    """Blank ROOT workspace owned by the organizer (JSON body of the workspace)."""
    return (await provision(client, organizer, event))["workspace"]
