import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Load .env.test if present, then fall back to a throwaway SQLite URL so the
# settings module can be imported without a real database
env_test_path = os.path.join(os.path.dirname(__file__), "..", ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./fithub-test.db")

from libs.auth.dependencies import get_current_user  # noqa: E402
from libs.auth.models import AuthUser  # noqa: E402
from libs.common.config import get_settings  # noqa: E402
from libs.common.rate_limit import limiter  # noqa: E402
from libs.db.base import Base  # noqa: E402
from libs.db.session import get_async_db, get_session_factory  # noqa: E402

# Import all models so metadata includes every table
from services.checkin_service import models as _checkin_models  # noqa: F401,E402
from services.engagement_service import models as _engagement_models  # noqa: F401,E402
from services.checkin_service.services.notifications import (  # noqa: E402
    InlineNotificationDispatcher,
    get_notification_dispatcher,
)

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
settings = get_settings()

TEST_USER_ID = "test-user"


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    Create a file-backed SQLite engine per test.

    A file (rather than ``:memory:``) lets concurrent sessions open their own
    connections, which the engagement engine and the check-in race tests rely on.
    """
    db_path = tmp_path / "test.db"
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{db_path}", future=True, poolclass=NullPool
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session bound to the per-test database.
    """
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def notifier(session_factory) -> AsyncGenerator[InlineNotificationDispatcher, None]:
    dispatcher = InlineNotificationDispatcher(session_factory)
    yield dispatcher
    await dispatcher.close()


@pytest.fixture
def current_user() -> AuthUser:
    return AuthUser(user_id=TEST_USER_ID, email="test@example.com", role="coach")


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


async def _client_for(app, session_factory, notifier, current_user):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[get_notification_dispatcher] = lambda: notifier
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def checkin_client(
    session_factory, notifier, current_user
) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the check-in service with overridden dependencies.
    """
    from services.checkin_service.app.main import app

    async with await _client_for(app, session_factory, notifier, current_user) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def engagement_client(
    session_factory, notifier, current_user
) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient for the engagement service with overridden dependencies.
    """
    from services.engagement_service.app.main import app

    async with await _client_for(app, session_factory, notifier, current_user) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def gateway_client(
    session_factory, notifier, current_user
) -> AsyncGenerator[AsyncClient, None]:
    from services.gateway_service.app.main import app

    async with await _client_for(app, session_factory, notifier, current_user) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    """
    Placeholder bearer header; auth itself is overridden per app.
    """
    return {"Authorization": "Bearer mock-token"}
