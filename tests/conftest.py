"""
Shared fixtures: temporary SQLite database, seeded catalog and demo user,
a scripted oracle, and an HTTP client wired to the app.
"""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carefully.core.config import Settings, get_settings
from carefully.core.security import create_session_token
from carefully.db.base import Base
from carefully.db.session import get_db
from carefully.services.oracle import get_oracle
from carefully.services.seeding import seed_demo_user, seed_scenarios
from tests.fakes import FakeOracle


@pytest.fixture
def settings():
    return Settings(session_turn_target=3, auto_complete_on_target=True)


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'carefully-test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        await seed_scenarios(session)
        yield session


@pytest_asyncio.fixture
async def user(db):
    return await seed_demo_user(db)


@pytest_asyncio.fixture
async def client(session_factory, user, oracle):
    from carefully.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_oracle] = lambda: oracle

    transport = httpx.ASGITransport(app=app)
    cookies = {get_settings().auth_cookie_name: create_session_token(user.id)}
    async with httpx.AsyncClient(transport=transport, base_url="http://test", cookies=cookies) as c:
        yield c

    app.dependency_overrides.clear()
