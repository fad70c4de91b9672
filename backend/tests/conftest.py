import httpx
import pytest
import pytest_asyncio

from ticketauth.config import Settings
from ticketauth.context import AppContext
from ticketauth.database import create_engine, create_sessionmaker, create_tables
from ticketauth.main import create_app
from tests.fakes import FakeClock, InMemoryEphemeralStore


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at a throwaway SQLite file"""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret_key="test-secret-key-not-for-production",
        bcrypt_rounds=4,
        otp_ttl_seconds=60,
        session_ttl_seconds=300,
        log_format="console",
        log_level="WARNING",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ephemeral(clock):
    return InMemoryEphemeralStore(clock)


@pytest_asyncio.fixture
async def context(settings, ephemeral):
    engine = create_engine(settings)
    await create_tables(engine)
    ctx = AppContext(
        settings=settings,
        engine=engine,
        sessionmaker=create_sessionmaker(engine),
        ephemeral=ephemeral,
    )
    yield ctx
    await ctx.close()


@pytest_asyncio.fixture
async def db(context):
    async with context.sessionmaker() as session:
        yield session


@pytest.fixture
def controller(context, db):
    return context.auth_controller(db)


@pytest_asyncio.fixture
async def client(context):
    app = create_app(context=context)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def user_data():
    """Sample registration data"""
    return {"email": "a@x.com", "username": "alice", "password": "pw1"}
