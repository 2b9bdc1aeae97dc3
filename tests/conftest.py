"""
Test infrastructure for the Articles API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- The password hasher is overridden with bcrypt's minimum work factor so
  registration/login tests do not spend most of their time hashing.
- All tables are created fresh before each test and dropped after.
- The Redis cache is disabled by setting cache._redis = None; the
  CacheManager treats that as "no cache" (reads miss, writes and clears are
  no-ops), so tests exercise the real store path without Redis.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from articles_api.cache import cache
from articles_api.database import Base, get_db
from articles_api.dependencies import get_password_hasher
from articles_api.main import app
from articles_api.security import JwtSigner, PasswordHasher

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

fast_hasher = PasswordHasher(rounds=4)


# ---------------------------------------------------------------------------
# Dependency overrides
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_password_hasher] = lambda: fast_hasher


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that drive the services and stores
    directly.
    """
    async with async_session_test() as session:
        yield session


@pytest.fixture
def hasher() -> PasswordHasher:
    return fast_hasher


@pytest.fixture
def signer() -> JwtSigner:
    return JwtSigner()


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """
    Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport,
    with Redis disabled.
    """
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class FailingCache:
    """Read cache whose clear always fails, as if Redis dropped the connection."""

    def __init__(self) -> None:
        self.clear_calls = 0

    def key(self, *parts: object) -> str:
        return ":".join(["articles", *(str(p) for p in parts)])

    async def get(self, key):
        return None

    async def set(self, key, value, ttl=None):
        return None

    async def delete(self, key):
        return None

    async def clear_all(self):
        self.clear_calls += 1
        raise ConnectionError("redis connection refused")


class RecordingCache(FailingCache):
    """In-memory read cache that remembers how often it was cleared."""

    def __init__(self) -> None:
        super().__init__()
        self.data: dict = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ttl=None):
        self.data[key] = value

    async def delete(self, key):
        self.data.pop(key, None)

    async def clear_all(self):
        self.clear_calls += 1
        self.data.clear()


class UnclearableCache(RecordingCache):
    """Reads and writes work but the namespace clear fails, e.g. a SCAN timeout."""

    async def clear_all(self):
        self.clear_calls += 1
        raise ConnectionError("scan timed out")


@pytest.fixture
def failing_cache() -> FailingCache:
    return FailingCache()


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def unclearable_cache() -> UnclearableCache:
    return UnclearableCache()
