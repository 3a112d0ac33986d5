"""
Test fixtures for the seller service tests.

Provides:
- In-memory SQLite database for isolated testing
- Dict-backed cache, stub User Service client and recording event sink
- Async test client with dependency overrides
- Seller factories
"""
# IMPORTANT: Set environment variables BEFORE any other imports
import os

TEST_JWT_SECRET = "test_jwt_secret_for_seller_service_tests"

os.environ["JWT_SECRET"] = TEST_JWT_SECRET
# DB settings required by Settings validation (tests use SQLite in-memory, these are not actually used)
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "test")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("USER_SERVICE_URL", "http://user-service.test")
# Development mode for tests (disables ALLOWED_ORIGINS requirement)
os.environ.setdefault("ENVIRONMENT", "development")

import json
import random
from datetime import datetime
from typing import AsyncGenerator, Dict, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from seller_service.app.core.auth import create_access_token
from seller_service.app.core.base import Base
from seller_service.app.main import app
from seller_service.app.api.deps import get_session, get_cache, get_event_sink, get_user_client
from seller_service.app.models.seller import Seller, SellerStatus, VerificationStatus
from seller_service.app.repositories.sellers import SellerRepository
from seller_service.app.services.analytics import SellerAnalyticsService
from seller_service.app.services.cache import CacheService
from seller_service.app.services.events import RecordingEventSink
from seller_service.app.services.sellers import SellerService
from seller_service.app.services.users import UpstreamUnavailableError, UserNotFoundError


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)

TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

FIXED_NOW = datetime(2024, 3, 15, 12, 0, 0)


class MockCacheService(CacheService):
    """Mock Redis cache for testing without actual Redis. Values are stored as JSON like the real one."""

    def __init__(self):
        super().__init__(redis=None)
        self.enabled = True
        self._cache: Dict[str, str] = {}

    async def get(self, key: str):
        raw = self._cache.get(key)
        return json.loads(raw) if raw else None

    async def set(self, key: str, value, ttl: int = 300):
        self._cache[key] = json.dumps(value, default=str)
        return True

    async def delete(self, key: str):
        return self._cache.pop(key, None) is not None

    def keys(self):
        return set(self._cache)


class StubUserClient:
    """Stands in for the User Service: users maps user id -> is_active."""

    def __init__(self, users: Optional[Dict[int, bool]] = None):
        self.users = users if users is not None else {}
        self.unavailable = False
        self.calls = []

    async def validate_user(self, user_id: int) -> bool:
        self.calls.append(user_id)
        if self.unavailable:
            raise UpstreamUnavailableError()
        if user_id not in self.users:
            raise UserNotFoundError(user_id)
        return self.users[user_id]

    async def health_check(self) -> bool:
        return not self.unavailable


@pytest.fixture(scope="function")
async def test_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.
    Creates all tables before and drops after each test.
    """
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def mock_cache() -> MockCacheService:
    return MockCacheService()


@pytest.fixture
def user_client() -> StubUserClient:
    # 42 is active, 43 exists but is inactive
    return StubUserClient({42: True, 43: False, 100: True, 101: True})


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def repository(test_session: AsyncSession) -> SellerRepository:
    return SellerRepository(test_session)


@pytest.fixture
def seller_service(
    repository: SellerRepository,
    mock_cache: MockCacheService,
    user_client: StubUserClient,
    events: RecordingEventSink,
) -> SellerService:
    return SellerService(repository, mock_cache, user_client, events=events, clock=lambda: FIXED_NOW)


@pytest.fixture
async def concurrent_seller_service(
    test_session: AsyncSession,
    mock_cache: MockCacheService,
    user_client: StubUserClient,
    events: RecordingEventSink,
) -> AsyncGenerator[SellerService, None]:
    """A second service on its own session, sharing the cache, to play a concurrent request."""
    async with TestSessionLocal() as session:
        yield SellerService(
            SellerRepository(session), mock_cache, user_client, events=events, clock=lambda: FIXED_NOW
        )


@pytest.fixture
def analytics_service(seller_service: SellerService) -> SellerAnalyticsService:
    return SellerAnalyticsService(seller_service, rng=random.Random(1234))


@pytest.fixture
async def client(
    test_session: AsyncSession,
    mock_cache: MockCacheService,
    user_client: StubUserClient,
    events: RecordingEventSink,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for testing API endpoints.
    Overrides database, cache, User Service and event sink dependencies.
    """
    async def override_get_session():
        # Fresh session per request avoids transaction conflicts with test_session
        async with TestSessionLocal() as session:
            yield session

    async def override_get_cache():
        yield mock_cache

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_cache] = override_get_cache
    app.dependency_overrides[get_user_client] = lambda: user_client
    app.dependency_overrides[get_event_sink] = lambda: events

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_header(user_id: int, roles=None) -> Dict[str, str]:
    """Authorization header with a token signed by the test secret."""
    return {"Authorization": f"Bearer {create_access_token(user_id, roles or ['seller'])}"}


# --- Test Data Factories ---

COMPLETE_PROFILE = {
    "business_email": "sales@acme.test",
    "business_phone": "+1 555 0100",
    "business_address": "1 Market Street",
    "business_city": "Springfield",
    "business_state": "IL",
    "business_country": "US",
}


async def create_seller(session: AsyncSession, user_id: int = 42, **overrides) -> Seller:
    """Insert a seller row directly, bypassing the service."""
    values = {
        "user_id": user_id,
        "business_name": "Acme",
        "status": SellerStatus.PENDING,
        "verification_status": VerificationStatus.UNVERIFIED,
        **COMPLETE_PROFILE,
    }
    values.update(overrides)
    seller = Seller(**values)
    session.add(seller)
    await session.commit()
    await session.refresh(seller)
    return seller


@pytest.fixture
async def test_seller(test_session: AsyncSession) -> Seller:
    """Pending, unverified seller with a complete business profile."""
    return await create_seller(test_session)


@pytest.fixture
async def pending_seller(test_session: AsyncSession) -> Seller:
    """Seller waiting for an admin decision."""
    return await create_seller(test_session, verification_status=VerificationStatus.PENDING)


@pytest.fixture
async def active_seller(test_session: AsyncSession) -> Seller:
    """Verified, active seller."""
    return await create_seller(
        test_session,
        status=SellerStatus.ACTIVE,
        verification_status=VerificationStatus.VERIFIED,
        verified_at=datetime(2024, 1, 10, 9, 30),
        verified_by=7,
    )


@pytest.fixture
def seller_factory(test_session: AsyncSession):
    """Factory fixture: await seller_factory(user_id=..., **column_overrides)."""
    async def _create(user_id: int = 42, **overrides) -> Seller:
        return await create_seller(test_session, user_id, **overrides)
    return _create


@pytest.fixture
def auth_headers():
    """Factory fixture: auth_headers(user_id, roles) -> Authorization header dict."""
    return auth_header


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return auth_header(7, ["admin"])
