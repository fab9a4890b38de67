"""Shared fixtures: in-memory SQLite, fake gateway and cache, coordinator."""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.application.services import LifecycleCoordinator
from core.data.models import Base
from core.infrastructure.adapters.doku.signature import sign_payload
from tests.mocks.fake_cache import InMemoryCacheService
from tests.mocks.fake_gateway import FakePaymentGateway

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
CALLBACK_SECRET = "test-webhook-secret"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Create test session factory."""
    yield async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def cache():
    return InMemoryCacheService()


@pytest.fixture
def coordinator(session_factory, gateway, cache):
    return LifecycleCoordinator(
        session_factory=session_factory,
        gateway=gateway,
        cache=cache,
        callback_secret=CALLBACK_SECRET,
    )


@pytest.fixture
def signed_callback():
    """Build a callback body signed the way Doku signs it."""

    def _build(payment_id, order_id, status, **extra):
        payload = {"paymentId": payment_id, "orderId": order_id, "status": status}
        payload.update(extra)
        return sign_payload(payload, CALLBACK_SECRET)

    return _build
