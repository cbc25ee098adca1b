"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for tests: in-memory SQLite, no queue (inline rewards)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.pop("REDIS_HOST", None)

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from referrals.models import Base, Referral, ReferralCode, Restaurant
from referrals.models.enums import PipelineStatus
from referrals.utils.datetime_utils import utc_now


@pytest.fixture
async def engine():
    """
    In-memory SQLite engine with the schema created.

    pysqlite's implicit transaction handling is disabled so SAVEPOINT
    (begin_nested) behaves as on PostgreSQL.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory):
    """Database session for one test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for job key tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.exists = AsyncMock(return_value=0)
    return client


@pytest.fixture
def mock_dispatcher():
    """RewardDispatcher double recording emission requests."""
    dispatcher = MagicMock()
    dispatcher.enqueue_reward_emission = AsyncMock(return_value=True)
    return dispatcher


@pytest.fixture
def make_restaurant(session):
    """Factory for persisted restaurants."""

    async def _make(owner_id: int = 200, **fields) -> Restaurant:
        restaurant = Restaurant(
            owner_id=owner_id,
            name=fields.pop("name", f"Restaurante {owner_id}"),
            **fields,
        )
        session.add(restaurant)
        await session.commit()
        return restaurant

    return _make


@pytest.fixture
def make_code(session):
    """Factory for persisted referral codes."""

    async def _make(
        referrer_user_id: int = 100,
        code: str | None = None,
        **fields,
    ) -> ReferralCode:
        referral_code = ReferralCode(
            referrer_user_id=referrer_user_id,
            code=code or f"JUSTO-TEST{referrer_user_id}",
            use_count=fields.pop("use_count", 0),
            **fields,
        )
        session.add(referral_code)
        await session.commit()
        return referral_code

    return _make


@pytest.fixture
def make_referral(session, make_code, make_restaurant):
    """
    Factory for persisted referrals.

    Creates the code and restaurant unless given. Keyword arguments are
    set on the referral (signals, pipeline_status, stamps).
    """

    async def _make(
        code: ReferralCode | None = None,
        restaurant: Restaurant | None = None,
        **fields,
    ) -> Referral:
        if code is None:
            code = await make_code()
        if restaurant is None:
            restaurant = await make_restaurant()
        fields.setdefault("pipeline_status", PipelineStatus.PENDING.value)
        referral = Referral(
            referral_code_id=code.id,
            referred_restaurant_id=restaurant.id,
            **fields,
        )
        session.add(referral)
        await session.commit()
        return referral

    return _make


@pytest.fixture
def high_intent_signals():
    """Restaurant and referral signals that score 95."""
    restaurant_fields = {
        "city": "CDMX",
        "num_locations": 6,
        "current_pos": "toast",
        "delivery_pct": 60,
        "owner_whatsapp": "+525512345678",
        "owner_email": "owner@example.mx",
    }
    referral_fields = {
        "used_calculator": True,
        "used_diagnostic": True,
        "requested_demo": True,
        "responded_wa": True,
        "opened_messages": 6,
        "response_time_min": 10,
    }
    return restaurant_fields, referral_fields


@pytest.fixture
def qualified_referral(make_referral):
    """Factory for a referral already in QUALIFIED."""

    async def _make(**fields) -> Referral:
        fields.setdefault("qualified_at", utc_now() - timedelta(minutes=5))
        return await make_referral(
            pipeline_status=PipelineStatus.QUALIFIED.value, **fields
        )

    return _make
