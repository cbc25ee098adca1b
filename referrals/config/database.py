"""
Database configuration.

Async SQLAlchemy engine and session factory shared by the services.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from referrals.config.settings import settings


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine for the configured database."""
    db_url = url or settings.database_url
    options = {"echo": settings.database_echo, "pool_pre_ping": True}
    if db_url.startswith("postgresql") and "poolclass" not in kwargs:
        options.update(pool_size=10, max_overflow=20)
    options.update(kwargs)
    return create_async_engine(db_url, **options)


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)
