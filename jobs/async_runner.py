"""
Async bridge for dramatiq actors.

Actors run in worker threads; each thread keeps one event loop and opens
its database connections on that loop.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool

from referrals.config.database import create_engine, create_session_maker
from referrals.config.settings import settings

T = TypeVar("T")

_thread_state = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """Get this worker thread's event loop, creating it on first use."""
    loop = getattr(_thread_state, "loop", None)
    if loop is not None and not loop.is_closed():
        return loop

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _thread_state.loop = loop
    logger.debug(
        f"Event loop created for worker thread {threading.current_thread().name}"
    )
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run a coroutine to completion on the thread's loop.

    Exceptions are not caught: the Retries middleware decides what happens
    to a failed message.
    """
    return get_event_loop().run_until_complete(coro)


@asynccontextmanager
async def create_local_session() -> AsyncIterator[AsyncSession]:
    """
    Open a session on a throwaway NullPool engine.

    Pooled connections are bound to the loop that opened them, so a job
    never shares the application engine across worker threads.

    Yields:
        AsyncSession for the current event loop
    """
    engine = create_engine(
        settings.database_url,
        poolclass=NullPool,
        pool_pre_ping=False,
    )
    try:
        async with create_session_maker(engine)() as session:
            yield session
    finally:
        await engine.dispose()
