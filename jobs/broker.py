"""
Dramatiq broker configuration.

Redis-based message broker for the reward emission queue. Without
REDIS_HOST a StubBroker is installed so actors can still be declared;
nothing consumes it and rewards are emitted inline instead.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import (
    CurrentMessage,
    Retries,
    ShutdownNotifications,
    default_middleware,
)
from loguru import logger

from referrals.config.settings import settings
from referrals.utils.exceptions import is_retryable
from referrals.utils.redis_utils import get_redis_url_masked


def should_retry(retries_so_far: int, exception: BaseException) -> bool:
    """
    Retry policy of emission jobs.

    Transient failures are retried until the job has used
    reward_job_max_attempts attempts; domain errors fail at once.
    """
    if not is_retryable(exception):
        return False
    return retries_so_far < settings.reward_job_max_attempts - 1


def _middleware() -> list:
    # ShutdownNotifications and Retries are configured below
    middleware = [
        m()
        for m in default_middleware
        if m not in (ShutdownNotifications, Retries)
    ]
    # ShutdownNotifications: Allows workers to gracefully shutdown
    # CurrentMessage: Provides access to current message in actors
    # Retries: Exponential backoff for failed tasks
    middleware.extend([
        ShutdownNotifications(),
        CurrentMessage(),
        Retries(
            max_retries=settings.reward_job_max_attempts - 1,
            min_backoff=settings.reward_job_min_backoff_ms,
            max_backoff=settings.reward_job_max_backoff_ms,
            retry_when=should_retry,
        ),
    ])
    return middleware


if settings.queue_configured:
    # Exhausted messages stay in the <queue>.XQ dead-letter set
    broker = RedisBroker(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password if settings.redis_password else None,
        db=settings.redis_db,
        dead_message_ttl=settings.reward_dead_message_ttl_ms,
        middleware=_middleware(),
    )
    logger.info(f"Dramatiq broker initialized: {get_redis_url_masked()}")
else:
    broker = StubBroker(middleware=_middleware())
    logger.warning("REDIS_HOST not set, Dramatiq broker is a stub (inline rewards)")

# Set as default broker
dramatiq.set_broker(broker)

logger.info(
    "Middleware enabled: ShutdownNotifications, CurrentMessage, "
    f"Retries ({settings.reward_job_max_attempts} attempts, exponential backoff)"
)
