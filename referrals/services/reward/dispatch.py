"""
Reward emission dispatch.

Callers never emit rewards directly from a qualification; they ask a
RewardDispatcher. Which dispatcher a process uses is decided once at
startup (see jobs.dispatch.build_reward_dispatcher) and injected.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import StrEnum
from typing import Any

import redis.asyncio as redis
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referrals.config.business_constants import (
    REWARD_JOB_KEY_NAMESPACE,
    REWARD_JOB_KEY_PREFIX,
)
from referrals.config.settings import Settings
from referrals.services.reward.reward_emitter import RewardEmitter


class DispatchMode(StrEnum):
    """How reward emission requests are carried out."""

    QUEUE = "queue"
    INLINE = "inline"


def reward_job_key(referral_id: int) -> str:
    """
    Deduplication key of the emission job for a referral.

    Args:
        referral_id: Referral ID

    Returns:
        Key like "reward-42"
    """
    return f"{REWARD_JOB_KEY_PREFIX}{referral_id}"


def reward_job_redis_key(referral_id: int) -> str:
    """Redis key under which a referral's emission job is claimed."""
    return f"{REWARD_JOB_KEY_NAMESPACE}:{reward_job_key(referral_id)}"


class RewardDispatcher(ABC):
    """Carries out reward emission requests."""

    mode: DispatchMode

    @abstractmethod
    async def enqueue_reward_emission(self, referral_id: int) -> bool:
        """
        Request reward emission for a qualified referral.

        Args:
            referral_id: Referral ID

        Returns:
            True if this call produced a unit of work, False if it
            collapsed into one already requested
        """


class QueuedRewardDispatcher(RewardDispatcher):
    """
    Hands emission to the job queue.

    Redundant requests for one referral collapse on the job key: the key is
    claimed with SET NX before the message is sent, and only the claimer
    sends. The emitter's REWARDED guard covers anything that slips past
    the key (e.g. after its TTL).
    """

    mode = DispatchMode.QUEUE

    def __init__(
        self,
        send: Callable[[int], Any],
        redis_client: redis.Redis,
        key_ttl_seconds: int,
    ) -> None:
        """
        Initialize queued dispatcher.

        Args:
            send: Enqueues the emission job for a referral ID
            redis_client: Async Redis client holding job keys
            key_ttl_seconds: Lifetime of a claimed job key
        """
        self.send = send
        self.redis = redis_client
        self.key_ttl_seconds = key_ttl_seconds

    async def enqueue_reward_emission(self, referral_id: int) -> bool:
        job_key = reward_job_key(referral_id)
        redis_key = reward_job_redis_key(referral_id)

        claimed = await self.redis.set(
            redis_key, "1", nx=True, ex=self.key_ttl_seconds
        )
        if not claimed:
            logger.info(
                f"Reward job {job_key} already queued, request collapsed",
                extra={"referral_id": referral_id, "job_key": job_key},
            )
            return False

        try:
            # Broker send blocks on Redis
            await asyncio.to_thread(self.send, referral_id)
        except Exception:
            # Release the key so the caller's retry is not swallowed
            await self.redis.delete(redis_key)
            raise

        logger.info(
            f"Reward job enqueued for referral {referral_id}",
            extra={"referral_id": referral_id, "job_key": job_key},
        )
        return True


class InlineRewardDispatcher(RewardDispatcher):
    """
    Emits rewards synchronously in the caller's request path.

    Used for the whole process lifetime when no queue was configured at
    startup. Failures propagate to the caller.
    """

    mode = DispatchMode.INLINE

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: Settings | None = None,
    ) -> None:
        """
        Initialize inline dispatcher.

        Args:
            session_factory: Opens the session emission runs in
            config: Reward terms handed to the emitter (defaults to global
                settings)
        """
        self.session_factory = session_factory
        self.config = config

    async def enqueue_reward_emission(self, referral_id: int) -> bool:
        logger.info(f"Processing rewards synchronously for referral {referral_id}")
        async with self.session_factory() as session:
            await RewardEmitter(session, self.config).emit_rewards(referral_id)
        return True
