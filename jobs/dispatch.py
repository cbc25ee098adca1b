"""
Reward dispatcher wiring.

Resolves once, at process start, whether reward emission goes through the
queue or runs inline, and builds the matching dispatcher for injection
into the services.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from referrals.config.settings import Settings, settings
from referrals.services.reward.dispatch import (
    InlineRewardDispatcher,
    QueuedRewardDispatcher,
    RewardDispatcher,
)
from referrals.utils.redis_utils import get_redis_client


def build_reward_dispatcher(
    config: Settings = settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> RewardDispatcher:
    """
    Build the reward dispatcher for this process.

    Call once during startup and pass the result to ScoringService and
    ReferralLifecycle. The mode is never re-evaluated afterwards.

    Args:
        config: Settings to resolve the mode from
        session_factory: Sessions for inline emission (defaults to the
            shared factory)

    Returns:
        QueuedRewardDispatcher when REDIS_HOST is set,
        InlineRewardDispatcher otherwise
    """
    if config.queue_configured:
        from jobs.tasks.reward_emission import emit_referral_rewards

        logger.info("Reward emission mode: queue")
        return QueuedRewardDispatcher(
            send=emit_referral_rewards.send,
            redis_client=get_redis_client(config),
            key_ttl_seconds=config.reward_job_key_ttl_seconds,
        )

    if session_factory is None:
        from referrals.config.database import async_session_maker

        session_factory = async_session_maker

    logger.warning(
        "Reward emission mode: inline (no queue configured). Rewards are "
        "emitted in the request path for the whole process lifetime."
    )
    return InlineRewardDispatcher(session_factory, config)
