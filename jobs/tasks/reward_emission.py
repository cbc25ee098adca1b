"""
Reward emission task.

Consumes the reward-emission queue: one message per qualified referral,
payload {referral_id}. Emission itself is idempotent, so redelivery of a
message never issues a second reward pair.
"""

import dramatiq
from dramatiq.middleware import CurrentMessage
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from jobs.broker import should_retry
from referrals.config.business_constants import REWARD_QUEUE_NAME
from referrals.config.settings import settings
from referrals.services.reward.dispatch import reward_job_redis_key
from referrals.services.reward.reward_emitter import RewardEmitter
from referrals.utils.exceptions import is_transient
from referrals.utils.redis_utils import get_redis_client


@dramatiq.actor(queue_name=REWARD_QUEUE_NAME, time_limit=60_000)  # 1 min timeout
def emit_referral_rewards(referral_id: int) -> None:
    """
    Emit the reward pair of a qualified referral.

    Failures are re-raised so the Retries middleware can back off and
    retry, and finally dead-letter the message.

    Args:
        referral_id: Referral ID
    """
    logger.info(f"Processing reward emission for referral {referral_id}")
    reward_ids = run_async(_emit_referral_rewards_async(referral_id))
    logger.info(
        f"Rewards emitted for referral {referral_id}: {reward_ids}"
    )


async def _emit_referral_rewards_async(referral_id: int) -> list[int]:
    """Run emission in a session bound to this worker thread's loop."""
    try:
        async with create_local_session() as session:
            rewards = await RewardEmitter(session).emit_rewards(referral_id)
            return [reward.id for reward in rewards]
    except Exception as e:
        if _is_final_attempt(e):
            logger.error(
                f"Reward job for referral {referral_id} failed permanently: {e}",
                extra={"referral_id": referral_id, "error": str(e)},
            )
            await _release_job_key(referral_id)
        elif is_transient(e):
            logger.warning(
                f"Transient failure emitting rewards for referral "
                f"{referral_id}, will retry: {e}"
            )
        else:
            logger.warning(
                f"Reward job for referral {referral_id} failed, will retry: {e}"
            )
        raise


def _is_final_attempt(exc: BaseException) -> bool:
    """Whether Retries will dead-letter the current message after exc."""
    message = CurrentMessage.get_current_message()
    retries = message.options.get("retries", 0) if message is not None else 0
    return not should_retry(retries, exc)


async def _release_job_key(referral_id: int) -> None:
    """
    Free the job key of a dead-lettered job.

    A later enqueue for the referral then creates a fresh job instead of
    collapsing into the failed one.
    """
    if not settings.queue_configured:
        return

    redis_client = get_redis_client()
    try:
        await redis_client.delete(reward_job_redis_key(referral_id))
    finally:
        await redis_client.aclose()
