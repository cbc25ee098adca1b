"""
Failed reward job inspection.

Emission jobs that exhaust their retries stay in dramatiq's dead-letter
set of the reward queue until dead_message_ttl. Nothing here resubmits
them.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import dramatiq
import redis.asyncio as redis
from dramatiq.common import xq_name

from referrals.config.business_constants import REWARD_QUEUE_NAME
from referrals.utils.redis_utils import get_redis_client

# RedisBroker default namespace
BROKER_NAMESPACE = "dramatiq"


@dataclass(frozen=True)
class FailedRewardJob:
    """A dead-lettered emission job."""

    message_id: str
    referral_id: int | None
    retries: int
    traceback: str | None
    dead_lettered_at: datetime | None


def dead_letter_key(queue_name: str = REWARD_QUEUE_NAME) -> str:
    """Sorted set of dead-lettered message ids for a queue."""
    return f"{BROKER_NAMESPACE}:{xq_name(queue_name)}"


def _parse(message_id: str, payload: str, score: float | None) -> FailedRewardJob:
    message = dramatiq.Message.decode(payload.encode("utf-8"))
    referral_id = message.args[0] if message.args else message.kwargs.get(
        "referral_id"
    )
    return FailedRewardJob(
        message_id=message_id,
        referral_id=referral_id,
        retries=message.options.get("retries", 0),
        traceback=message.options.get("traceback"),
        dead_lettered_at=(
            datetime.fromtimestamp(score / 1000, tz=UTC)
            if score is not None
            else None
        ),
    )


async def list_failed_reward_jobs(
    redis_client: redis.Redis | None = None,
) -> list[FailedRewardJob]:
    """
    List dead-lettered reward jobs, most recent first.

    Args:
        redis_client: Client to read with (a new one from settings when
            omitted)

    Returns:
        Failed jobs with their referral id and last traceback
    """
    client = redis_client or get_redis_client()
    key = dead_letter_key()
    try:
        entries = await client.zrevrange(key, 0, -1, withscores=True)
        if not entries:
            return []

        message_ids = [message_id for message_id, _ in entries]
        payloads = await client.hmget(f"{key}.msgs", message_ids)
    finally:
        if redis_client is None:
            await client.aclose()

    return [
        _parse(message_id, payload, score)
        for (message_id, score), payload in zip(entries, payloads)
        if payload is not None
    ]
