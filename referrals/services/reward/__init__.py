"""
Reward emission, dispatch and redemption.
"""

from referrals.services.reward.dispatch import (
    DispatchMode,
    InlineRewardDispatcher,
    QueuedRewardDispatcher,
    RewardDispatcher,
    reward_job_key,
    reward_job_redis_key,
)
from referrals.services.reward.reward_emitter import RewardEmitter

__all__ = [
    "DispatchMode",
    "InlineRewardDispatcher",
    "QueuedRewardDispatcher",
    "RewardDispatcher",
    "RewardEmitter",
    "reward_job_key",
    "reward_job_redis_key",
]
