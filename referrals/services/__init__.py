"""
Referral lifecycle services.
"""

from referrals.services.event_log_service import EventLog
from referrals.services.pipeline import PipelineUpdate, ReferralLifecycle
from referrals.services.referral import (
    ReferralCodeRegistry,
    ReferralQueryService,
)
from referrals.services.reward import (
    InlineRewardDispatcher,
    QueuedRewardDispatcher,
    RewardDispatcher,
    RewardEmitter,
)
from referrals.services.scoring import ScoringService

__all__ = [
    "EventLog",
    "InlineRewardDispatcher",
    "PipelineUpdate",
    "QueuedRewardDispatcher",
    "ReferralCodeRegistry",
    "ReferralLifecycle",
    "ReferralQueryService",
    "RewardDispatcher",
    "RewardEmitter",
    "ScoringService",
]
