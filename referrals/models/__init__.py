"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from referrals.models.base import Base
from referrals.models.enums import (
    BeneficiaryType,
    PipelineEventType,
    PipelineStatus,
    ReferralStatus,
    RewardStatus,
    RewardType,
)
from referrals.models.pipeline_event import PipelineEvent
from referrals.models.referral import Referral
from referrals.models.referral_code import ReferralCode
from referrals.models.restaurant import Restaurant
from referrals.models.reward import Reward

__all__ = [
    # Base
    "Base",
    # Enums
    "BeneficiaryType",
    "PipelineEventType",
    "PipelineStatus",
    "ReferralStatus",
    "RewardStatus",
    "RewardType",
    # Models
    "PipelineEvent",
    "Referral",
    "ReferralCode",
    "Restaurant",
    "Reward",
]
