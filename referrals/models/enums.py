"""
Enumerations shared by the referral models.
"""

from enum import StrEnum


class PipelineStatus(StrEnum):
    """Sales-funnel state of a referral. The only stored referral state."""

    PENDING = "PENDING"
    QUALIFIED = "QUALIFIED"
    DEMO_SCHEDULED = "DEMO_SCHEDULED"
    MEETING_HELD = "MEETING_HELD"
    WON = "WON"
    LOST = "LOST"
    NO_SHOW = "NO_SHOW"
    NURTURE = "NURTURE"
    DEAD = "DEAD"


class ReferralStatus(StrEnum):
    """Coarse legacy status, derived from the pipeline state and stamps."""

    PENDING = "PENDING"
    QUALIFIED = "QUALIFIED"
    REWARDED = "REWARDED"
    EXPIRED = "EXPIRED"


class PipelineEventType(StrEnum):
    """Kinds of rows in a referral's audit trail."""

    STATUS_CHANGE = "STATUS_CHANGE"
    NOTE = "NOTE"
    SCORE_UPDATE = "SCORE_UPDATE"
    AUTO_QUALIFIED = "AUTO_QUALIFIED"
    CONTACT_ATTEMPT = "CONTACT_ATTEMPT"
    DEMO_SCHEDULED = "DEMO_SCHEDULED"
    MEETING_HELD = "MEETING_HELD"


class RewardType(StrEnum):
    """What a reward grants."""

    CREDITS = "credits"
    DISCOUNT = "discount"
    FEE_WAIVER = "fee_waiver"
    CUSTOM = "custom"


class RewardStatus(StrEnum):
    """Reward lifecycle."""

    PENDING = "pending"
    ISSUED = "issued"
    REDEEMED = "redeemed"
    EXPIRED = "expired"


class BeneficiaryType(StrEnum):
    """Which side of the referral a reward belongs to."""

    REFERRER = "REFERRER"
    REFERRED = "REFERRED"
