"""
Referral model.

One referred restaurant under one referral code. The pipeline status is
the only stored state; the coarse legacy status is projected from it and
the lifecycle timestamps.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    case,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referrals.models.base import Base
from referrals.models.enums import PipelineStatus, ReferralStatus
from referrals.models.types import UTCDateTime


if TYPE_CHECKING:
    from referrals.models.pipeline_event import PipelineEvent
    from referrals.models.referral_code import ReferralCode
    from referrals.models.restaurant import Restaurant
    from referrals.models.reward import Reward


class Referral(Base):
    """
    Referral entity.

    Attributes:
        id: Primary key
        referral_code_id: Code used at registration
        referred_restaurant_id: Referred restaurant (unique: one referral each)
        pipeline_status: Sales-funnel state (PipelineStatus)
        qualified_at: When the referral entered QUALIFIED
        rewarded_at: When the reward pair was issued
        expired_at: When the referral was expired by an operator
        score_fit / score_intent / score_engage / score_total: Lead score
        scored_at: Last scoring time (None until first scored)
        used_calculator / used_diagnostic / requested_demo / from_meta_ad:
            INTENT signals
        responded_wa / opened_messages / response_time_min: ENGAGE signals
        demo_scheduled_at / meeting_held_at / meeting_outcome /
        nurture_stage / next_action_at: Pipeline metadata
    """

    __tablename__ = "referrals"
    __table_args__ = (
        Index("idx_referrals_code", "referral_code_id"),
        Index("idx_referrals_pipeline_status", "pipeline_status"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referral_code_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("referral_codes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    referred_restaurant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("restaurants.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )

    # State
    pipeline_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PipelineStatus.PENDING.value,
    )
    qualified_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    rewarded_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    expired_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Lead score
    score_fit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_intent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_engage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    score_total: Mapped[int | None] = mapped_column(Integer, nullable=True)
    scored_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # INTENT signals
    used_calculator: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    used_diagnostic: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    requested_demo: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    from_meta_ad: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # ENGAGE signals
    responded_wa: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    opened_messages: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    response_time_min: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )

    # Pipeline metadata
    demo_scheduled_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    meeting_held_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    meeting_outcome: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    nurture_stage: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    next_action_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    referral_code: Mapped["ReferralCode"] = relationship(
        "ReferralCode", back_populates="referrals"
    )
    referred_restaurant: Mapped["Restaurant"] = relationship("Restaurant")
    rewards: Mapped[list["Reward"]] = relationship(
        "Reward",
        back_populates="referral",
        order_by="Reward.id",
    )
    events: Mapped[list["PipelineEvent"]] = relationship(
        "PipelineEvent",
        order_by="PipelineEvent.id",
        viewonly=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Referral(id={self.id}, pipeline_status={self.pipeline_status}, "
            f"score_total={self.score_total})>"
        )

    @hybrid_property
    def status(self) -> ReferralStatus:
        """Legacy status projected from the stored state."""
        if self.rewarded_at is not None:
            return ReferralStatus.REWARDED
        if self.expired_at is not None:
            return ReferralStatus.EXPIRED
        if self.qualified_at is not None:
            return ReferralStatus.QUALIFIED
        return ReferralStatus.PENDING

    @status.inplace.expression
    @classmethod
    def _status_expression(cls):
        return case(
            (cls.rewarded_at.is_not(None), ReferralStatus.REWARDED.value),
            (cls.expired_at.is_not(None), ReferralStatus.EXPIRED.value),
            (cls.qualified_at.is_not(None), ReferralStatus.QUALIFIED.value),
            else_=ReferralStatus.PENDING.value,
        )

    @property
    def is_scored(self) -> bool:
        """Whether a score has been persisted."""
        return self.scored_at is not None
