"""
Reward model.

Created only by RewardEmitter, always as a REFERRER/REFERRED pair for one
referral.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referrals.models.base import Base
from referrals.models.enums import RewardStatus
from referrals.models.types import MoneyType, UTCDateTime


if TYPE_CHECKING:
    from referrals.models.referral import Referral


class Reward(Base):
    """
    Reward entity.

    Attributes:
        id: Primary key
        referral_id: Referral that earned the reward
        beneficiary_id: User who may redeem it
        beneficiary_type: REFERRER or REFERRED
        reward_type: credits / discount / fee_waiver / custom
        amount: Optional monetary amount
        description: Human-readable terms
        status: pending / issued / redeemed / expired
        issued_at: Issue time
        redeemed_at: Redemption time
        expires_at: Redeemable until
    """

    __tablename__ = "rewards"
    __table_args__ = (
        UniqueConstraint(
            "referral_id",
            "beneficiary_type",
            name="uq_rewards_referral_beneficiary_type",
        ),
        Index("idx_rewards_beneficiary", "beneficiary_id"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referral_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("referrals.id", ondelete="RESTRICT"),
        nullable=False,
    )
    beneficiary_id: Mapped[int] = mapped_column(Integer, nullable=False)
    beneficiary_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reward_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RewardStatus.PENDING.value,
    )

    issued_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    redeemed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    referral: Mapped["Referral"] = relationship(
        "Referral", back_populates="rewards"
    )

    def __repr__(self) -> str:
        return (
            f"<Reward(id={self.id}, referral_id={self.referral_id}, "
            f"beneficiary_type={self.beneficiary_type}, status={self.status})>"
        )

    def is_expired(self, now: datetime) -> bool:
        """Check whether the redemption window has passed."""
        return self.expires_at is not None and self.expires_at < now
