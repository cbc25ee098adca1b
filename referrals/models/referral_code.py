"""
ReferralCode model.

Shareable code owned by a referrer. Use count is only ever moved by the
guarded increment in ReferralCodeRegistry.create_referral.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referrals.models.base import Base
from referrals.models.types import UTCDateTime


if TYPE_CHECKING:
    from referrals.models.referral import Referral


class ReferralCode(Base):
    """
    ReferralCode entity.

    Attributes:
        id: Primary key
        referrer_user_id: Code owner
        code: Globally unique code string (e.g. JUSTO-7KQ2M9XA)
        use_count: Referrals created with this code
        max_uses: Optional usage cap
        expires_at: Optional logical expiry
        created_at: Issue time
    """

    __tablename__ = "referral_codes"
    __table_args__ = (
        CheckConstraint(
            "max_uses IS NULL OR use_count <= max_uses",
            name="use_count_within_max_uses",
        ),
        CheckConstraint("use_count >= 0", name="use_count_non_negative"),
        Index("idx_referral_codes_referrer", "referrer_user_id"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referrer_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    use_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_uses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    referrals: Mapped[list["Referral"]] = relationship(
        "Referral", back_populates="referral_code"
    )

    def __repr__(self) -> str:
        return (
            f"<ReferralCode(id={self.id}, code={self.code}, "
            f"use_count={self.use_count}, max_uses={self.max_uses})>"
        )

    def is_expired(self, now: datetime) -> bool:
        """Check logical expiry."""
        return self.expires_at is not None and self.expires_at < now

    @property
    def is_exhausted(self) -> bool:
        """Check whether the usage cap is reached."""
        return self.max_uses is not None and self.use_count >= self.max_uses
