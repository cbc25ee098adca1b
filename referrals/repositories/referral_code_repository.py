"""
ReferralCode repository.

Data access layer for ReferralCode model.
"""

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.referral import Referral
from referrals.models.referral_code import ReferralCode
from referrals.repositories.base import BaseRepository


class ReferralCodeRepository(BaseRepository[ReferralCode]):
    """Repository for referral code operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ReferralCode, session)

    async def get_active_by_user(
        self, user_id: int, now: datetime
    ) -> ReferralCode | None:
        """
        Get the user's oldest unexpired code.

        Args:
            user_id: Code owner
            now: Reference time for expiry

        Returns:
            Unexpired code or None
        """
        stmt = (
            select(ReferralCode)
            .where(
                ReferralCode.referrer_user_id == user_id,
                or_(
                    ReferralCode.expires_at.is_(None),
                    ReferralCode.expires_at > now,
                ),
            )
            .order_by(ReferralCode.created_at.asc(), ReferralCode.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(self, code: str) -> ReferralCode | None:
        """
        Get code by its string.

        Args:
            code: Code string

        Returns:
            ReferralCode or None
        """
        return await self.get_by(code=code)

    async def increment_use_count(self, code_id: int) -> bool:
        """
        Atomically take one use of a code.

        The cap check is part of the UPDATE itself, so two concurrent
        registrations can never push use_count past max_uses.

        Args:
            code_id: Code ID

        Returns:
            True if a use was taken, False if the code is exhausted
        """
        stmt = (
            update(ReferralCode)
            .where(
                ReferralCode.id == code_id,
                or_(
                    ReferralCode.max_uses.is_(None),
                    ReferralCode.use_count < ReferralCode.max_uses,
                ),
            )
            .values(use_count=ReferralCode.use_count + 1)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def count_referrals_for_user(self, user_id: int) -> int:
        """
        Count referrals made through any of the user's codes.

        Args:
            user_id: Code owner

        Returns:
            Number of referrals
        """
        stmt = (
            select(func.count(Referral.id))
            .join(ReferralCode, Referral.referral_code_id == ReferralCode.id)
            .where(ReferralCode.referrer_user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
