"""
Reward repository.

Data access layer for Reward model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from referrals.models.referral import Referral
from referrals.models.reward import Reward
from referrals.repositories.base import BaseRepository


class RewardRepository(BaseRepository[Reward]):
    """Repository for reward operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Reward, session)

    async def get_by_referral(self, referral_id: int) -> list[Reward]:
        """
        Get the rewards of a referral in creation order.

        Args:
            referral_id: Referral ID

        Returns:
            Rewards (REFERRER first when emitted by RewardEmitter)
        """
        stmt = (
            select(Reward)
            .where(Reward.referral_id == referral_id)
            .order_by(Reward.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_beneficiary(self, beneficiary_id: int) -> list[Reward]:
        """
        Get a beneficiary's rewards, most recently issued first.

        Args:
            beneficiary_id: User ID

        Returns:
            Rewards with referral, code and restaurant loaded
        """
        stmt = (
            select(Reward)
            .options(
                selectinload(Reward.referral).selectinload(
                    Referral.referred_restaurant
                ),
                selectinload(Reward.referral).selectinload(
                    Referral.referral_code
                ),
            )
            .where(Reward.beneficiary_id == beneficiary_id)
            .order_by(Reward.issued_at.desc(), Reward.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
