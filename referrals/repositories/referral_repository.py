"""
Referral repository.

Data access layer for Referral model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from referrals.models.referral import Referral
from referrals.models.referral_code import ReferralCode
from referrals.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_for_update_with_parties(
        self, referral_id: int
    ) -> Referral | None:
        """
        Lock a referral and load both parties.

        Uses selectinload rather than a join: FOR UPDATE cannot be applied
        to the nullable side of an outer join.

        Args:
            referral_id: Referral ID

        Returns:
            Referral with referral_code and referred_restaurant loaded
        """
        stmt = (
            select(Referral)
            .options(
                selectinload(Referral.referral_code),
                selectinload(Referral.referred_restaurant),
            )
            .where(Referral.id == referral_id)
            .with_for_update(of=Referral)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_restaurant(self, restaurant_id: int) -> Referral | None:
        """
        Get the referral of a restaurant, if any.

        Args:
            restaurant_id: Referred restaurant ID

        Returns:
            Referral or None
        """
        return await self.get_by(referred_restaurant_id=restaurant_id)

    async def get_sent_by_referrer(self, referrer_user_id: int) -> list[Referral]:
        """
        Get referrals made through a user's codes, newest first.

        Args:
            referrer_user_id: Code owner

        Returns:
            Referrals with restaurant and rewards loaded
        """
        stmt = (
            select(Referral)
            .join(ReferralCode, Referral.referral_code_id == ReferralCode.id)
            .options(
                selectinload(Referral.referred_restaurant),
                selectinload(Referral.rewards),
            )
            .where(ReferralCode.referrer_user_id == referrer_user_id)
            .order_by(Referral.created_at.desc(), Referral.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_restaurants(
        self, restaurant_ids: list[int]
    ) -> Referral | None:
        """
        Get the first referral among a set of restaurants.

        Args:
            restaurant_ids: Candidate restaurant IDs

        Returns:
            Referral with code and rewards loaded, or None
        """
        if not restaurant_ids:
            return None

        stmt = (
            select(Referral)
            .options(
                selectinload(Referral.referral_code),
                selectinload(Referral.rewards),
            )
            .where(Referral.referred_restaurant_id.in_(restaurant_ids))
            .order_by(Referral.created_at.asc(), Referral.id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Referral]:
        """
        Get every referral, newest first, with related rows loaded.

        Returns:
            List of referrals
        """
        stmt = (
            select(Referral)
            .options(
                selectinload(Referral.referral_code),
                selectinload(Referral.referred_restaurant),
                selectinload(Referral.rewards),
            )
            .order_by(Referral.created_at.desc(), Referral.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
