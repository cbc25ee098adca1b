"""
Referral query service.

Read helpers for the referrer, referred-owner and admin surfaces.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.referral import Referral
from referrals.models.reward import Reward
from referrals.repositories.referral_repository import ReferralRepository
from referrals.repositories.restaurant_repository import RestaurantRepository
from referrals.services.base_service import BaseService


@dataclass
class SentReferral:
    """A referral seen from the referrer's side."""

    referral: Referral
    rewards: list[Reward] = field(default_factory=list)


class ReferralQueryService(BaseService):
    """Read-only referral queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query service."""
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.restaurant_repo = RestaurantRepository(session)

    async def get_sent_referrals(self, user_id: int) -> list[SentReferral]:
        """
        Get referrals made through the user's codes, newest first.

        Args:
            user_id: Referrer user ID

        Returns:
            Referrals paired with the user's own side of each reward pair
        """
        referrals = await self.referral_repo.get_sent_by_referrer(user_id)
        return [
            SentReferral(
                referral=referral,
                rewards=[
                    reward for reward in referral.rewards
                    if reward.beneficiary_id == user_id
                ],
            )
            for referral in referrals
        ]

    async def get_received_referral(self, user_id: int) -> Referral | None:
        """
        Get the referral that brought in one of the user's restaurants.

        Args:
            user_id: Restaurant owner

        Returns:
            Referral with code and rewards loaded, or None
        """
        restaurant_ids = await self.restaurant_repo.get_ids_by_owner(user_id)
        return await self.referral_repo.get_by_restaurants(restaurant_ids)

    async def get_all_referrals(self) -> list[Referral]:
        """
        Get every referral for the admin listing, newest first.

        Returns:
            Referrals with code, restaurant and rewards loaded
        """
        return await self.referral_repo.list_all()
