"""
Restaurant repository.

Read access to referred restaurants.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.restaurant import Restaurant
from referrals.repositories.base import BaseRepository


class RestaurantRepository(BaseRepository[Restaurant]):
    """Repository for restaurant lookups."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Restaurant, session)

    async def get_ids_by_owner(self, owner_id: int) -> list[int]:
        """
        Get IDs of all restaurants owned by a user.

        Args:
            owner_id: Owner user ID

        Returns:
            Restaurant IDs
        """
        stmt = select(Restaurant.id).where(Restaurant.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
