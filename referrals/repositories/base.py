"""
Base repository.

Shared lookups for the referral repositories. Referral entities are never
deleted, so there is no delete here.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository for one mapped model.

    Example:
        class RewardRepository(BaseRepository[Reward]):
            def __init__(self, session: AsyncSession):
                super().__init__(Reward, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Get entity by primary key (identity map first)."""
        return await self.session.get(self.model, id)

    async def get_for_update(self, id: int) -> ModelType | None:
        """
        Get entity by ID, locking the row until the transaction ends.

        Concurrent writers of one row serialize here. The row is reloaded
        even when already in the session, so the caller decides on
        committed state.

        Args:
            id: Entity ID

        Returns:
            Locked entity or None if not found
        """
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get the single entity matching column filters.

        Only meant for filters backed by a unique constraint.
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Insert an entity inside the caller's transaction.

        Flushes so the ID and server defaults are available; never commits.

        Args:
            **data: Column values

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def exists(self, **filters: Any) -> bool:
        """Check whether any entity matches column filters."""
        stmt = select(exists().where(
            *(getattr(self.model, name) == value for name, value in filters.items())
        ))
        result = await self.session.execute(stmt)
        return bool(result.scalar())
