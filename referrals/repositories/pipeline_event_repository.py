"""
PipelineEvent repository.

Append and read access to the referral audit trail. There is
no update or delete.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.enums import PipelineEventType
from referrals.models.pipeline_event import PipelineEvent
from referrals.repositories.base import BaseRepository
from referrals.utils.datetime_utils import utc_now


class PipelineEventRepository(BaseRepository[PipelineEvent]):
    """Repository for pipeline events."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(PipelineEvent, session)

    async def append(
        self,
        referral_id: int,
        event_type: PipelineEventType,
        note: str | None = None,
        from_status: str | None = None,
        to_status: str | None = None,
        created_by: int | None = None,
    ) -> PipelineEvent:
        """
        Append an event to a referral's timeline.

        Runs inside the caller's transaction; nothing is committed here.

        Args:
            referral_id: Referral ID
            event_type: Event kind
            note: Free text
            from_status: Pipeline status before a transition
            to_status: Pipeline status after a transition
            created_by: Acting user, None for automatic events

        Returns:
            Created event
        """
        return await self.create(
            referral_id=referral_id,
            event_type=event_type.value,
            note=note,
            from_status=from_status,
            to_status=to_status,
            created_by=created_by,
            created_at=utc_now(),
        )

    async def get_timeline(self, referral_id: int) -> list[PipelineEvent]:
        """
        Get a referral's events, newest first.

        Args:
            referral_id: Referral ID

        Returns:
            Events in reverse-chronological order
        """
        stmt = (
            select(PipelineEvent)
            .where(PipelineEvent.referral_id == referral_id)
            .order_by(PipelineEvent.created_at.desc(), PipelineEvent.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
