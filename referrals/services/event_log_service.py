"""
Event log service.

Read side of the referral audit trail. Writers append through
PipelineEventRepository inside their own transactions.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.pipeline_event import PipelineEvent
from referrals.repositories.pipeline_event_repository import (
    PipelineEventRepository,
)
from referrals.repositories.referral_repository import ReferralRepository
from referrals.services.base_service import BaseService
from referrals.utils.exceptions import NotFoundError


class EventLog(BaseService):
    """Read-only access to referral timelines."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize event log."""
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.event_repo = PipelineEventRepository(session)

    async def get_timeline(self, referral_id: int) -> list[PipelineEvent]:
        """
        Get a referral's events, newest first.

        Args:
            referral_id: Referral ID

        Returns:
            Events in reverse-chronological order

        Raises:
            NotFoundError: Unknown referral
        """
        if not await self.referral_repo.exists(id=referral_id):
            raise NotFoundError("Referral not found", {"referral_id": referral_id})
        return await self.event_repo.get_timeline(referral_id)
