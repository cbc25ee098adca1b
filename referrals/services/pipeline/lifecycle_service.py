"""
Referral lifecycle service.

The only writer of a referral's pipeline status after creation, apart
from the auto-qualify step of ScoringService.
"""

from dataclasses import dataclass, fields
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from referrals.models.enums import (
    PipelineEventType,
    PipelineStatus,
    ReferralStatus,
)
from referrals.models.referral import Referral
from referrals.repositories.pipeline_event_repository import (
    PipelineEventRepository,
)
from referrals.repositories.referral_repository import ReferralRepository
from referrals.services.base_service import BaseService, transaction
from referrals.services.pipeline.state_machine import ensure_transition
from referrals.services.reward.dispatch import RewardDispatcher
from referrals.services.scoring.scoring_service import ScoringService
from referrals.utils.datetime_utils import ensure_utc, utc_now
from referrals.utils.exceptions import NotFoundError, ValidationError


SIGNAL_FIELDS = (
    "used_calculator",
    "used_diagnostic",
    "requested_demo",
    "from_meta_ad",
    "responded_wa",
    "opened_messages",
    "response_time_min",
)


@dataclass
class PipelineUpdate:
    """
    Admin changes to a referral. None leaves a field untouched.
    """

    status: PipelineStatus | None = None
    note: str | None = None

    # Pipeline metadata
    demo_scheduled_at: datetime | None = None
    meeting_held_at: datetime | None = None
    meeting_outcome: str | None = None
    nurture_stage: str | None = None
    next_action_at: datetime | None = None

    # Intake signals
    used_calculator: bool | None = None
    used_diagnostic: bool | None = None
    requested_demo: bool | None = None
    from_meta_ad: bool | None = None
    responded_wa: bool | None = None
    opened_messages: int | None = None
    response_time_min: int | None = None

    def signal_changes(self) -> dict[str, object]:
        """Signals this update sets."""
        return {
            name: getattr(self, name)
            for name in SIGNAL_FIELDS
            if getattr(self, name) is not None
        }

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True)
class _AppliedUpdate:
    referral: Referral
    entered_qualified: bool
    signals_changed: bool


class ReferralLifecycle(BaseService):
    """Guarded pipeline transitions, admin metadata and expiry."""

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: RewardDispatcher,
        scoring: ScoringService | None = None,
    ) -> None:
        """
        Initialize lifecycle service.

        Args:
            session: Async database session
            dispatcher: Receives the emission request of a manual
                qualification
            scoring: Re-scores after signal changes (built on the same
                session and dispatcher when omitted)
        """
        super().__init__(session)
        self.dispatcher = dispatcher
        self.scoring = scoring or ScoringService(session, dispatcher)
        self.referral_repo = ReferralRepository(session)
        self.event_repo = PipelineEventRepository(session)

    async def update_pipeline(
        self,
        referral_id: int,
        update: PipelineUpdate,
        acting_user_id: int,
    ) -> Referral:
        """
        Apply an admin update to a referral.

        The status change, metadata, signals and the event row commit
        together. Re-scoring and the emission request of a manual
        qualification follow the commit.

        Args:
            referral_id: Referral ID
            update: Requested changes
            acting_user_id: Admin performing the update

        Returns:
            Updated referral

        Raises:
            NotFoundError: Unknown referral
            ValidationError: Empty update or illegal transition
        """
        if update.is_empty():
            raise ValidationError("Nothing to update", {"referral_id": referral_id})

        applied = await self._apply_update(referral_id, update, acting_user_id)

        if applied.signals_changed:
            await self.scoring.compute_and_save_score(referral_id)

        if applied.entered_qualified:
            await self.dispatcher.enqueue_reward_emission(referral_id)

        return applied.referral

    @transaction
    async def expire_referral(
        self, referral_id: int, acting_user_id: int | None = None
    ) -> Referral:
        """
        Expire a referral that never qualified.

        Moves the pipeline to DEAD and stamps expired_at.

        Args:
            referral_id: Referral ID
            acting_user_id: Admin performing the expiry

        Returns:
            Expired referral

        Raises:
            NotFoundError: Unknown referral
            ValidationError: Referral is not PENDING
        """
        referral = await self._lock(referral_id)

        if referral.status != ReferralStatus.PENDING:
            raise ValidationError(
                "Only PENDING referrals can be expired",
                {"referral_id": referral_id, "status": referral.status.value},
            )

        from_status = PipelineStatus(referral.pipeline_status)
        ensure_transition(from_status, PipelineStatus.DEAD)

        referral.pipeline_status = PipelineStatus.DEAD.value
        referral.expired_at = utc_now()

        await self.event_repo.append(
            referral_id,
            PipelineEventType.STATUS_CHANGE,
            note="Referral expired",
            from_status=from_status.value,
            to_status=PipelineStatus.DEAD.value,
            created_by=acting_user_id,
        )
        await self.session.flush()

        self.logger.info(
            f"Referral {referral_id} expired",
            extra={"referral_id": referral_id, "acting_user_id": acting_user_id},
        )
        return referral

    @transaction
    async def log_contact_attempt(
        self, referral_id: int, note: str, acting_user_id: int
    ) -> None:
        """
        Record an outreach attempt on the referral's timeline.

        Raises:
            NotFoundError: Unknown referral
        """
        await self._lock(referral_id)
        await self.event_repo.append(
            referral_id,
            PipelineEventType.CONTACT_ATTEMPT,
            note=note,
            created_by=acting_user_id,
        )

    @transaction
    async def _apply_update(
        self,
        referral_id: int,
        update: PipelineUpdate,
        acting_user_id: int,
    ) -> _AppliedUpdate:
        referral = await self._lock(referral_id)
        now = utc_now()
        entered_qualified = False

        if update.status is not None:
            from_status = PipelineStatus(referral.pipeline_status)
            to_status = PipelineStatus(update.status)
            ensure_transition(from_status, to_status)

            referral.pipeline_status = to_status.value

            if to_status == PipelineStatus.QUALIFIED:
                referral.qualified_at = now
                entered_qualified = True
            elif to_status == PipelineStatus.DEMO_SCHEDULED:
                referral.demo_scheduled_at = (
                    ensure_utc(update.demo_scheduled_at)
                    if update.demo_scheduled_at is not None
                    else now
                )
            elif to_status == PipelineStatus.MEETING_HELD:
                referral.meeting_held_at = (
                    ensure_utc(update.meeting_held_at)
                    if update.meeting_held_at is not None
                    else now
                )

            await self.event_repo.append(
                referral_id,
                PipelineEventType.STATUS_CHANGE,
                note=update.note,
                from_status=from_status.value,
                to_status=to_status.value,
                created_by=acting_user_id,
            )
            await self._append_milestone(
                referral, to_status, update.meeting_outcome, acting_user_id
            )
        elif update.note:
            await self.event_repo.append(
                referral_id,
                PipelineEventType.NOTE,
                note=update.note,
                created_by=acting_user_id,
            )

        if update.demo_scheduled_at is not None:
            referral.demo_scheduled_at = ensure_utc(update.demo_scheduled_at)
        if update.meeting_held_at is not None:
            referral.meeting_held_at = ensure_utc(update.meeting_held_at)
        if update.nurture_stage is not None:
            referral.nurture_stage = update.nurture_stage
        if update.next_action_at is not None:
            referral.next_action_at = ensure_utc(update.next_action_at)
        if update.meeting_outcome is not None:
            referral.meeting_outcome = update.meeting_outcome

        signals_changed = False
        for name, value in update.signal_changes().items():
            if getattr(referral, name) != value:
                setattr(referral, name, value)
                signals_changed = True

        await self.session.flush()

        self.logger.info(
            f"Pipeline updated for referral {referral_id}",
            extra={
                "referral_id": referral_id,
                "pipeline_status": referral.pipeline_status,
                "acting_user_id": acting_user_id,
                "signals_changed": signals_changed,
            },
        )
        return _AppliedUpdate(
            referral=referral,
            entered_qualified=entered_qualified,
            signals_changed=signals_changed,
        )

    async def _append_milestone(
        self,
        referral: Referral,
        to_status: PipelineStatus,
        meeting_outcome: str | None,
        acting_user_id: int,
    ) -> None:
        """Record a demo or meeting milestone next to its status change."""
        if to_status == PipelineStatus.DEMO_SCHEDULED:
            await self.event_repo.append(
                referral.id,
                PipelineEventType.DEMO_SCHEDULED,
                note=f"Demo scheduled for {referral.demo_scheduled_at.isoformat()}",
                created_by=acting_user_id,
            )
        elif to_status == PipelineStatus.MEETING_HELD:
            await self.event_repo.append(
                referral.id,
                PipelineEventType.MEETING_HELD,
                note=meeting_outcome or "Meeting held",
                created_by=acting_user_id,
            )

    async def _lock(self, referral_id: int) -> Referral:
        referral = await self.referral_repo.get_for_update(referral_id)
        if referral is None:
            raise NotFoundError("Referral not found", {"referral_id": referral_id})
        return referral
