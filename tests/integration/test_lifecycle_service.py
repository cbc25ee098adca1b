"""
Integration tests for ReferralLifecycle.

Tests cover:
- Guarded pipeline transitions and their stamps
- STATUS_CHANGE vs NOTE events
- Manual qualification requests reward emission
- Signal updates trigger a re-score
- Legacy expiry
"""

from datetime import UTC, datetime

import pytest

from referrals.models.enums import (
    PipelineEventType,
    PipelineStatus,
    ReferralStatus,
)
from referrals.repositories.pipeline_event_repository import (
    PipelineEventRepository,
)
from referrals.services.pipeline.lifecycle_service import (
    PipelineUpdate,
    ReferralLifecycle,
)
from referrals.utils.exceptions import NotFoundError, ValidationError


ADMIN_ID = 1


@pytest.fixture
def lifecycle(session, mock_dispatcher):
    return ReferralLifecycle(session, mock_dispatcher)


async def timeline(session, referral_id):
    return await PipelineEventRepository(session).get_timeline(referral_id)


class TestStatusTransitions:
    """Test guarded status changes."""

    async def test_pending_to_won_rejected(self, lifecycle, make_referral, session):
        referral = await make_referral()

        with pytest.raises(ValidationError) as exc_info:
            await lifecycle.update_pipeline(
                referral.id, PipelineUpdate(status=PipelineStatus.WON), ADMIN_ID
            )

        assert exc_info.value.details["allowed"] == ["DEAD", "QUALIFIED"]
        await session.refresh(referral)
        assert referral.pipeline_status == PipelineStatus.PENDING
        assert await timeline(session, referral.id) == []

    @pytest.mark.parametrize("target", list(PipelineStatus))
    async def test_dead_is_terminal(self, lifecycle, make_referral, target):
        referral = await make_referral(pipeline_status=PipelineStatus.DEAD.value)

        with pytest.raises(ValidationError):
            await lifecycle.update_pipeline(
                referral.id, PipelineUpdate(status=target), ADMIN_ID
            )

    async def test_status_change_event(self, lifecycle, qualified_referral, session):
        referral = await qualified_referral()

        await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(status=PipelineStatus.NURTURE, note="Call back in Q3"),
            ADMIN_ID,
        )

        events = await timeline(session, referral.id)
        assert len(events) == 1
        assert events[0].event_type == PipelineEventType.STATUS_CHANGE
        assert events[0].from_status == PipelineStatus.QUALIFIED
        assert events[0].to_status == PipelineStatus.NURTURE
        assert events[0].note == "Call back in Q3"
        assert events[0].created_by == ADMIN_ID

    async def test_demo_scheduled_stamps_requested_time(self, lifecycle, qualified_referral):
        referral = await qualified_referral()
        demo_at = datetime(2026, 11, 3, 17, 0, tzinfo=UTC)

        updated = await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(status=PipelineStatus.DEMO_SCHEDULED, demo_scheduled_at=demo_at),
            ADMIN_ID,
        )

        assert updated.pipeline_status == PipelineStatus.DEMO_SCHEDULED
        assert updated.demo_scheduled_at == demo_at

    async def test_demo_scheduled_defaults_to_now(self, lifecycle, qualified_referral):
        referral = await qualified_referral()

        updated = await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(status=PipelineStatus.DEMO_SCHEDULED), ADMIN_ID
        )

        assert updated.demo_scheduled_at is not None

    async def test_meeting_held_stamps_outcome(self, lifecycle, make_referral):
        referral = await make_referral(pipeline_status=PipelineStatus.DEMO_SCHEDULED.value)

        updated = await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(
                status=PipelineStatus.MEETING_HELD,
                meeting_outcome="Interested, wants pricing",
            ),
            ADMIN_ID,
        )

        assert updated.meeting_held_at is not None
        assert updated.meeting_outcome == "Interested, wants pricing"

    async def test_milestone_events_follow_status_change(
        self, lifecycle, qualified_referral, session
    ):
        """Entering DEMO_SCHEDULED and MEETING_HELD records the milestone too."""
        referral = await qualified_referral()
        demo_at = datetime(2026, 11, 3, 17, 0, tzinfo=UTC)

        await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(status=PipelineStatus.DEMO_SCHEDULED, demo_scheduled_at=demo_at),
            ADMIN_ID,
        )
        await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(status=PipelineStatus.MEETING_HELD, meeting_outcome="Wants pricing"),
            ADMIN_ID,
        )

        meeting, meeting_change, demo, demo_change = await timeline(session, referral.id)
        assert demo_change.to_status == PipelineStatus.DEMO_SCHEDULED
        assert demo.event_type == PipelineEventType.DEMO_SCHEDULED
        assert demo.note == f"Demo scheduled for {demo_at.isoformat()}"
        assert meeting_change.to_status == PipelineStatus.MEETING_HELD
        assert meeting.event_type == PipelineEventType.MEETING_HELD
        assert meeting.note == "Wants pricing"
        assert meeting.created_by == ADMIN_ID

    async def test_full_funnel_to_won(self, lifecycle, qualified_referral, session):
        referral = await qualified_referral()

        for status in (
            PipelineStatus.DEMO_SCHEDULED,
            PipelineStatus.MEETING_HELD,
            PipelineStatus.WON,
        ):
            await lifecycle.update_pipeline(referral.id, PipelineUpdate(status=status), ADMIN_ID)

        await session.refresh(referral)
        assert referral.pipeline_status == PipelineStatus.WON
        types = [e.event_type for e in await timeline(session, referral.id)]
        assert types == [
            PipelineEventType.STATUS_CHANGE,
            PipelineEventType.MEETING_HELD,
            PipelineEventType.STATUS_CHANGE,
            PipelineEventType.DEMO_SCHEDULED,
            PipelineEventType.STATUS_CHANGE,
        ]

    async def test_unknown_referral(self, lifecycle):
        with pytest.raises(NotFoundError):
            await lifecycle.update_pipeline(9999, PipelineUpdate(note="hello"), ADMIN_ID)

    async def test_empty_update_rejected(self, lifecycle, make_referral):
        referral = await make_referral()

        with pytest.raises(ValidationError, match="Nothing to update"):
            await lifecycle.update_pipeline(referral.id, PipelineUpdate(), ADMIN_ID)


class TestManualQualification:
    """Test the manual PENDING -> QUALIFIED path."""

    async def test_manual_qualify_requests_emission(
        self, lifecycle, make_referral, mock_dispatcher, session
    ):
        referral = await make_referral()

        updated = await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(status=PipelineStatus.QUALIFIED), ADMIN_ID
        )

        assert updated.status == ReferralStatus.QUALIFIED
        assert updated.qualified_at is not None
        mock_dispatcher.enqueue_reward_emission.assert_awaited_once_with(referral.id)

    async def test_second_qualify_rejected(self, lifecycle, make_referral, mock_dispatcher):
        """Whichever path qualifies first wins; the other is rejected."""
        referral = await make_referral()
        await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(status=PipelineStatus.QUALIFIED), ADMIN_ID
        )

        with pytest.raises(ValidationError):
            await lifecycle.update_pipeline(
                referral.id, PipelineUpdate(status=PipelineStatus.QUALIFIED), ADMIN_ID
            )

        mock_dispatcher.enqueue_reward_emission.assert_awaited_once()

    async def test_no_emission_for_other_transitions(
        self, lifecycle, qualified_referral, mock_dispatcher
    ):
        referral = await qualified_referral()

        await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(status=PipelineStatus.NURTURE), ADMIN_ID
        )

        mock_dispatcher.enqueue_reward_emission.assert_not_awaited()


class TestNotesAndMetadata:
    """Test note-only and metadata updates."""

    async def test_bare_note(self, lifecycle, make_referral, session):
        referral = await make_referral()

        await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(note="Left a voicemail"), ADMIN_ID
        )

        events = await timeline(session, referral.id)
        assert len(events) == 1
        assert events[0].event_type == PipelineEventType.NOTE
        assert events[0].from_status is None
        assert events[0].to_status is None

    async def test_metadata_without_event(self, lifecycle, make_referral, session):
        referral = await make_referral()
        next_action = datetime(2026, 12, 1, tzinfo=UTC)

        updated = await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(nurture_stage="monthly", next_action_at=next_action),
            ADMIN_ID,
        )

        assert updated.nurture_stage == "monthly"
        assert updated.next_action_at == next_action
        assert await timeline(session, referral.id) == []

    async def test_log_contact_attempt(self, lifecycle, make_referral, session):
        referral = await make_referral()

        await lifecycle.log_contact_attempt(referral.id, "WhatsApp sent", ADMIN_ID)

        events = await timeline(session, referral.id)
        assert events[0].event_type == PipelineEventType.CONTACT_ATTEMPT
        assert events[0].note == "WhatsApp sent"


class TestSignalUpdates:
    """Test re-scoring after signal changes."""

    async def test_rescores_when_signals_updated(
        self, lifecycle, make_restaurant, make_referral, session
    ):
        restaurant = await make_restaurant(city="CDMX")
        referral = await make_referral(restaurant=restaurant)

        updated = await lifecycle.update_pipeline(
            referral.id,
            PipelineUpdate(used_calculator=True, opened_messages=3),
            ADMIN_ID,
        )

        assert updated.used_calculator is True
        assert updated.score_total == 10 + 10 + 7
        types = [e.event_type for e in await timeline(session, referral.id)]
        assert types == [PipelineEventType.SCORE_UPDATE]

    async def test_unchanged_signals_skip_rescore(self, lifecycle, make_referral, session):
        referral = await make_referral(used_calculator=True)

        await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(used_calculator=True), ADMIN_ID
        )

        await session.refresh(referral)
        assert referral.scored_at is None

    async def test_signal_update_can_auto_qualify(
        self,
        lifecycle,
        make_restaurant,
        make_referral,
        mock_dispatcher,
        high_intent_signals,
    ):
        restaurant_fields, referral_fields = high_intent_signals
        restaurant = await make_restaurant(**restaurant_fields)
        referral_fields.pop("response_time_min")
        referral = await make_referral(restaurant=restaurant, **referral_fields)

        updated = await lifecycle.update_pipeline(
            referral.id, PipelineUpdate(response_time_min=10), ADMIN_ID
        )

        assert updated.pipeline_status == PipelineStatus.QUALIFIED
        mock_dispatcher.enqueue_reward_emission.assert_awaited_once_with(referral.id)


class TestExpireReferral:
    """Test legacy expiry."""

    async def test_expires_pending_referral(self, lifecycle, make_referral, session):
        referral = await make_referral()

        expired = await lifecycle.expire_referral(referral.id, ADMIN_ID)

        assert expired.status == ReferralStatus.EXPIRED
        assert expired.pipeline_status == PipelineStatus.DEAD
        assert expired.expired_at is not None
        events = await timeline(session, referral.id)
        assert events[0].event_type == PipelineEventType.STATUS_CHANGE
        assert events[0].to_status == PipelineStatus.DEAD

    async def test_qualified_referral_cannot_expire(self, lifecycle, qualified_referral):
        referral = await qualified_referral()

        with pytest.raises(ValidationError, match="Only PENDING"):
            await lifecycle.expire_referral(referral.id, ADMIN_ID)

    async def test_unknown_referral(self, lifecycle):
        with pytest.raises(NotFoundError):
            await lifecycle.expire_referral(9999)
