"""
Scoring service.

Persists lead scores and auto-qualifies referrals that cross the
threshold while still PENDING.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from referrals.config.business_constants import AUTO_QUALIFY_THRESHOLD
from referrals.models.enums import (
    PipelineEventType,
    PipelineStatus,
    ReferralStatus,
)
from referrals.repositories.pipeline_event_repository import (
    PipelineEventRepository,
)
from referrals.repositories.referral_repository import ReferralRepository
from referrals.services.base_service import BaseService, transaction
from referrals.services.reward.dispatch import RewardDispatcher
from referrals.services.scoring.score_calculator import (
    ScoreInput,
    ScoreResult,
    calculate_score,
)
from referrals.utils.datetime_utils import utc_now
from referrals.utils.exceptions import NotFoundError


@dataclass(frozen=True)
class ScoringOutcome:
    """What one scoring run did."""

    score: ScoreResult
    auto_qualified: bool


class ScoringService(BaseService):
    """Computes, stores and reads referral scores."""

    def __init__(
        self, session: AsyncSession, dispatcher: RewardDispatcher
    ) -> None:
        """
        Initialize scoring service.

        Args:
            session: Async database session
            dispatcher: Receives the emission request of an auto-qualified
                referral
        """
        super().__init__(session)
        self.dispatcher = dispatcher
        self.referral_repo = ReferralRepository(session)
        self.event_repo = PipelineEventRepository(session)

    async def compute_and_save_score(self, referral_id: int) -> ScoreResult:
        """
        Score a referral and auto-qualify it when it crosses the threshold.

        Reward emission is requested only after the qualifying commit, so a
        queue worker never sees the referral before it is QUALIFIED.

        Args:
            referral_id: Referral ID

        Returns:
            Computed score

        Raises:
            NotFoundError: Unknown referral
        """
        outcome = await self._score_referral(referral_id)
        if outcome.auto_qualified:
            await self.dispatcher.enqueue_reward_emission(referral_id)
        return outcome.score

    async def get_score(self, referral_id: int) -> ScoreResult:
        """
        Get the stored score, computing it on first read.

        Args:
            referral_id: Referral ID

        Returns:
            Stored or freshly computed score

        Raises:
            NotFoundError: Unknown referral
        """
        referral = await self.referral_repo.get_by_id(referral_id)
        if referral is None:
            raise NotFoundError("Referral not found", {"referral_id": referral_id})

        if not referral.is_scored:
            return await self.compute_and_save_score(referral_id)

        return ScoreResult(
            fit=referral.score_fit or 0,
            intent=referral.score_intent or 0,
            engage=referral.score_engage or 0,
        )

    @transaction
    async def _score_referral(self, referral_id: int) -> ScoringOutcome:
        """Persist the score and the auto-qualify transition in one commit."""
        referral = await self.referral_repo.get_for_update_with_parties(
            referral_id
        )
        if referral is None:
            raise NotFoundError("Referral not found", {"referral_id": referral_id})

        score = calculate_score(ScoreInput.from_referral(referral))
        now = utc_now()

        referral.score_fit = score.fit
        referral.score_intent = score.intent
        referral.score_engage = score.engage
        referral.score_total = score.total
        referral.scored_at = now

        await self.event_repo.append(
            referral_id,
            PipelineEventType.SCORE_UPDATE,
            note=(
                f"Score updated: FIT={score.fit} INTENT={score.intent} "
                f"ENGAGE={score.engage} TOTAL={score.total}"
            ),
        )

        auto_qualified = (
            score.total >= AUTO_QUALIFY_THRESHOLD
            and referral.pipeline_status == PipelineStatus.PENDING
            and referral.status == ReferralStatus.PENDING
        )
        if auto_qualified:
            referral.pipeline_status = PipelineStatus.QUALIFIED.value
            referral.qualified_at = now
            await self.event_repo.append(
                referral_id,
                PipelineEventType.AUTO_QUALIFIED,
                note=f"Auto-qualified: score {score.total} >= {AUTO_QUALIFY_THRESHOLD}",
                from_status=PipelineStatus.PENDING.value,
                to_status=PipelineStatus.QUALIFIED.value,
            )

        await self.session.flush()

        self.logger.info(
            f"Referral {referral_id} scored {score.total}",
            extra={
                "referral_id": referral_id,
                **score.to_dict(),
                "auto_qualified": auto_qualified,
            },
        )
        return ScoringOutcome(score=score, auto_qualified=auto_qualified)
