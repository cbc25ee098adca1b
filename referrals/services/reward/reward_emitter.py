"""
Reward emitter.

Issues the REFERRER/REFERRED reward pair of a qualified referral and
handles redemption by the beneficiary.
"""

from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from referrals.config.settings import Settings, settings as default_settings
from referrals.models.enums import BeneficiaryType, ReferralStatus, RewardStatus
from referrals.models.reward import Reward
from referrals.repositories.referral_repository import ReferralRepository
from referrals.repositories.reward_repository import RewardRepository
from referrals.services.base_service import BaseService, transaction
from referrals.utils.datetime_utils import utc_now
from referrals.utils.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


class RewardEmitter(BaseService):
    """
    Reward emission and redemption.

    emit_rewards is safe under duplicate delivery: the REWARDED guard is
    read under the referral's row lock in the same transaction that writes
    the rewards.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: Settings | None = None,
    ) -> None:
        """
        Initialize reward emitter.

        Args:
            session: Async database session
            config: Reward terms (defaults to global settings)
        """
        super().__init__(session)
        self.config = config or default_settings
        self.referral_repo = ReferralRepository(session)
        self.reward_repo = RewardRepository(session)

    @transaction
    async def emit_rewards(self, referral_id: int) -> list[Reward]:
        """
        Issue the reward pair of a qualified referral.

        Args:
            referral_id: Referral ID

        Returns:
            [REFERRER reward, REFERRED reward]; the existing pair when the
            referral was already rewarded

        Raises:
            NotFoundError: Unknown referral
            ValidationError: Referral is not QUALIFIED
        """
        referral = await self.referral_repo.get_for_update_with_parties(
            referral_id
        )
        if referral is None:
            raise NotFoundError("Referral not found", {"referral_id": referral_id})

        if referral.status == ReferralStatus.REWARDED:
            self.logger.info(
                f"Referral {referral_id} already rewarded, returning existing rewards"
            )
            return await self.reward_repo.get_by_referral(referral_id)

        if referral.status != ReferralStatus.QUALIFIED:
            raise ValidationError(
                "Referral must be QUALIFIED to emit rewards",
                {"referral_id": referral_id, "status": referral.status.value},
            )

        now = utc_now()
        expires_at = now + timedelta(days=self.config.reward_expires_days)

        referrer_reward = await self.reward_repo.create(
            referral_id=referral.id,
            beneficiary_id=referral.referral_code.referrer_user_id,
            beneficiary_type=BeneficiaryType.REFERRER.value,
            reward_type=self.config.reward_referrer_type.value,
            amount=self.config.reward_referrer_amount,
            description=self.config.reward_referrer_description,
            status=RewardStatus.ISSUED.value,
            issued_at=now,
            expires_at=expires_at,
            created_at=now,
        )
        referred_reward = await self.reward_repo.create(
            referral_id=referral.id,
            beneficiary_id=referral.referred_restaurant.owner_id,
            beneficiary_type=BeneficiaryType.REFERRED.value,
            reward_type=self.config.reward_referred_type.value,
            amount=self.config.reward_referred_amount,
            description=self.config.reward_referred_description,
            status=RewardStatus.ISSUED.value,
            issued_at=now,
            expires_at=expires_at,
            created_at=now,
        )

        referral.rewarded_at = now
        await self.session.flush()

        self.logger.success(
            f"Rewards issued for referral {referral_id}",
            extra={
                "referral_id": referral_id,
                "referrer_user_id": referrer_reward.beneficiary_id,
                "referred_user_id": referred_reward.beneficiary_id,
            },
        )
        return [referrer_reward, referred_reward]

    @transaction
    async def redeem_reward(self, reward_id: int, user_id: int) -> Reward:
        """
        Redeem an issued reward.

        Ownership is checked before status, so another user's reward is
        refused whatever state it is in.

        Args:
            reward_id: Reward ID
            user_id: Acting user

        Returns:
            Redeemed reward

        Raises:
            NotFoundError: Unknown reward
            ForbiddenError: Caller is not the beneficiary
            ValidationError: Already redeemed, not issued, or expired
        """
        reward = await self.reward_repo.get_for_update(reward_id)
        if reward is None:
            raise NotFoundError("Reward not found", {"reward_id": reward_id})

        if reward.beneficiary_id != user_id:
            raise ForbiddenError(
                "This reward does not belong to you", {"reward_id": reward_id}
            )

        if reward.status == RewardStatus.REDEEMED.value:
            raise ValidationError("Reward already redeemed", {"reward_id": reward_id})

        if reward.status != RewardStatus.ISSUED.value:
            raise ValidationError(
                "Reward is not available for redemption",
                {"reward_id": reward_id, "status": reward.status},
            )

        now = utc_now()
        if reward.is_expired(now):
            raise ValidationError("Reward has expired", {"reward_id": reward_id})

        reward.status = RewardStatus.REDEEMED.value
        reward.redeemed_at = now
        await self.session.flush()

        self.logger.info(
            f"Reward {reward_id} redeemed",
            extra={"reward_id": reward_id, "user_id": user_id},
        )
        return reward

    async def get_user_rewards(self, user_id: int) -> list[Reward]:
        """
        Get a beneficiary's rewards, most recently issued first.

        Args:
            user_id: Beneficiary user ID

        Returns:
            Rewards with referral details loaded
        """
        return await self.reward_repo.get_by_beneficiary(user_id)
