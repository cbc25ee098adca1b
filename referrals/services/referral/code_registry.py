"""
Referral code registry.

Issues and validates referral codes and turns a code plus a registered
restaurant into a Referral.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from referrals.config.business_constants import MAX_CODE_GENERATION_ATTEMPTS
from referrals.config.settings import Settings, settings as default_settings
from referrals.models.enums import PipelineStatus, RewardType
from referrals.models.referral import Referral
from referrals.models.referral_code import ReferralCode
from referrals.repositories.referral_code_repository import (
    ReferralCodeRepository,
)
from referrals.repositories.referral_repository import ReferralRepository
from referrals.repositories.restaurant_repository import RestaurantRepository
from referrals.services.base_service import BaseService, transaction
from referrals.services.referral.code_generator import generate_referral_code
from referrals.utils.datetime_utils import utc_now
from referrals.utils.exceptions import (
    CodeGenerationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


@dataclass(frozen=True)
class BenefitTerms:
    """What one side of a referral receives."""

    headline: str
    reward_type: RewardType
    amount: Decimal | None


@dataclass(frozen=True)
class CodeValidation:
    """Result of validating a code before registration."""

    code: str
    referrer_user_id: int
    total_referrals: int
    referrer_benefit: BenefitTerms
    referred_benefit: BenefitTerms
    valid: bool = True


class ReferralCodeRegistry(BaseService):
    """Issues codes and creates referrals under them."""

    def __init__(
        self, session: AsyncSession, config: Settings | None = None
    ) -> None:
        """Initialize code registry."""
        super().__init__(session)
        self.config = config or default_settings
        self.code_repo = ReferralCodeRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.restaurant_repo = RestaurantRepository(session)

    @transaction
    async def get_or_create_code(self, user_id: int) -> ReferralCode:
        """
        Return the user's unexpired code, issuing one if needed.

        Each candidate is inserted inside a SAVEPOINT; a unique violation
        rolls back just that attempt and the next candidate is tried.

        Args:
            user_id: Code owner

        Returns:
            Existing or newly issued code

        Raises:
            CodeGenerationError: No free code within the attempt limit
        """
        now = utc_now()
        existing = await self.code_repo.get_active_by_user(user_id, now)
        if existing:
            return existing

        for attempt in range(1, MAX_CODE_GENERATION_ATTEMPTS + 1):
            candidate = generate_referral_code(
                self.config.referral_code_prefix,
                self.config.referral_code_length,
            )
            code = ReferralCode(
                referrer_user_id=user_id,
                code=candidate,
                use_count=0,
                created_at=now,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(code)
            except IntegrityError:
                self.logger.warning(
                    f"Referral code collision on attempt {attempt}: {candidate}"
                )
                continue

            self.logger.info(
                f"Referral code issued: {candidate}",
                extra={"user_id": user_id, "attempts": attempt},
            )
            return code

        raise CodeGenerationError(
            "Failed to generate unique referral code",
            {"attempts": MAX_CODE_GENERATION_ATTEMPTS},
        )

    async def get_code_by_string(self, code: str) -> ReferralCode:
        """
        Look up a code by its string.

        Raises:
            NotFoundError: Unknown code
        """
        referral_code = await self.code_repo.get_by_code(code)
        if referral_code is None:
            raise NotFoundError("Referral code not found", {"code": code})
        return referral_code

    async def validate_code(self, code: str) -> CodeValidation:
        """
        Check a code and describe what it grants. Read-only.

        Args:
            code: Code string

        Returns:
            Referrer identity and current benefit terms

        Raises:
            NotFoundError: Unknown code
            ValidationError: Expired or exhausted code
        """
        referral_code = await self.get_code_by_string(code)
        self._ensure_usable(referral_code)

        total_referrals = await self.code_repo.count_referrals_for_user(
            referral_code.referrer_user_id
        )

        return CodeValidation(
            code=referral_code.code,
            referrer_user_id=referral_code.referrer_user_id,
            total_referrals=total_referrals,
            referrer_benefit=BenefitTerms(
                headline=self.config.reward_referrer_description,
                reward_type=self.config.reward_referrer_type,
                amount=self.config.reward_referrer_amount,
            ),
            referred_benefit=BenefitTerms(
                headline=self.config.reward_referred_description,
                reward_type=self.config.reward_referred_type,
                amount=self.config.reward_referred_amount,
            ),
        )

    @transaction
    async def create_referral(
        self,
        code_id: int,
        referred_restaurant_id: int,
        referred_owner_id: int,
    ) -> Referral:
        """
        Create a PENDING referral and take one use of the code.

        All checks and both writes commit together or not at all.

        Args:
            code_id: Referral code ID
            referred_restaurant_id: Restaurant being referred
            referred_owner_id: Owner of that restaurant

        Returns:
            Created referral

        Raises:
            NotFoundError: Unknown code or restaurant
            ValidationError: Self-referral, unusable code, already referred
            ConflictError: Lost an insert race for the same restaurant
        """
        code = await self.code_repo.get_for_update(code_id)
        if code is None:
            raise NotFoundError("Referral code not found", {"code_id": code_id})

        if code.referrer_user_id == referred_owner_id:
            raise ValidationError("Cannot use your own referral code")

        self._ensure_usable(code)

        restaurant = await self.restaurant_repo.get_by_id(referred_restaurant_id)
        if restaurant is None:
            raise NotFoundError(
                "Restaurant not found",
                {"restaurant_id": referred_restaurant_id},
            )

        if await self.referral_repo.get_by_restaurant(referred_restaurant_id):
            raise ValidationError("This restaurant has already been referred")

        if not await self.code_repo.increment_use_count(code.id):
            raise ValidationError("Referral code has reached its maximum uses")

        now = utc_now()
        try:
            referral = await self.referral_repo.create(
                referral_code_id=code.id,
                referred_restaurant_id=referred_restaurant_id,
                pipeline_status=PipelineStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
        except IntegrityError as e:
            raise ConflictError(
                "This restaurant has already been referred",
                {"restaurant_id": referred_restaurant_id},
            ) from e

        self.logger.info(
            "Referral created",
            extra={
                "referral_id": referral.id,
                "code": code.code,
                "restaurant_id": referred_restaurant_id,
            },
        )
        return referral

    def _ensure_usable(self, code: ReferralCode) -> None:
        """Reject expired or exhausted codes."""
        if code.is_expired(utc_now()):
            raise ValidationError("Referral code has expired")
        if code.is_exhausted:
            raise ValidationError("Referral code has reached its maximum uses")
