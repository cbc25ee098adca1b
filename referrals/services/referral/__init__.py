"""
Referral code issuance and referral queries.
"""

from referrals.services.referral.code_generator import generate_referral_code
from referrals.services.referral.code_registry import (
    BenefitTerms,
    CodeValidation,
    ReferralCodeRegistry,
)
from referrals.services.referral.query_service import (
    ReferralQueryService,
    SentReferral,
)

__all__ = [
    "BenefitTerms",
    "CodeValidation",
    "ReferralCodeRegistry",
    "ReferralQueryService",
    "SentReferral",
    "generate_referral_code",
]
