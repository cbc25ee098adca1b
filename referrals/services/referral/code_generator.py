"""
Referral code generation.
"""

import secrets

from referrals.config.business_constants import REFERRAL_CODE_ALPHABET


def generate_referral_code(prefix: str, length: int) -> str:
    """
    Generate a candidate referral code.

    Uniqueness is not checked here; the caller inserts against the unique
    constraint and retries on collision.

    Args:
        prefix: Upper-case prefix (e.g. "JUSTO")
        length: Number of random characters

    Returns:
        Code like "JUSTO-7KQ2M9XA"
    """
    random_part = "".join(
        secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(length)
    )
    return f"{prefix}-{random_part}"
