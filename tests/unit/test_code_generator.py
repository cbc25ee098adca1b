"""
Unit tests for referral code generation.
"""

from referrals.config.business_constants import REFERRAL_CODE_ALPHABET
from referrals.services.referral.code_generator import generate_referral_code


class TestGenerateReferralCode:
    """Test candidate code format."""

    def test_prefix_and_length(self):
        code = generate_referral_code("JUSTO", 8)

        prefix, random_part = code.split("-")
        assert prefix == "JUSTO"
        assert len(random_part) == 8

    def test_uses_unambiguous_alphabet(self):
        """No I, O, 0 or 1 ever appear in the random part."""
        for _ in range(200):
            random_part = generate_referral_code("JUSTO", 12).split("-")[1]
            assert set(random_part) <= set(REFERRAL_CODE_ALPHABET)
            assert not set(random_part) & set("IO01")

    def test_custom_prefix(self):
        assert generate_referral_code("REF", 4).startswith("REF-")

    def test_codes_vary(self):
        codes = {generate_referral_code("JUSTO", 8) for _ in range(50)}
        assert len(codes) > 1
