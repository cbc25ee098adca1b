"""
Unit tests for lead score calculation.

Tests cover:
- FIT, INTENT and ENGAGE point tables
- Exclusive bands per signal
- total == fit + intent + engage
"""

from unittest.mock import MagicMock

import pytest

from referrals.services.scoring.score_calculator import (
    ScoreInput,
    ScoreResult,
    calculate_score,
    score_engage,
    score_fit,
    score_intent,
)


class TestFitScore:
    """Test FIT component."""

    def test_no_signals(self):
        """Empty input scores nothing."""
        assert score_fit(ScoreInput()) == 0

    @pytest.mark.parametrize(
        "city",
        ["CDMX", "cdmx", "  Monterrey ", "Guadalajara", "Ciudad de México", "ciudad de mexico"],
    )
    def test_tier1_city_case_insensitive(self, city):
        """Tier-1 cities match regardless of case and padding."""
        assert score_fit(ScoreInput(city=city)) == 10

    def test_other_city_scores_nothing(self):
        """Cities outside tier 1 add no points."""
        assert score_fit(ScoreInput(city="Cancun")) == 0

    @pytest.mark.parametrize(
        "locations,expected",
        [(0, 0), (1, 3), (2, 7), (5, 7), (6, 10), (40, 10)],
    )
    def test_location_bands(self, locations, expected):
        """Location count takes the single highest band."""
        assert score_fit(ScoreInput(num_locations=locations)) == expected

    def test_five_locations_is_seven_not_ten(self):
        """Bands are exclusive: 5 locations -> 7, not 3 + 7."""
        assert score_fit(ScoreInput(num_locations=5)) == 7

    @pytest.mark.parametrize("pos", ["toast", "Square", "SoftRestaurant", "micros"])
    def test_known_pos(self, pos):
        """Recognized POS systems add 5."""
        assert score_fit(ScoreInput(current_pos=pos)) == 5

    def test_unknown_pos(self):
        """Unrecognized POS adds nothing."""
        assert score_fit(ScoreInput(current_pos="cash register")) == 0

    @pytest.mark.parametrize(
        "pct,expected",
        [(0, 0), (20, 0), (21, 3), (50, 3), (51, 5), (100, 5)],
    )
    def test_delivery_bands(self, pct, expected):
        """Delivery share thresholds are strictly greater-than."""
        assert score_fit(ScoreInput(delivery_pct=pct)) == expected

    def test_contact_channels(self):
        """WhatsApp adds 3 and email adds 2."""
        assert score_fit(ScoreInput(owner_whatsapp="+52551234")) == 3
        assert score_fit(ScoreInput(owner_email="a@b.mx")) == 2
        assert score_fit(ScoreInput(owner_whatsapp="", owner_email="")) == 0


class TestIntentScore:
    """Test INTENT component."""

    def test_all_intent_signals(self):
        """Calculator, diagnostic and demo add 10 each; paid ad adds 5."""
        signals = ScoreInput(
            used_calculator=True,
            used_diagnostic=True,
            requested_demo=True,
            from_meta_ad=True,
        )
        assert score_intent(signals) == 35

    def test_paid_ad_only(self):
        assert score_intent(ScoreInput(from_meta_ad=True)) == 5


class TestEngageScore:
    """Test ENGAGE component."""

    @pytest.mark.parametrize(
        "opened,expected",
        [(0, 0), (1, 3), (2, 3), (3, 7), (5, 7), (6, 10), (25, 10)],
    )
    def test_opened_bands(self, opened, expected):
        assert score_engage(ScoreInput(opened_messages=opened)) == expected

    @pytest.mark.parametrize(
        "minutes,expected",
        [(0, 10), (29, 10), (30, 5), (119, 5), (120, 2), (479, 2), (480, 0), (None, 0)],
    )
    def test_response_time_bands(self, minutes, expected):
        """Latency thresholds are strictly less-than."""
        assert score_engage(ScoreInput(response_time_min=minutes)) == expected

    def test_responded(self):
        assert score_engage(ScoreInput(responded_wa=True)) == 10


class TestCalculateScore:
    """Test full score."""

    def test_cancun_single_location(self):
        """Cancun with one location scores fit=3, total=3."""
        result = calculate_score(ScoreInput(city="Cancun", num_locations=1))

        assert result == ScoreResult(fit=3, intent=0, engage=0)
        assert result.total == 3

    def test_high_intent_cdmx_lead(self):
        """Fully engaged CDMX chain scores 35 + 30 + 30 = 95."""
        result = calculate_score(
            ScoreInput(
                city="CDMX",
                num_locations=6,
                current_pos="toast",
                delivery_pct=60,
                owner_whatsapp="+525512345678",
                owner_email="owner@example.mx",
                used_calculator=True,
                used_diagnostic=True,
                requested_demo=True,
                responded_wa=True,
                opened_messages=6,
                response_time_min=10,
            )
        )

        assert result.fit == 35
        assert result.intent == 30
        assert result.engage == 30
        assert result.total == 95

    @pytest.mark.parametrize(
        "signals",
        [
            ScoreInput(),
            ScoreInput(city="Guadalajara", delivery_pct=25, opened_messages=4),
            ScoreInput(num_locations=3, from_meta_ad=True, response_time_min=200),
            ScoreInput(current_pos="clover", responded_wa=True, used_diagnostic=True),
        ],
    )
    def test_total_is_sum_of_components(self, signals):
        """total always equals fit + intent + engage."""
        result = calculate_score(signals)
        assert result.total == result.fit + result.intent + result.engage

    def test_deterministic(self):
        """Same input, same score."""
        signals = ScoreInput(city="Monterrey", num_locations=2, opened_messages=3)
        assert calculate_score(signals) == calculate_score(signals)

    def test_to_dict(self):
        result = ScoreResult(fit=10, intent=5, engage=3)
        assert result.to_dict() == {"fit": 10, "intent": 5, "engage": 3, "total": 18}


class TestScoreInputFromReferral:
    """Test signal collection from a referral."""

    def test_reads_restaurant_and_referral_fields(self):
        """FIT comes from the restaurant, INTENT/ENGAGE from the referral."""
        referral = MagicMock()
        referral.referred_restaurant.city = "CDMX"
        referral.referred_restaurant.num_locations = 2
        referral.referred_restaurant.current_pos = None
        referral.referred_restaurant.delivery_pct = None
        referral.referred_restaurant.owner_whatsapp = None
        referral.referred_restaurant.owner_email = "x@y.mx"
        referral.used_calculator = True
        referral.used_diagnostic = False
        referral.requested_demo = False
        referral.from_meta_ad = False
        referral.responded_wa = False
        referral.opened_messages = None
        referral.response_time_min = None

        signals = ScoreInput.from_referral(referral)

        assert signals.city == "CDMX"
        assert signals.owner_email == "x@y.mx"
        assert signals.used_calculator is True
        assert signals.opened_messages == 0
        assert calculate_score(signals).total == 10 + 7 + 2 + 10
