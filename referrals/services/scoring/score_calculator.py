"""
Lead score calculator.

Pure, deterministic mapping from intake signals to a FIT / INTENT / ENGAGE
score. No I/O; safe to call anywhere.
"""

from dataclasses import dataclass

from referrals.config.business_constants import (
    ENGAGE_OPENED_BANDS,
    ENGAGE_RESPONDED_POINTS,
    ENGAGE_RESPONSE_TIME_BANDS,
    FIT_DELIVERY_BANDS,
    FIT_EMAIL_POINTS,
    FIT_KNOWN_POS_POINTS,
    FIT_LOCATION_BANDS,
    FIT_TIER1_CITY_POINTS,
    FIT_WHATSAPP_POINTS,
    INTENT_CALCULATOR_POINTS,
    INTENT_DEMO_REQUEST_POINTS,
    INTENT_DIAGNOSTIC_POINTS,
    INTENT_PAID_AD_POINTS,
    KNOWN_POS_SYSTEMS,
    TIER1_CITIES,
)
from referrals.models.referral import Referral


@dataclass(frozen=True)
class ScoreInput:
    """Signals the score is computed from."""

    # FIT
    city: str | None = None
    num_locations: int | None = None
    current_pos: str | None = None
    delivery_pct: int | None = None
    owner_whatsapp: str | None = None
    owner_email: str | None = None

    # INTENT
    used_calculator: bool = False
    used_diagnostic: bool = False
    requested_demo: bool = False
    from_meta_ad: bool = False

    # ENGAGE
    responded_wa: bool = False
    opened_messages: int = 0
    response_time_min: int | None = None

    @classmethod
    def from_referral(cls, referral: Referral) -> "ScoreInput":
        """
        Collect signals from a referral and its restaurant.

        The restaurant relationship must already be loaded.
        """
        restaurant = referral.referred_restaurant
        return cls(
            city=restaurant.city,
            num_locations=restaurant.num_locations,
            current_pos=restaurant.current_pos,
            delivery_pct=restaurant.delivery_pct,
            owner_whatsapp=restaurant.owner_whatsapp,
            owner_email=restaurant.owner_email,
            used_calculator=referral.used_calculator,
            used_diagnostic=referral.used_diagnostic,
            requested_demo=referral.requested_demo,
            from_meta_ad=referral.from_meta_ad,
            responded_wa=referral.responded_wa,
            opened_messages=referral.opened_messages or 0,
            response_time_min=referral.response_time_min,
        )


@dataclass(frozen=True)
class ScoreResult:
    """Score components. total is always fit + intent + engage."""

    fit: int
    intent: int
    engage: int

    @property
    def total(self) -> int:
        return self.fit + self.intent + self.engage

    def to_dict(self) -> dict[str, int]:
        return {
            "fit": self.fit,
            "intent": self.intent,
            "engage": self.engage,
            "total": self.total,
        }


def _at_least_band(value: int | None, bands: tuple[tuple[int, int], ...]) -> int:
    """Points of the highest band whose minimum the value reaches."""
    if value is None:
        return 0
    for minimum, points in bands:
        if value >= minimum:
            return points
    return 0


def _above_band(value: int | None, bands: tuple[tuple[int, int], ...]) -> int:
    """Points of the highest band whose floor the value exceeds."""
    if value is None:
        return 0
    for floor, points in bands:
        if value > floor:
            return points
    return 0


def _below_band(value: int | None, bands: tuple[tuple[int, int], ...]) -> int:
    """Points of the tightest band whose ceiling the value is under."""
    if value is None:
        return 0
    for ceiling, points in bands:
        if value < ceiling:
            return points
    return 0


def _normalized(text: str | None) -> str:
    return (text or "").strip().lower()


def score_fit(signals: ScoreInput) -> int:
    """FIT: how closely the restaurant matches the target profile."""
    fit = 0
    if _normalized(signals.city) in TIER1_CITIES:
        fit += FIT_TIER1_CITY_POINTS
    fit += _at_least_band(signals.num_locations, FIT_LOCATION_BANDS)
    if _normalized(signals.current_pos) in KNOWN_POS_SYSTEMS:
        fit += FIT_KNOWN_POS_POINTS
    fit += _above_band(signals.delivery_pct, FIT_DELIVERY_BANDS)
    if signals.owner_whatsapp:
        fit += FIT_WHATSAPP_POINTS
    if signals.owner_email:
        fit += FIT_EMAIL_POINTS
    return fit


def score_intent(signals: ScoreInput) -> int:
    """INTENT: demonstrated purchase intent."""
    intent = 0
    if signals.used_calculator:
        intent += INTENT_CALCULATOR_POINTS
    if signals.used_diagnostic:
        intent += INTENT_DIAGNOSTIC_POINTS
    if signals.requested_demo:
        intent += INTENT_DEMO_REQUEST_POINTS
    if signals.from_meta_ad:
        intent += INTENT_PAID_AD_POINTS
    return intent


def score_engage(signals: ScoreInput) -> int:
    """ENGAGE: observed engagement with outreach."""
    engage = 0
    if signals.responded_wa:
        engage += ENGAGE_RESPONDED_POINTS
    engage += _at_least_band(signals.opened_messages, ENGAGE_OPENED_BANDS)
    engage += _below_band(signals.response_time_min, ENGAGE_RESPONSE_TIME_BANDS)
    return engage


def calculate_score(signals: ScoreInput) -> ScoreResult:
    """
    Score a lead.

    Each banded signal contributes only its single highest applicable
    band (5 locations -> 7 points, not 3 + 7).

    Args:
        signals: Intake signals

    Returns:
        ScoreResult with fit, intent, engage and total
    """
    return ScoreResult(
        fit=score_fit(signals),
        intent=score_intent(signals),
        engage=score_engage(signals),
    )
