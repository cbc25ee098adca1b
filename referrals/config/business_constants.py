"""
Business constants for the referral program.

Single source of truth for lead-scoring bands, code issuance and the
reward emission queue. Values that operators tune per deployment live in
settings.py instead.
"""

# ============================================================================
# LEAD SCORING
# ============================================================================

# Cities that count as tier-1 markets (compared lower-cased and trimmed)
TIER1_CITIES: frozenset[str] = frozenset({
    "cdmx",
    "monterrey",
    "guadalajara",
    "ciudad de mexico",
    "ciudad de méxico",
})

# Point-of-sale systems we integrate with
KNOWN_POS_SYSTEMS: frozenset[str] = frozenset({
    "poster",
    "softrestaurant",
    "square",
    "toast",
    "aloha",
    "revel",
    "lightspeed",
    "clover",
    "micros",
})

# FIT points
FIT_TIER1_CITY_POINTS = 10
FIT_KNOWN_POS_POINTS = 5
FIT_WHATSAPP_POINTS = 3
FIT_EMAIL_POINTS = 2

# (minimum locations, points), highest band first
FIT_LOCATION_BANDS: tuple[tuple[int, int], ...] = (
    (6, 10),
    (2, 7),
    (1, 3),
)

# (delivery share strictly above, points), highest band first
FIT_DELIVERY_BANDS: tuple[tuple[int, int], ...] = (
    (50, 5),
    (20, 3),
)

# INTENT points
INTENT_CALCULATOR_POINTS = 10
INTENT_DIAGNOSTIC_POINTS = 10
INTENT_DEMO_REQUEST_POINTS = 10
INTENT_PAID_AD_POINTS = 5

# ENGAGE points
ENGAGE_RESPONDED_POINTS = 10

# (minimum opened messages, points), highest band first
ENGAGE_OPENED_BANDS: tuple[tuple[int, int], ...] = (
    (6, 10),
    (3, 7),
    (1, 3),
)

# (response latency strictly below, in minutes, points), fastest band first
ENGAGE_RESPONSE_TIME_BANDS: tuple[tuple[int, int], ...] = (
    (30, 10),
    (120, 5),
    (480, 2),
)

# A PENDING referral scoring at or above this is qualified automatically
AUTO_QUALIFY_THRESHOLD = 60

# ============================================================================
# REFERRAL CODES
# ============================================================================

# No I, O, 0 or 1: they are easy to misread when codes are shared verbally
REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_CODE_GENERATION_ATTEMPTS = 10

# ============================================================================
# REWARD EMISSION QUEUE
# ============================================================================

REWARD_QUEUE_NAME = "reward-emission"
REWARD_JOB_KEY_PREFIX = "reward-"
REWARD_JOB_KEY_NAMESPACE = "referrals:jobkey"
