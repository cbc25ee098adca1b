"""
Lead scoring.
"""

from referrals.services.scoring.score_calculator import (
    ScoreInput,
    ScoreResult,
    calculate_score,
)
from referrals.services.scoring.scoring_service import ScoringService

__all__ = [
    "ScoreInput",
    "ScoreResult",
    "ScoringService",
    "calculate_score",
]
