"""
Referral pipeline: transition table and lifecycle service.
"""

from referrals.services.pipeline.lifecycle_service import (
    PipelineUpdate,
    ReferralLifecycle,
)
from referrals.services.pipeline.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    allowed_transitions,
    can_transition,
    ensure_transition,
    is_terminal,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "PipelineUpdate",
    "ReferralLifecycle",
    "TERMINAL_STATES",
    "allowed_transitions",
    "can_transition",
    "ensure_transition",
    "is_terminal",
]
