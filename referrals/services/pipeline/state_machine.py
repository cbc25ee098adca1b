"""
Pipeline state machine.

Defines the legal pipeline transitions. Every status write goes through
ensure_transition first.
"""

from referrals.models.enums import PipelineStatus
from referrals.utils.exceptions import ValidationError


ALLOWED_TRANSITIONS: dict[PipelineStatus, frozenset[PipelineStatus]] = {
    PipelineStatus.PENDING: frozenset({
        PipelineStatus.QUALIFIED,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.QUALIFIED: frozenset({
        PipelineStatus.DEMO_SCHEDULED,
        PipelineStatus.NURTURE,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.DEMO_SCHEDULED: frozenset({
        PipelineStatus.MEETING_HELD,
        PipelineStatus.NO_SHOW,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.MEETING_HELD: frozenset({
        PipelineStatus.WON,
        PipelineStatus.LOST,
        PipelineStatus.NURTURE,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.LOST: frozenset({
        PipelineStatus.NURTURE,
    }),
    PipelineStatus.NO_SHOW: frozenset({
        PipelineStatus.DEMO_SCHEDULED,
        PipelineStatus.NURTURE,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.NURTURE: frozenset({
        PipelineStatus.DEMO_SCHEDULED,
        PipelineStatus.DEAD,
    }),
    PipelineStatus.WON: frozenset(),
    PipelineStatus.DEAD: frozenset(),
}

TERMINAL_STATES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def allowed_transitions(current: PipelineStatus | str) -> frozenset[PipelineStatus]:
    """Get the statuses reachable in one step from current."""
    return ALLOWED_TRANSITIONS[PipelineStatus(current)]


def can_transition(
    current: PipelineStatus | str, target: PipelineStatus | str
) -> bool:
    """Check whether current -> target is a legal transition."""
    return PipelineStatus(target) in allowed_transitions(current)


def is_terminal(status: PipelineStatus | str) -> bool:
    """Check whether nothing can follow status."""
    return PipelineStatus(status) in TERMINAL_STATES


def ensure_transition(
    current: PipelineStatus | str, target: PipelineStatus | str
) -> None:
    """
    Reject an illegal transition.

    Args:
        current: Status the referral is in
        target: Requested status

    Raises:
        ValidationError: Names the allowed set, or the terminal state
    """
    current = PipelineStatus(current)
    target = PipelineStatus(target)

    if can_transition(current, target):
        return

    if is_terminal(current):
        raise ValidationError(
            f"Cannot transition from {current.value}: it is a terminal state",
            {"from": current.value, "to": target.value, "allowed": []},
        )

    allowed = sorted(status.value for status in allowed_transitions(current))
    raise ValidationError(
        f"Cannot transition from {current.value} to {target.value}. "
        f"Allowed: {', '.join(allowed)}",
        {"from": current.value, "to": target.value, "allowed": allowed},
    )
