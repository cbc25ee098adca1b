"""
Unit tests for the pipeline transition table.
"""

import pytest

from referrals.models.enums import PipelineStatus
from referrals.services.pipeline.state_machine import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    allowed_transitions,
    can_transition,
    ensure_transition,
    is_terminal,
)
from referrals.utils.exceptions import ValidationError


class TestTransitionTable:
    """Test the table itself."""

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(PipelineStatus)

    def test_terminal_states(self):
        """WON and DEAD have no outgoing transitions."""
        assert TERMINAL_STATES == {PipelineStatus.WON, PipelineStatus.DEAD}
        assert is_terminal("WON")
        assert not is_terminal(PipelineStatus.LOST)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("PENDING", "QUALIFIED"),
            ("PENDING", "DEAD"),
            ("QUALIFIED", "DEMO_SCHEDULED"),
            ("QUALIFIED", "NURTURE"),
            ("DEMO_SCHEDULED", "MEETING_HELD"),
            ("DEMO_SCHEDULED", "NO_SHOW"),
            ("MEETING_HELD", "WON"),
            ("MEETING_HELD", "LOST"),
            ("LOST", "NURTURE"),
            ("NO_SHOW", "DEMO_SCHEDULED"),
            ("NURTURE", "DEMO_SCHEDULED"),
            ("NURTURE", "DEAD"),
        ],
    )
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("PENDING", "WON"),
            ("PENDING", "DEMO_SCHEDULED"),
            ("QUALIFIED", "PENDING"),
            ("LOST", "DEAD"),
            ("LOST", "WON"),
            ("NURTURE", "QUALIFIED"),
            ("PENDING", "PENDING"),
        ],
    )
    def test_rejected(self, current, target):
        assert not can_transition(current, target)

    def test_allowed_transitions_lookup(self):
        assert allowed_transitions("LOST") == {PipelineStatus.NURTURE}


class TestEnsureTransition:
    """Test the guard."""

    def test_legal_transition_passes(self):
        ensure_transition(PipelineStatus.PENDING, PipelineStatus.QUALIFIED)

    def test_pending_to_won_names_allowed_set(self):
        """Rejection lists the allowed targets."""
        with pytest.raises(ValidationError) as exc_info:
            ensure_transition("PENDING", "WON")

        assert "DEAD, QUALIFIED" in exc_info.value.message
        assert exc_info.value.details["allowed"] == ["DEAD", "QUALIFIED"]

    @pytest.mark.parametrize("target", list(PipelineStatus))
    def test_dead_is_terminal(self, target):
        """Nothing leaves DEAD."""
        with pytest.raises(ValidationError, match="terminal"):
            ensure_transition(PipelineStatus.DEAD, target)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            ensure_transition("PENDING", "ARCHIVED")
