"""Tests for pay period state machine."""

import pytest

from pool_payroll.errors import StateConflictError
from pool_payroll.services.state_machine import (
    InvalidTransitionError,
    PayPeriodStateMachine,
    PayPeriodStatus,
)


class TestPayPeriodStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # open → locked
        assert PayPeriodStateMachine.can_transition("open", "locked") is True

        # locked → processed
        assert PayPeriodStateMachine.can_transition("locked", "processed") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip locking
        assert PayPeriodStateMachine.can_transition("open", "processed") is False

        # No way back
        assert PayPeriodStateMachine.can_transition("locked", "open") is False
        assert PayPeriodStateMachine.can_transition("processed", "locked") is False
        assert PayPeriodStateMachine.can_transition("processed", "open") is False

        # Unknown statuses go nowhere
        assert PayPeriodStateMachine.can_transition("draft", "open") is False

    def test_validate_transition_raises(self):
        """Processing an open period names the missing lock."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayPeriodStateMachine.validate_transition("open", "processed")

        assert exc_info.value.from_status == "open"
        assert exc_info.value.to_status == "processed"
        assert "locked before processing" in str(exc_info.value)

    def test_invalid_transition_is_state_conflict(self):
        """Transition errors surface as state conflicts."""
        with pytest.raises(StateConflictError):
            PayPeriodStateMachine.validate_transition("processed", "locked")

    def test_processed_is_terminal(self):
        assert PayPeriodStateMachine.get_next_statuses("processed") == []
        assert PayPeriodStateMachine.get_next_statuses("open") == [PayPeriodStatus.LOCKED]


class TestTimeEntryGates:
    """Which statuses freeze time entries."""

    def test_locked_blocks_edit_and_delete(self):
        assert PayPeriodStateMachine.blocks_edit("locked") is True
        assert PayPeriodStateMachine.blocks_delete("locked") is True

    def test_processed_blocks_delete_only(self):
        assert PayPeriodStateMachine.blocks_edit("processed") is False
        assert PayPeriodStateMachine.blocks_delete("processed") is True

    def test_open_blocks_nothing(self):
        assert PayPeriodStateMachine.blocks_edit("open") is False
        assert PayPeriodStateMachine.blocks_delete("open") is False
