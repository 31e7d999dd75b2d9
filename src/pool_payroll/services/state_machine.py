"""Pay period state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from pool_payroll.errors import StateConflictError


class PayPeriodStatus(str, Enum):
    """Pay period status values."""

    OPEN = "open"
    LOCKED = "locked"
    PROCESSED = "processed"


class InvalidTransitionError(StateConflictError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = getattr(from_status, "value", from_status)
        self.to_status = getattr(to_status, "value", to_status)
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg, {"from_status": self.from_status, "to_status": self.to_status}
        )


class PayPeriodStateMachine:
    """State machine for pay period status transitions.

    Allowed transitions:
    - open → locked
    - locked → processed

    There is no way back; processed is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PayPeriodStatus.OPEN: [PayPeriodStatus.LOCKED],
        PayPeriodStatus.LOCKED: [PayPeriodStatus.PROCESSED],
        PayPeriodStatus.PROCESSED: [],  # Terminal state
    }

    # Statuses in which time entries inside the period cannot be edited
    EDIT_BLOCKED = {PayPeriodStatus.LOCKED}

    # Statuses in which time entries inside the period cannot be deleted
    DELETE_BLOCKED = {PayPeriodStatus.LOCKED, PayPeriodStatus.PROCESSED}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = None
            if to_status == PayPeriodStatus.PROCESSED:
                reason = "pay period must be locked before processing"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def blocks_edit(cls, status: str) -> bool:
        """Check if entries inside a period with this status are frozen for edit."""
        return status in cls.EDIT_BLOCKED

    @classmethod
    def blocks_delete(cls, status: str) -> bool:
        """Check if entries inside a period with this status are frozen for delete."""
        return status in cls.DELETE_BLOCKED

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])
