"""Employee run state machine with transition validation."""

from __future__ import annotations

from enum import Enum


class RunStatus(str, Enum):
    """Status of one employee's run within a period."""

    PENDING = "PENDING"
    EVALUATING = "EVALUATING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    NOT_PROCESSED = "NOT_PROCESSED"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class RunStateMachine:
    """State machine for an employee-period run.

    Allowed transitions:
    - PENDING → EVALUATING
    - PENDING → NOT_PROCESSED (batch cancelled or deadline reached)
    - EVALUATING → COMPLETE
    - EVALUATING → FAILED

    A run is never stopped mid-evaluation: there is no EVALUATING →
    NOT_PROCESSED edge.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RunStatus.PENDING: [RunStatus.EVALUATING, RunStatus.NOT_PROCESSED],
        RunStatus.EVALUATING: [RunStatus.COMPLETE, RunStatus.FAILED],
        RunStatus.COMPLETE: [],
        RunStatus.FAILED: [],
        RunStatus.NOT_PROCESSED: [],
    }

    TERMINAL = {
        RunStatus.COMPLETE,
        RunStatus.FAILED,
        RunStatus.NOT_PROCESSED,
    }

    def __init__(self, status: RunStatus = RunStatus.PENDING):
        self.status = status
        self.history: list[RunStatus] = [status]

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return status in cls.TERMINAL

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    def transition(self, to_status: RunStatus) -> None:
        """Move this run to a new status."""
        self.validate_transition(self.status, to_status)
        self.status = to_status
        self.history.append(to_status)
