"""Task assignment state machine with transition validation."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from livestock_ops.models import TaskAssignment


class TaskAssignmentStatus(str, Enum):
    """Task assignment status values."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PENDING_APPROVAL = "pending_approval"
    VERIFIED = "verified"
    REJECTED = "rejected"


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


class TaskAssignmentStateMachine:
    """State machine for task assignment status transitions.

    Allowed transitions:
    - pending → in_progress, completed, pending_approval
    - in_progress → completed, pending_approval
    - pending_approval → verified, rejected
    - rejected → in_progress (rework)
    - completed, verified: terminal
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        TaskAssignmentStatus.PENDING: [
            TaskAssignmentStatus.IN_PROGRESS,
            TaskAssignmentStatus.COMPLETED,
            TaskAssignmentStatus.PENDING_APPROVAL,
        ],
        TaskAssignmentStatus.IN_PROGRESS: [
            TaskAssignmentStatus.COMPLETED,
            TaskAssignmentStatus.PENDING_APPROVAL,
        ],
        TaskAssignmentStatus.PENDING_APPROVAL: [
            TaskAssignmentStatus.VERIFIED,
            TaskAssignmentStatus.REJECTED,
        ],
        TaskAssignmentStatus.REJECTED: [TaskAssignmentStatus.IN_PROGRESS],
        TaskAssignmentStatus.COMPLETED: [],
        TaskAssignmentStatus.VERIFIED: [],
    }

    TERMINAL = {TaskAssignmentStatus.COMPLETED, TaskAssignmentStatus.VERIFIED}

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

    @classmethod
    def validate_assignment_for_transition(
        cls,
        assignment: TaskAssignment,
        to_status: str,
        rejection_reason: str | None = None,
    ) -> list[str]:
        """Validate an assignment for a specific transition.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = assignment.status

        if not cls.can_transition(from_status, to_status):
            errors.append(f"Cannot transition from '{from_status}' to '{to_status}'")
            return errors

        if to_status == TaskAssignmentStatus.REJECTED and not (rejection_reason or "").strip():
            errors.append("Rejection reason is required")

        if to_status == TaskAssignmentStatus.COMPLETED and assignment.requires_approval:
            errors.append("Assignment requires approval")

        return errors
