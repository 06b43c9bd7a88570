"""Task completion rules and metrics."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from livestock_ops.calculators.types import AssignmentView, TaskMetrics

MAX_TASK_PHOTOS = 3

COMPLETABLE_STATUSES = frozenset({"pending", "in_progress"})
DONE_STATUSES = frozenset({"completed", "verified"})
OPEN_STATUSES = frozenset({"pending", "in_progress"})


def validate_task_completion(
    assignment: AssignmentView,
    worker_id: UUID | str,
    has_photo: bool,
) -> list[str]:
    errors: list[str] = []
    if str(assignment.worker_id) != str(worker_id):
        errors.append("Only the assignee can complete this task")
    if assignment.status not in COMPLETABLE_STATUSES:
        errors.append(f"Status '{assignment.status}' cannot be completed")
    if assignment.requires_photo and not has_photo:
        errors.append("Photo is required to complete this task")
    return errors


def determine_completion_status(requires_approval: bool) -> str:
    return "pending_approval" if requires_approval else "completed"


def is_task_overdue(assignment: AssignmentView, now: datetime) -> bool:
    if assignment.due_date is None:
        return False
    return now > assignment.due_date


def calculate_task_metrics(assignments: Iterable[AssignmentView], now: datetime) -> TaskMetrics:
    """Counts by status plus completion rate (percent, 2 dp)."""
    items = list(assignments)
    total = len(items)
    completed = sum(1 for a in items if a.status in DONE_STATUSES)
    pending = sum(1 for a in items if a.status in OPEN_STATUSES)
    overdue = sum(
        1 for a in items if a.status not in DONE_STATUSES and is_task_overdue(a, now)
    )
    rate = round(completed / total * 100, 2) if total else 0.0
    return TaskMetrics(
        total=total,
        completed=completed,
        pending=pending,
        overdue=overdue,
        completion_rate=rate,
    )


def validate_photo_count(count: int, max_photos: int = MAX_TASK_PHOTOS) -> str | None:
    if count > max_photos:
        return f"Maximum {max_photos} photos allowed per task"
    return None
