"""Task definitions, assignments and the approval workflow."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.tasks import (
    calculate_task_metrics,
    determine_completion_status,
    validate_photo_count,
    validate_task_completion,
)
from livestock_ops.calculators.types import AssignmentView, TaskMetrics
from livestock_ops.config import get_settings
from livestock_ops.errors import AppError
from livestock_ops.models import Task, TaskAssignment, TaskPhoto, User, WorkerProfile, utcnow
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.audit_service import AuditService, NotificationService
from livestock_ops.services.state_machine import (
    InvalidTransitionError,
    TaskAssignmentStateMachine,
    TaskAssignmentStatus,
)

logger = logging.getLogger(__name__)

TASK_FREQUENCIES = ("daily", "weekly", "monthly", "once")
PRIORITIES = ("low", "medium", "high", "urgent")


def to_view(assignment: TaskAssignment) -> AssignmentView:
    return AssignmentView(
        worker_id=assignment.worker_id,
        status=assignment.status,
        requires_photo=assignment.requires_photo,
        due_date=assignment.due_date,
    )


class TaskService:
    """Service for the task assignment lifecycle.

    Operations:
    - assign_task: Managers hand a task to a worker on the same farm
    - start_task: Assignee moves pending/rejected work to in_progress
    - complete_task: Assignee finishes, optionally with photo evidence
    - approve_task: Managers verify or reject work pending approval
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)
        self.notifications = NotificationService(session)

    async def create_task(
        self,
        actor: User,
        farm_id: UUID,
        title: str,
        description: str | None = None,
        frequency: str = "once",
    ) -> Task:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        if not title.strip():
            raise AppError("VALIDATION_ERROR", "Task title is required")
        if frequency not in TASK_FREQUENCIES:
            raise AppError("VALIDATION_ERROR", f"Invalid frequency: {frequency}")

        task = Task(
            farm_id=farm_id, title=title.strip(), description=description, frequency=frequency
        )
        self.session.add(task)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id, "create", "task", task.task_id, {"title": title}
        )
        return task

    async def list_tasks(self, actor: User, farm_id: UUID) -> list[Task]:
        await require_farm_access(self.session, actor, farm_id)
        result = await self.session.execute(
            select(Task).where(Task.farm_id == farm_id).order_by(Task.title)
        )
        return list(result.scalars().all())

    async def get_assignment(self, assignment_id: UUID) -> TaskAssignment:
        assignment = await self.session.get(TaskAssignment, assignment_id)
        if assignment is None:
            raise AppError(
                "TASK_ASSIGNMENT_NOT_FOUND",
                metadata={"assignment_id": str(assignment_id)},
            )
        return assignment

    async def assign_task(
        self,
        actor: User,
        task_id: UUID,
        worker_id: UUID,
        due_date: datetime | None = None,
        priority: str = "medium",
        requires_photo: bool = False,
        requires_approval: bool = False,
        notes: str | None = None,
        farm_id: UUID | None = None,
    ) -> TaskAssignment:
        task = await self.session.get(Task, task_id)
        if task is None or (farm_id is not None and task.farm_id != farm_id):
            raise AppError("TASK_NOT_FOUND", metadata={"task_id": str(task_id)})
        await require_farm_access(self.session, actor, task.farm_id, MANAGE_ROLES)

        worker = await self.session.get(WorkerProfile, worker_id)
        if worker is None or worker.farm_id != task.farm_id:
            raise AppError("WORKER_PROFILE_NOT_FOUND", metadata={"worker_id": str(worker_id)})
        if priority not in PRIORITIES:
            raise AppError("VALIDATION_ERROR", f"Invalid priority: {priority}")

        assignment = TaskAssignment(
            task_id=task_id,
            worker_id=worker_id,
            assigned_by=actor.user_id,
            farm_id=task.farm_id,
            due_date=due_date,
            priority=priority,
            status=TaskAssignmentStatus.PENDING.value,
            requires_photo=requires_photo,
            requires_approval=requires_approval,
            notes=notes,
        )
        self.session.add(assignment)
        await self.session.flush()

        await self.audit.record_audit(
            actor.user_id,
            "assign_task",
            "task_assignment",
            assignment.assignment_id,
            {"task_id": task_id, "worker_id": worker_id, "priority": priority},
        )
        due = f" due {due_date.date().isoformat()}" if due_date else ""
        await self.notifications.notify(
            worker.user_id,
            type="task_assigned",
            title="New Task Assigned",
            message=f"You have been assigned a new {priority} priority task{due}",
            farm_id=task.farm_id,
            action_url="/worker",
            metadata={"assignment_id": assignment.assignment_id},
        )
        return assignment

    async def _require_assignee(self, user: User, assignment: TaskAssignment) -> WorkerProfile:
        profile = await self.session.get(WorkerProfile, assignment.worker_id)
        if profile is None or profile.user_id != user.user_id:
            raise AppError("NOT_TASK_ASSIGNEE")
        return profile

    def _transition(self, assignment: TaskAssignment, to_status: str, reason: str | None = None):
        errors = TaskAssignmentStateMachine.validate_assignment_for_transition(
            assignment, to_status, reason
        )
        if errors:
            exc = InvalidTransitionError(assignment.status, to_status, "; ".join(errors))
            raise AppError(
                "VALIDATION_ERROR",
                str(exc),
                metadata={"from_status": assignment.status, "to_status": to_status},
            ) from exc
        assignment.status = to_status

    async def start_task(self, user: User, assignment_id: UUID) -> TaskAssignment:
        assignment = await self.get_assignment(assignment_id)
        await self._require_assignee(user, assignment)
        self._transition(assignment, TaskAssignmentStatus.IN_PROGRESS.value)
        await self.session.flush()
        return assignment

    async def complete_task(
        self,
        user: User,
        assignment_id: UUID,
        completion_notes: str | None = None,
        photo: dict[str, Any] | None = None,
    ) -> TaskAssignment:
        assignment = await self.get_assignment(assignment_id)
        profile = await self._require_assignee(user, assignment)

        errors = validate_task_completion(
            to_view(assignment), profile.worker_id, photo is not None
        )
        if errors:
            raise AppError("VALIDATION_ERROR", "; ".join(errors), metadata={"errors": errors})

        if photo is not None:
            existing = await self.session.scalar(
                select(func.count())
                .select_from(TaskPhoto)
                .where(TaskPhoto.assignment_id == assignment_id)
            )
            error = validate_photo_count((existing or 0) + 1, get_settings().max_task_photos)
            if error:
                raise AppError("VALIDATION_ERROR", error)
            self.session.add(
                TaskPhoto(
                    assignment_id=assignment_id,
                    photo_url=photo["photo_url"],
                    captured_lat=photo.get("captured_lat"),
                    captured_lng=photo.get("captured_lng"),
                    captured_at=photo.get("captured_at") or utcnow(),
                )
            )

        new_status = determine_completion_status(assignment.requires_approval)
        self._transition(assignment, new_status)
        assignment.completed_at = utcnow()
        assignment.completion_notes = completion_notes
        await self.session.flush()

        pending = new_status == TaskAssignmentStatus.PENDING_APPROVAL.value
        await self.notifications.notify(
            assignment.assigned_by,
            type="task_completed",
            title="Task Pending Approval" if pending else "Task Completed",
            message=(
                f"{user.name} has completed a task"
                + (" and it requires your approval" if pending else "")
            ),
            farm_id=assignment.farm_id,
            action_url=(
                "/task-assignments?status=pending_approval" if pending else "/task-assignments"
            ),
        )
        return assignment

    async def approve_task(
        self,
        actor: User,
        assignment_id: UUID,
        approved: bool,
        rejection_reason: str | None = None,
    ) -> TaskAssignment:
        assignment = await self.get_assignment(assignment_id)
        await require_farm_access(self.session, actor, assignment.farm_id, MANAGE_ROLES)
        if assignment.status != TaskAssignmentStatus.PENDING_APPROVAL.value:
            raise AppError("VALIDATION_ERROR", "Task not pending approval")

        to_status = TaskAssignmentStatus.VERIFIED if approved else TaskAssignmentStatus.REJECTED
        to_status = to_status.value
        self._transition(assignment, to_status, rejection_reason)
        assignment.approved_by = actor.user_id
        assignment.approved_at = utcnow()
        assignment.rejection_reason = None if approved else rejection_reason
        logger.info("Assignment %s %s by %s", assignment_id, to_status, actor.user_id)

        await self.audit.record_audit(
            actor.user_id,
            "approve_task" if approved else "reject_task",
            "task_assignment",
            assignment_id,
            {"approved": approved, "rejection_reason": rejection_reason},
        )

        worker = await self.session.get(WorkerProfile, assignment.worker_id)
        if worker is not None:
            await self.notifications.notify(
                worker.user_id,
                type="task_approved" if approved else "task_rejected",
                title="Task Approved" if approved else "Task Rejected",
                message=(
                    "Your completed task has been approved"
                    if approved
                    else f"Your task was rejected: {rejection_reason}"
                ),
                farm_id=assignment.farm_id,
                action_url="/worker",
            )
        await self.session.flush()
        return assignment

    async def get_assignments_by_worker(
        self,
        user: User,
        farm_id: UUID | None = None,
        status: str | None = None,
    ) -> list[TaskAssignment]:
        """Assignments of the caller's worker profiles."""
        query = (
            select(TaskAssignment)
            .join(WorkerProfile, WorkerProfile.worker_id == TaskAssignment.worker_id)
            .where(WorkerProfile.user_id == user.user_id)
        )
        if farm_id is not None:
            query = query.where(TaskAssignment.farm_id == farm_id)
        if status:
            query = query.where(TaskAssignment.status == status)
        result = await self.session.execute(query.order_by(TaskAssignment.created_at.desc()))
        return list(result.scalars().all())

    async def get_assignments_by_farm(
        self,
        actor: User,
        farm_id: UUID,
        status: str | None = None,
    ) -> list[TaskAssignment]:
        await require_farm_access(self.session, actor, farm_id)
        query = select(TaskAssignment).where(TaskAssignment.farm_id == farm_id)
        if status:
            query = query.where(TaskAssignment.status == status)
        result = await self.session.execute(query.order_by(TaskAssignment.created_at.desc()))
        return list(result.scalars().all())

    async def get_pending_approvals(self, actor: User, farm_id: UUID) -> list[TaskAssignment]:
        return await self.get_assignments_by_farm(
            actor, farm_id, TaskAssignmentStatus.PENDING_APPROVAL.value
        )

    async def get_task_metrics(
        self,
        actor: User,
        farm_id: UUID,
        worker_id: UUID | None = None,
        now: datetime | None = None,
    ) -> TaskMetrics:
        assignments = await self.get_assignments_by_farm(actor, farm_id)
        if worker_id is not None:
            assignments = [a for a in assignments if a.worker_id == worker_id]
        return calculate_task_metrics([to_view(a) for a in assignments], now or utcnow())
