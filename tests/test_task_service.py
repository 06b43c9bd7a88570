"""Tests for the task assignment workflow."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from livestock_ops.errors import AppError
from livestock_ops.models import Notification, TaskPhoto
from livestock_ops.services.task_service import TaskService


async def notification_types(session, user):
    result = await session.execute(
        select(Notification.type).where(Notification.user_id == user.user_id)
    )
    return sorted(result.scalars().all())


@pytest.fixture
async def task(session, owner_user, farm):
    return await TaskService(session).create_task(
        owner_user, farm.farm_id, "Collect eggs", "House 2", "daily"
    )


class TestAssignTask:
    """Test handing tasks to workers."""

    async def test_assign_notifies_worker(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        assignment = await TaskService(session).assign_task(
            owner_user,
            task.task_id,
            worker_profile.worker_id,
            due_date=datetime(2024, 3, 5, 17, tzinfo=timezone.utc),
            priority="high",
        )

        assert assignment.status == "pending"
        assert assignment.assigned_by == owner_user.user_id
        notes = (
            await session.execute(
                select(Notification).where(Notification.user_id == worker_user.user_id)
            )
        ).scalars().all()
        assert [n.type for n in notes] == ["task_assigned"]
        assert notes[0].message == "You have been assigned a new high priority task due 2024-03-05"

    async def test_rejects_unknown_priority(self, session, owner_user, worker_profile, task):
        with pytest.raises(AppError, match="Invalid priority"):
            await TaskService(session).assign_task(
                owner_user, task.task_id, worker_profile.worker_id, priority="whenever"
            )

    async def test_task_from_other_farm(self, session, owner_user, worker_profile, task):
        with pytest.raises(AppError) as exc_info:
            await TaskService(session).assign_task(
                owner_user, task.task_id, worker_profile.worker_id, farm_id=task.task_id
            )
        assert exc_info.value.name == "TASK_NOT_FOUND"

    async def test_create_requires_title(self, session, owner_user, farm):
        with pytest.raises(AppError, match="Task title is required"):
            await TaskService(session).create_task(owner_user, farm.farm_id, "   ")


class TestCompleteTask:
    """Test completion by the assignee."""

    async def test_without_approval_completes(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        service = TaskService(session)
        assignment = await service.assign_task(owner_user, task.task_id, worker_profile.worker_id)

        await service.start_task(worker_user, assignment.assignment_id)
        assert assignment.status == "in_progress"

        done = await service.complete_task(worker_user, assignment.assignment_id, "All done")
        assert done.status == "completed"
        assert done.completed_at is not None
        assert done.completion_notes == "All done"
        assert await notification_types(session, owner_user) == ["task_completed"]

    async def test_only_assignee(self, session, owner_user, outsider_user, worker_profile, task):
        service = TaskService(session)
        assignment = await service.assign_task(owner_user, task.task_id, worker_profile.worker_id)

        with pytest.raises(AppError) as exc_info:
            await service.complete_task(outsider_user, assignment.assignment_id)
        assert exc_info.value.name == "NOT_TASK_ASSIGNEE"
        assert exc_info.value.http_status == 403

    async def test_photo_required(self, session, owner_user, worker_user, worker_profile, task):
        service = TaskService(session)
        assignment = await service.assign_task(
            owner_user, task.task_id, worker_profile.worker_id, requires_photo=True
        )

        with pytest.raises(AppError, match="Photo is required"):
            await service.complete_task(worker_user, assignment.assignment_id)

        await service.complete_task(
            worker_user,
            assignment.assignment_id,
            photo={"photo_url": "https://cdn.example/p/1.jpg", "captured_lat": 0.1},
        )
        photos = (await session.execute(select(TaskPhoto))).scalars().all()
        assert [p.photo_url for p in photos] == ["https://cdn.example/p/1.jpg"]

    async def test_completed_is_terminal(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        service = TaskService(session)
        assignment = await service.assign_task(owner_user, task.task_id, worker_profile.worker_id)
        await service.complete_task(worker_user, assignment.assignment_id)

        with pytest.raises(AppError, match="cannot be completed"):
            await service.complete_task(worker_user, assignment.assignment_id)


class TestApproval:
    """Test the approval loop for assignments that need sign-off."""

    async def pending(self, session, owner_user, worker_user, worker_profile, task):
        service = TaskService(session)
        assignment = await service.assign_task(
            owner_user, task.task_id, worker_profile.worker_id, requires_approval=True
        )
        await service.complete_task(worker_user, assignment.assignment_id)
        return service, assignment

    async def test_approve(self, session, owner_user, worker_user, worker_profile, task):
        service, assignment = await self.pending(
            session, owner_user, worker_user, worker_profile, task
        )
        assert assignment.status == "pending_approval"

        verified = await service.approve_task(owner_user, assignment.assignment_id, True)
        assert verified.status == "verified"
        assert verified.approved_by == owner_user.user_id
        assert await notification_types(session, worker_user) == [
            "task_approved",
            "task_assigned",
        ]

    async def test_reject_then_rework(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        service, assignment = await self.pending(
            session, owner_user, worker_user, worker_profile, task
        )

        with pytest.raises(AppError, match="Rejection reason is required"):
            await service.approve_task(owner_user, assignment.assignment_id, False)

        rejected = await service.approve_task(
            owner_user, assignment.assignment_id, False, "Trays not cleaned"
        )
        assert rejected.status == "rejected"
        assert rejected.rejection_reason == "Trays not cleaned"

        with pytest.raises(AppError, match="cannot be completed"):
            await service.complete_task(worker_user, assignment.assignment_id)

        await service.start_task(worker_user, assignment.assignment_id)
        resubmitted = await service.complete_task(worker_user, assignment.assignment_id)
        assert resubmitted.status == "pending_approval"

    async def test_worker_cannot_approve(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        service, assignment = await self.pending(
            session, owner_user, worker_user, worker_profile, task
        )
        with pytest.raises(AppError) as exc_info:
            await service.approve_task(worker_user, assignment.assignment_id, True)
        assert exc_info.value.name == "ACCESS_DENIED"

    async def test_not_pending(self, session, owner_user, worker_profile, task):
        service = TaskService(session)
        assignment = await service.assign_task(owner_user, task.task_id, worker_profile.worker_id)
        with pytest.raises(AppError, match="Task not pending approval"):
            await service.approve_task(owner_user, assignment.assignment_id, True)


class TestTaskQueries:
    """Test assignment listings and metrics."""

    async def test_metrics_and_listings(
        self, session, owner_user, worker_user, worker_profile, task
    ):
        service = TaskService(session)
        overdue = await service.assign_task(
            owner_user,
            task.task_id,
            worker_profile.worker_id,
            due_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
        )
        done = await service.assign_task(owner_user, task.task_id, worker_profile.worker_id)
        await service.complete_task(worker_user, done.assignment_id)

        metrics = await service.get_task_metrics(
            owner_user, task.farm_id, now=datetime(2024, 3, 2, tzinfo=timezone.utc)
        )
        assert metrics.total == 2
        assert metrics.completed == 1
        assert metrics.pending == 1
        assert metrics.overdue == 1
        assert metrics.completion_rate == 50.0

        mine = await service.get_assignments_by_worker(worker_user, status="pending")
        assert [a.assignment_id for a in mine] == [overdue.assignment_id]
        assert await service.get_pending_approvals(owner_user, task.farm_id) == []
