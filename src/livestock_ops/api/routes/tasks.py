"""Task, assignment and approval endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ApprovalRequest,
    AssignmentCreate,
    AssignmentResponse,
    CompleteRequest,
    ErrorResponse,
    TaskCreate,
    TaskMetricsResponse,
    TaskResponse,
)
from livestock_ops.services.task_service import TaskService

router = APIRouter(tags=["tasks"])


# ============================================================================
# Farm-scoped tasks and assignments
# ============================================================================


@router.get("/farms/{farm_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[TaskResponse]:
    tasks = await TaskService(db).list_tasks(user, farm_id)
    return [TaskResponse.model_validate(t) for t in tasks]


@router.post(
    "/farms/{farm_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def create_task(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: TaskCreate,
) -> TaskResponse:
    task = await TaskService(db).create_task(
        user, farm_id, payload.title, payload.description, payload.frequency
    )
    return TaskResponse.model_validate(task)


@router.get("/farms/{farm_id}/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[AssignmentResponse]:
    assignments = await TaskService(db).get_assignments_by_farm(user, farm_id, status_filter)
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/farms/{farm_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def assign_task(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: AssignmentCreate,
) -> AssignmentResponse:
    """Assign a farm task to one of the farm's workers."""
    assignment = await TaskService(db).assign_task(
        user,
        payload.task_id,
        payload.worker_id,
        due_date=payload.due_date,
        priority=payload.priority,
        requires_photo=payload.requires_photo,
        requires_approval=payload.requires_approval,
        notes=payload.notes,
        farm_id=farm_id,
    )
    return AssignmentResponse.model_validate(assignment)


@router.get("/farms/{farm_id}/approvals", response_model=list[AssignmentResponse])
async def pending_approvals(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[AssignmentResponse]:
    """Completed work waiting for a manager's decision."""
    assignments = await TaskService(db).get_pending_approvals(user, farm_id)
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.get("/farms/{farm_id}/task-metrics", response_model=TaskMetricsResponse)
async def task_metrics(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    worker_id: UUID | None = None,
) -> TaskMetricsResponse:
    metrics = await TaskService(db).get_task_metrics(user, farm_id, worker_id)
    return TaskMetricsResponse.model_validate(metrics, from_attributes=True)


# ============================================================================
# Assignment lifecycle
# ============================================================================


@router.get("/assignments/mine", response_model=list[AssignmentResponse])
async def my_assignments(
    db: DbSession,
    user: CurrentUser,
    farm_id: UUID | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> list[AssignmentResponse]:
    """Assignments of the calling worker."""
    assignments = await TaskService(db).get_assignments_by_worker(user, farm_id, status_filter)
    return [AssignmentResponse.model_validate(a) for a in assignments]


@router.post(
    "/assignments/{assignment_id}/start",
    response_model=AssignmentResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def start_assignment(
    db: DbSession,
    user: CurrentUser,
    assignment_id: Annotated[UUID, Path()],
) -> AssignmentResponse:
    assignment = await TaskService(db).start_task(user, assignment_id)
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/assignments/{assignment_id}/complete",
    response_model=AssignmentResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def complete_assignment(
    db: DbSession,
    user: CurrentUser,
    assignment_id: Annotated[UUID, Path()],
    payload: CompleteRequest,
) -> AssignmentResponse:
    """Complete an assignment, attaching a photo when one is required."""
    assignment = await TaskService(db).complete_task(
        user,
        assignment_id,
        completion_notes=payload.completion_notes,
        photo=payload.photo.model_dump() if payload.photo else None,
    )
    return AssignmentResponse.model_validate(assignment)


@router.post(
    "/assignments/{assignment_id}/approve",
    response_model=AssignmentResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def approve_assignment(
    db: DbSession,
    user: CurrentUser,
    assignment_id: Annotated[UUID, Path()],
    payload: ApprovalRequest,
) -> AssignmentResponse:
    """Verify or reject work pending approval; rejection needs a reason."""
    assignment = await TaskService(db).approve_task(
        user, assignment_id, payload.approved, payload.rejection_reason
    )
    return AssignmentResponse.model_validate(assignment)
