"""Worker, attendance, task and payroll models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    Float,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from livestock_ops.models.base import Base, TimestampMixin, UpdatedAtMixin, utcnow


class WorkerProfile(Base, TimestampMixin, UpdatedAtMixin):
    """Employment details of a user working on a farm."""

    __tablename__ = "worker_profile"

    worker_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id", ondelete="CASCADE"),
        nullable=False,
    )
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    phone: Mapped[str] = mapped_column(String(20), nullable=False)
    emergency_contact_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    emergency_contact_phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    employment_status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    employment_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    employment_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    wage_rate_amount: Mapped[Decimal] = mapped_column(nullable=False)
    wage_rate_type: Mapped[str] = mapped_column(String, nullable=False)
    wage_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    structure_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    profile_photo_url: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "farm_id", name="worker_profile_user_farm_unique"),
        CheckConstraint(
            "employment_status IN ('active', 'inactive', 'terminated')",
            name="worker_profile_status_check",
        ),
        CheckConstraint(
            "wage_rate_type IN ('hourly', 'daily', 'monthly')",
            name="worker_profile_wage_type_check",
        ),
        CheckConstraint("wage_rate_amount > 0", name="worker_profile_wage_positive"),
    )


class FarmGeofence(Base, TimestampMixin, UpdatedAtMixin):
    """Check-in boundary of a farm (one per farm)."""

    __tablename__ = "farm_geofence"

    geofence_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    geofence_type: Mapped[str] = mapped_column(String, nullable=False)
    center_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    center_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    radius_meters: Mapped[float | None] = mapped_column(Float, nullable=True)
    vertices: Mapped[list[dict[str, float]] | None] = mapped_column(JSON, nullable=True)
    tolerance_meters: Mapped[float] = mapped_column(Float, nullable=False, default=100.0)

    __table_args__ = (
        CheckConstraint(
            "geofence_type IN ('circle', 'polygon')",
            name="farm_geofence_type_check",
        ),
    )


class WorkerCheckIn(Base, TimestampMixin):
    """One attendance record: a check-in and its optional check-out."""

    __tablename__ = "worker_check_in"

    check_in_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker_profile.worker_id", ondelete="CASCADE"),
        nullable=False,
    )
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    check_in_time: Mapped[datetime] = mapped_column(nullable=False)
    check_in_lat: Mapped[float] = mapped_column(Float, nullable=False)
    check_in_lng: Mapped[float] = mapped_column(Float, nullable=False)
    check_in_accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    verification_status: Mapped[str] = mapped_column(String, nullable=False, default="manual")
    check_out_time: Mapped[datetime | None] = mapped_column(nullable=True)
    check_out_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    sync_status: Mapped[str] = mapped_column(String, nullable=False, default="synced")

    __table_args__ = (
        CheckConstraint(
            "verification_status IN ('verified', 'outside_geofence', 'manual', 'pending_sync')",
            name="worker_check_in_verification_check",
        ),
        CheckConstraint(
            "sync_status IN ('synced', 'pending_sync', 'sync_failed')",
            name="worker_check_in_sync_check",
        ),
    )


class Task(Base, TimestampMixin):
    """A reusable unit of farm work."""

    __tablename__ = "task"

    task_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    frequency: Mapped[str] = mapped_column(String, nullable=False, default="once")

    __table_args__ = (
        CheckConstraint(
            "frequency IN ('daily', 'weekly', 'monthly', 'once')",
            name="task_frequency_check",
        ),
    )


class TaskAssignment(Base, TimestampMixin):
    """A task assigned to a worker."""

    __tablename__ = "task_assignment"

    assignment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("task.task_id", ondelete="CASCADE"),
        nullable=False,
    )
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker_profile.worker_id", ondelete="CASCADE"),
        nullable=False,
    )
    assigned_by: Mapped[UUID] = mapped_column(
        ForeignKey("app_user.user_id"),
        nullable=False,
    )
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    due_date: Mapped[datetime | None] = mapped_column(nullable=True)
    priority: Mapped[str] = mapped_column(String, nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    requires_photo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completion_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("app_user.user_id"),
        nullable=True,
    )
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'urgent')",
            name="task_assignment_priority_check",
        ),
        CheckConstraint(
            "status IN ('pending', 'in_progress', 'completed', 'pending_approval', "
            "'verified', 'rejected')",
            name="task_assignment_status_check",
        ),
    )


class TaskPhoto(Base, TimestampMixin):
    """Photo evidence attached to a task completion."""

    __tablename__ = "task_photo"

    photo_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    assignment_id: Mapped[UUID] = mapped_column(
        ForeignKey("task_assignment.assignment_id", ondelete="CASCADE"),
        nullable=False,
    )
    photo_url: Mapped[str] = mapped_column(String, nullable=False)
    captured_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    captured_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    captured_at: Mapped[datetime] = mapped_column(nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)


class PayrollPeriod(Base, TimestampMixin):
    """Date range over which worked hours are turned into wages."""

    __tablename__ = "payroll_period"

    payroll_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    period_type: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")

    __table_args__ = (
        CheckConstraint(
            "period_type IN ('weekly', 'bi-weekly', 'monthly')",
            name="payroll_period_type_check",
        ),
        CheckConstraint("status IN ('open', 'closed')", name="payroll_period_status_check"),
        CheckConstraint("start_date < end_date", name="payroll_period_dates_check"),
    )


class WagePayment(Base, TimestampMixin):
    """Payment made to a worker against a payroll period."""

    __tablename__ = "wage_payment"

    payment_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(
        ForeignKey("worker_profile.worker_id", ondelete="CASCADE"),
        nullable=False,
    )
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id", ondelete="CASCADE"),
        nullable=False,
    )
    farm_id: Mapped[UUID] = mapped_column(
        ForeignKey("farm.farm_id", ondelete="CASCADE"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="wage_payment_amount_positive"),
        CheckConstraint(
            "payment_method IN ('cash', 'bank_transfer', 'mobile_money')",
            name="wage_payment_method_check",
        ),
    )

