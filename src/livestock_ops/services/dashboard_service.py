"""Farm dashboard aggregates."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.health import calculate_mortality_rate
from livestock_ops.calculators.settings_rules import should_trigger_mortality_alert
from livestock_ops.models import (
    LIVESTOCK_TYPES,
    Batch,
    EggRecord,
    Expense,
    FeedInventory,
    Sale,
    TaskAssignment,
    User,
    WorkerCheckIn,
    WorkerProfile,
    utcnow,
)
from livestock_ops.services.access import get_user_farm_ids, require_farm_access
from livestock_ops.services.attendance_service import day_bounds
from livestock_ops.services.settings_service import SettingsService
from livestock_ops.services.state_machine import TaskAssignmentStatus

ZERO = Decimal("0.00")


@dataclass
class Alert:
    alert_type: str
    severity: str
    message: str
    farm_id: UUID
    batch_id: UUID | None = None
    inventory_id: UUID | None = None


@dataclass
class DashboardSummary:
    farm_ids: list[UUID]
    inventory: dict[str, int] = field(default_factory=dict)
    active_batches: int = 0
    monthly_revenue: Decimal = ZERO
    monthly_expenses: Decimal = ZERO
    revenue_change: float = 0.0
    expenses_change: float = 0.0
    eggs_this_month: int = 0
    laying_percentage: float = 0.0
    alerts: list[Alert] = field(default_factory=list)
    active_workers: int = 0
    checked_in_today: int = 0
    pending_approvals: int = 0
    recent_transactions: list[dict[str, Any]] = field(default_factory=list)

    @property
    def monthly_profit(self) -> Decimal:
        return self.monthly_revenue - self.monthly_expenses


def month_bounds(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Change against the previous value, 1 dp; 0 when it was 0."""
    if previous <= 0:
        return 0.0
    return round(float((current - previous) / previous * 100), 1)


class DashboardService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _sum(self, column, farm_column, farm_ids, date_column, start, end) -> Decimal:
        total = await self.session.scalar(
            select(func.coalesce(func.sum(column), 0)).where(
                farm_column.in_(farm_ids), date_column >= start, date_column <= end
            )
        )
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    async def get_dashboard_summary(
        self,
        user: User,
        farm_id: UUID | None = None,
        today: date | None = None,
    ) -> DashboardSummary:
        if farm_id is not None:
            await require_farm_access(self.session, user, farm_id)
            farm_ids = [farm_id]
        else:
            farm_ids = await get_user_farm_ids(self.session, user)

        summary = DashboardSummary(farm_ids=farm_ids, inventory=dict.fromkeys(LIVESTOCK_TYPES, 0))
        if not farm_ids:
            return summary

        today = today or utcnow().date()
        month_start, month_end = month_bounds(today)
        prev_start, prev_end = month_bounds(month_start - timedelta(days=1))

        batches = (
            await self.session.execute(
                select(Batch).where(Batch.farm_id.in_(farm_ids), Batch.status == "active")
            )
        ).scalars().all()
        for batch in batches:
            summary.inventory[batch.livestock_type] += batch.current_quantity
        summary.active_batches = len(batches)

        summary.monthly_revenue = await self._sum(
            Sale.total_amount, Sale.farm_id, farm_ids, Sale.date, month_start, month_end
        )
        prev_revenue = await self._sum(
            Sale.total_amount, Sale.farm_id, farm_ids, Sale.date, prev_start, prev_end
        )
        summary.monthly_expenses = await self._sum(
            Expense.amount, Expense.farm_id, farm_ids, Expense.date, month_start, month_end
        )
        prev_expenses = await self._sum(
            Expense.amount, Expense.farm_id, farm_ids, Expense.date, prev_start, prev_end
        )
        summary.revenue_change = percent_change(summary.monthly_revenue, prev_revenue)
        summary.expenses_change = percent_change(summary.monthly_expenses, prev_expenses)

        eggs = await self.session.scalar(
            select(func.coalesce(func.sum(EggRecord.quantity_collected), 0))
            .join(Batch, Batch.batch_id == EggRecord.batch_id)
            .where(
                Batch.farm_id.in_(farm_ids),
                EggRecord.date >= month_start,
                EggRecord.date <= month_end,
            )
        )
        summary.eggs_this_month = int(eggs or 0)
        layers = sum(
            b.current_quantity
            for b in batches
            if b.livestock_type == "poultry" and "layer" in b.species.lower()
        )
        if layers > 0:
            bird_days = layers * month_end.day
            summary.laying_percentage = round(summary.eggs_this_month / bird_days * 100, 1)

        summary.alerts = await self._alerts(user, batches, farm_ids)
        await self._workforce(summary, farm_ids, today)
        summary.recent_transactions = await self._recent_transactions(farm_ids)
        return summary

    async def _alerts(self, user: User, batches, farm_ids: list[UUID]) -> list[Alert]:
        settings = await SettingsService(self.session).get_user_settings(user)
        alerts = []
        for batch in batches:
            if should_trigger_mortality_alert(
                batch.current_quantity,
                batch.initial_quantity,
                settings.mortality_alert_percent,
                settings.mortality_alert_quantity,
            ):
                rate = calculate_mortality_rate(batch.initial_quantity, batch.current_quantity)
                alerts.append(
                    Alert(
                        alert_type="high_mortality",
                        severity="critical",
                        message=f"{batch.species} batch mortality at {rate:.1f}%",
                        farm_id=batch.farm_id,
                        batch_id=batch.batch_id,
                    )
                )

        inventory = (
            await self.session.execute(
                select(FeedInventory).where(FeedInventory.farm_id.in_(farm_ids))
            )
        ).scalars().all()
        for item in inventory:
            if item.quantity_kg <= item.min_threshold_kg:
                alerts.append(
                    Alert(
                        alert_type="low_stock",
                        severity="warning",
                        message=f"{item.feed_type} feed is low ({item.quantity_kg}kg left)",
                        farm_id=item.farm_id,
                        inventory_id=item.inventory_id,
                    )
                )
        return alerts

    async def _workforce(self, summary: DashboardSummary, farm_ids, today: date) -> None:
        summary.active_workers = await self.session.scalar(
            select(func.count())
            .select_from(WorkerProfile)
            .where(
                WorkerProfile.farm_id.in_(farm_ids),
                WorkerProfile.employment_status == "active",
            )
        ) or 0
        start, end = day_bounds(today)
        summary.checked_in_today = await self.session.scalar(
            select(func.count(func.distinct(WorkerCheckIn.worker_id))).where(
                WorkerCheckIn.farm_id.in_(farm_ids),
                WorkerCheckIn.check_in_time >= start,
                WorkerCheckIn.check_in_time < end,
            )
        ) or 0
        summary.pending_approvals = await self.session.scalar(
            select(func.count())
            .select_from(TaskAssignment)
            .where(
                TaskAssignment.farm_id.in_(farm_ids),
                TaskAssignment.status == TaskAssignmentStatus.PENDING_APPROVAL.value,
            )
        ) or 0

    async def _recent_transactions(self, farm_ids, limit: int = 10) -> list[dict[str, Any]]:
        sales = (
            await self.session.execute(
                select(Sale).where(Sale.farm_id.in_(farm_ids)).order_by(Sale.date.desc()).limit(5)
            )
        ).scalars().all()
        expenses = (
            await self.session.execute(
                select(Expense)
                .where(Expense.farm_id.in_(farm_ids))
                .order_by(Expense.date.desc())
                .limit(5)
            )
        ).scalars().all()
        rows = [
            {
                "id": s.sale_id,
                "type": "sale",
                "description": f"{s.livestock_type} sale - {s.quantity} units",
                "amount": s.total_amount,
                "date": s.date,
            }
            for s in sales
        ] + [
            {
                "id": e.expense_id,
                "type": "expense",
                "description": e.description,
                "amount": e.amount,
                "date": e.date,
            }
            for e in expenses
        ]
        rows.sort(key=lambda r: r["date"], reverse=True)
        return rows[:limit]
