"""Payroll periods, wage summaries and payments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.payroll import (
    calculate_days_worked,
    calculate_gross_wages,
    calculate_outstanding_balance,
    validate_payroll_period,
)
from livestock_ops.calculators.types import WageConfig, WageRateType
from livestock_ops.errors import AppError
from livestock_ops.models import (
    Expense,
    PayrollPeriod,
    User,
    WagePayment,
    WorkerCheckIn,
    WorkerProfile,
)
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.attendance_service import day_bounds
from livestock_ops.services.audit_service import AuditService

logger = logging.getLogger(__name__)

PERIOD_TYPES = ("weekly", "bi-weekly", "monthly")
PAYMENT_METHODS = ("cash", "bank_transfer", "mobile_money")


@dataclass
class WorkerPayrollRow:
    """Wages owed to one worker for a period."""

    worker_id: UUID
    worker_name: str
    total_hours: Decimal
    days_worked: int
    wage_rate: Decimal
    wage_type: str
    gross_wages: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal


@dataclass
class PayrollSummary:
    farm_name: str
    period: PayrollPeriod
    workers: list[WorkerPayrollRow] = field(default_factory=list)

    @property
    def total_gross(self) -> Decimal:
        return sum((w.gross_wages for w in self.workers), Decimal("0.00"))

    @property
    def total_paid(self) -> Decimal:
        return sum((w.total_paid for w in self.workers), Decimal("0.00"))

    @property
    def total_outstanding(self) -> Decimal:
        return sum((w.outstanding_balance for w in self.workers), Decimal("0.00"))


def period_length_days(period: PayrollPeriod, shares_end_day: bool = False) -> int:
    """Calendar days paid by a period, both ends included.

    When the next period starts on this one's end date, that day belongs to
    the next period.
    """
    days = (period.end_date - period.start_date).days + 1
    return days - 1 if shares_end_day else days


class PayrollService:
    """Payroll periods and wage payments for a farm.

    Hourly workers are paid for hours on closed check-ins inside the
    period, daily workers for distinct days with a check-in, and monthly
    workers pro rata for those days over the length of the period. A day
    shared by two adjacent periods is paid by the later one only.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def get_period(self, period_id: UUID) -> PayrollPeriod:
        period = await self.session.get(PayrollPeriod, period_id)
        if period is None:
            raise AppError(
                "PAYROLL_PERIOD_NOT_FOUND",
                metadata={"payroll_period_id": str(period_id)},
            )
        return period

    async def create_payroll_period(
        self,
        actor: User,
        farm_id: UUID,
        period_type: str,
        start_date: date,
        end_date: date,
    ) -> PayrollPeriod:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        if period_type not in PERIOD_TYPES:
            raise AppError("VALIDATION_ERROR", f"Invalid period type: {period_type}")

        result = await self.session.execute(
            select(PayrollPeriod.start_date, PayrollPeriod.end_date).where(
                PayrollPeriod.farm_id == farm_id,
                PayrollPeriod.start_date < end_date,
                PayrollPeriod.end_date > start_date,
            )
        )
        existing = [(s, e) for s, e in result.all()]
        error = validate_payroll_period(start_date, end_date, existing)
        if error:
            code = "VALIDATION_ERROR" if start_date >= end_date else "OVERLAPPING_PAYROLL_PERIOD"
            raise AppError(code, error)

        period = PayrollPeriod(
            farm_id=farm_id,
            period_type=period_type,
            start_date=start_date,
            end_date=end_date,
            status="open",
        )
        self.session.add(period)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "payroll_period",
            period.payroll_period_id,
            {"start_date": start_date, "end_date": end_date, "period_type": period_type},
        )
        return period

    async def close_payroll_period(self, actor: User, period_id: UUID) -> PayrollPeriod:
        period = await self.get_period(period_id)
        await require_farm_access(self.session, actor, period.farm_id, MANAGE_ROLES)
        if period.status == "closed":
            raise AppError("VALIDATION_ERROR", "Payroll period is already closed")
        period.status = "closed"
        await self.audit.record_audit(
            actor.user_id, "close", "payroll_period", period_id
        )
        await self.session.flush()
        return period

    async def _shares_end_day(self, period: PayrollPeriod) -> bool:
        successor = await self.session.scalar(
            select(PayrollPeriod.payroll_period_id).where(
                PayrollPeriod.farm_id == period.farm_id,
                PayrollPeriod.start_date == period.end_date,
                PayrollPeriod.payroll_period_id != period.payroll_period_id,
            )
        )
        return successor is not None

    async def _worker_rows(self, period: PayrollPeriod) -> list[WorkerPayrollRow]:
        shares_end_day = await self._shares_end_day(period)
        start, _ = day_bounds(period.start_date)
        end, next_day = day_bounds(period.end_date)
        if not shares_end_day:
            end = next_day
        total_days = period_length_days(period, shares_end_day)

        workers = await self.session.execute(
            select(WorkerProfile, User.name)
            .join(User, User.user_id == WorkerProfile.user_id)
            .where(WorkerProfile.farm_id == period.farm_id)
            .order_by(User.name)
        )
        payments = await self.session.execute(
            select(WagePayment.worker_id, WagePayment.amount).where(
                WagePayment.payroll_period_id == period.payroll_period_id
            )
        )
        paid_by_worker: dict[UUID, Decimal] = {}
        for worker_id, amount in payments.all():
            paid_by_worker[worker_id] = paid_by_worker.get(worker_id, Decimal("0")) + amount

        rows = []
        for profile, name in workers.all():
            check_ins = await self.session.execute(
                select(WorkerCheckIn.check_in_time, WorkerCheckIn.hours_worked).where(
                    WorkerCheckIn.worker_id == profile.worker_id,
                    WorkerCheckIn.check_in_time >= start,
                    WorkerCheckIn.check_in_time < end,
                )
            )
            entries = check_ins.all()
            total_hours = sum((h or Decimal("0") for _, h in entries), Decimal("0.00"))
            days_worked = calculate_days_worked(t for t, _ in entries)

            config = WageConfig(
                rate_type=WageRateType(profile.wage_rate_type),
                rate_amount=profile.wage_rate_amount,
            )
            units = total_hours if config.rate_type == WageRateType.HOURLY else days_worked
            gross = calculate_gross_wages(units, config, total_days)
            paid = paid_by_worker.get(profile.worker_id, Decimal("0.00"))

            rows.append(
                WorkerPayrollRow(
                    worker_id=profile.worker_id,
                    worker_name=name,
                    total_hours=total_hours,
                    days_worked=days_worked,
                    wage_rate=profile.wage_rate_amount,
                    wage_type=profile.wage_rate_type,
                    gross_wages=gross,
                    total_paid=paid,
                    outstanding_balance=calculate_outstanding_balance(gross, paid),
                )
            )
        return rows

    async def get_payroll_summary(self, actor: User, period_id: UUID) -> PayrollSummary:
        period = await self.get_period(period_id)
        farm = await require_farm_access(self.session, actor, period.farm_id)
        return PayrollSummary(
            farm_name=farm.name or "Farm",
            period=period,
            workers=await self._worker_rows(period),
        )

    async def record_payment(self, actor: User, data: dict[str, Any]) -> WagePayment:
        """Record a wage payment and the matching labor expense."""
        worker = await self.session.get(WorkerProfile, data["worker_id"])
        farm_id = data.get("farm_id")
        if worker is None or (farm_id is not None and worker.farm_id != farm_id):
            raise AppError(
                "WORKER_PROFILE_NOT_FOUND",
                metadata={"worker_id": str(data["worker_id"])},
            )
        await require_farm_access(self.session, actor, worker.farm_id, MANAGE_ROLES)

        period = await self.get_period(data["payroll_period_id"])
        if period.farm_id != worker.farm_id:
            raise AppError("VALIDATION_ERROR", "Payroll period belongs to another farm")

        amount = Decimal(str(data["amount"])).quantize(Decimal("0.01"))
        if amount <= 0:
            raise AppError("VALIDATION_ERROR", "Amount must be greater than 0")
        method = data["payment_method"]
        if method not in PAYMENT_METHODS:
            raise AppError("VALIDATION_ERROR", f"Invalid payment method: {method}")
        payment_date = data.get("payment_date") or date.today()

        payment = WagePayment(
            worker_id=worker.worker_id,
            payroll_period_id=period.payroll_period_id,
            farm_id=worker.farm_id,
            amount=amount,
            payment_date=payment_date,
            payment_method=method,
            notes=data.get("notes"),
        )
        self.session.add(payment)
        self.session.add(
            Expense(
                farm_id=worker.farm_id,
                category="labor",
                amount=amount,
                date=payment_date,
                description=f"Wage payment - {method}",
            )
        )
        await self.session.flush()

        await self.audit.record_audit(
            actor.user_id,
            "record_payment",
            "wage_payment",
            payment.payment_id,
            {"worker_id": worker.worker_id, "amount": amount, "method": method},
        )
        logger.info(
            "Recorded %s payment of %s to worker %s", method, amount, worker.worker_id
        )
        return payment

    async def get_payroll_history(self, actor: User, farm_id: UUID) -> list[PayrollPeriod]:
        await require_farm_access(self.session, actor, farm_id)
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(PayrollPeriod.farm_id == farm_id)
            .order_by(PayrollPeriod.start_date.desc())
        )
        return list(result.scalars().all())

    async def list_payments(self, actor: User, period_id: UUID) -> list[WagePayment]:
        period = await self.get_period(period_id)
        await require_farm_access(self.session, actor, period.farm_id)
        result = await self.session.execute(
            select(WagePayment)
            .where(WagePayment.payroll_period_id == period_id)
            .order_by(WagePayment.payment_date.desc())
        )
        return list(result.scalars().all())

