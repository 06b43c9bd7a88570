"""CSV exports, PDF receipts and reports for farm data."""

from __future__ import annotations

import csv
import io
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.currency import calculate_percentage, format_currency
from livestock_ops.calculators.eggs import build_egg_summary, calculate_laying_percentage
from livestock_ops.calculators.feed import build_feed_summary
from livestock_ops.calculators.health import calculate_mortality_rate
from livestock_ops.errors import AppError
from livestock_ops.models import (
    Batch,
    EggRecord,
    Expense,
    FeedRecord,
    Sale,
    User,
    WagePayment,
    WorkerProfile,
)
from livestock_ops.services.access import require_farm_access
from livestock_ops.services.attendance_service import AttendanceService, day_bounds
from livestock_ops.services.payroll_service import PayrollService
from livestock_ops.services.pdf_service import (
    ReceiptData,
    ReceiptItem,
    ReportSection,
    generate_receipt_pdf,
    generate_report_pdf,
)
from livestock_ops.services.settings_service import SettingsService

REPORT_TYPES = ("profit-loss", "inventory", "sales", "feed", "eggs")


@dataclass
class ExportResult:
    content: str
    filename: str
    mime_type: str = "text/csv"


def _writer(output: io.StringIO):
    return csv.writer(output, lineterminator="\n")


class ExportService:
    """Builds downloadable CSV files and PDF receipts.

    Every export checks farm access for the caller first.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def export_attendance_csv(
        self,
        user: User,
        farm_id: UUID,
        start: date,
        end: date,
    ) -> ExportResult:
        await require_farm_access(self.session, user, farm_id)
        range_start, _ = day_bounds(start)
        _, range_end = day_bounds(end)
        records = await AttendanceService(self.session).get_attendance_range(
            farm_id, range_start, range_end
        )

        output = io.StringIO()
        writer = _writer(output)
        writer.writerow(["Worker", "Check In", "Check Out", "Hours Worked", "Status"])
        for check_in, name in records:
            writer.writerow([
                name or "Unknown",
                check_in.check_in_time.isoformat(),
                check_in.check_out_time.isoformat() if check_in.check_out_time else "",
                check_in.hours_worked if check_in.hours_worked is not None else "",
                check_in.verification_status,
            ])
        return ExportResult(
            content=output.getvalue(),
            filename=f"attendance-{start.isoformat()}-{end.isoformat()}.csv",
        )

    async def export_payroll_csv(self, user: User, period_id: UUID) -> ExportResult:
        summary = await PayrollService(self.session).get_payroll_summary(user, period_id)

        output = io.StringIO()
        writer = _writer(output)
        writer.writerow(
            ["Worker", "Hours Worked", "Wage Rate", "Rate Type", "Gross Wages", "Paid", "Balance"]
        )
        for row in summary.workers:
            writer.writerow([
                row.worker_name or "Unknown",
                f"{row.total_hours:.1f}",
                row.wage_rate,
                row.wage_type,
                f"{row.gross_wages:.2f}",
                f"{row.total_paid:.2f}",
                f"{row.outstanding_balance:.2f}",
            ])
        period = summary.period
        return ExportResult(
            content=output.getvalue(),
            filename=(
                f"payroll-{period.start_date.isoformat()}-{period.end_date.isoformat()}.csv"
            ),
        )

    async def generate_export_data(
        self,
        user: User,
        report_type: str,
        farm_id: UUID,
        start: date,
        end: date,
    ) -> ExportResult:
        if report_type not in REPORT_TYPES:
            raise AppError("VALIDATION_ERROR", f"Unknown report type: {report_type}")
        await require_farm_access(self.session, user, farm_id)

        output = io.StringIO()
        writer = _writer(output)
        period = f"{start.isoformat()}-to-{end.isoformat()}"

        if report_type == "profit-loss":
            await self._profit_loss(writer, farm_id, start, end)
            filename = f"profit-loss-report-{period}"
        elif report_type == "inventory":
            await self._inventory(writer, farm_id)
            filename = f"inventory-report-{date.today().isoformat()}"
        elif report_type == "sales":
            await self._sales(writer, farm_id, start, end)
            filename = f"sales-report-{period}"
        elif report_type == "feed":
            await self._feed(writer, farm_id, start, end)
            filename = f"feed-report-{period}"
        else:
            await self._eggs(writer, farm_id, start, end)
            filename = f"egg-production-report-{period}"

        return ExportResult(content=output.getvalue(), filename=f"{filename}.csv")

    async def _profit_loss(self, writer, farm_id: UUID, start: date, end: date) -> None:
        sales = (
            await self.session.execute(
                select(Sale).where(Sale.farm_id == farm_id, Sale.date >= start, Sale.date <= end)
            )
        ).scalars().all()
        expenses = (
            await self.session.execute(
                select(Expense).where(
                    Expense.farm_id == farm_id, Expense.date >= start, Expense.date <= end
                )
            )
        ).scalars().all()

        revenue_by_type: dict[str, Decimal] = defaultdict(Decimal)
        for sale in sales:
            revenue_by_type[sale.livestock_type] += sale.total_amount
        expense_by_category: dict[str, Decimal] = defaultdict(Decimal)
        for expense in expenses:
            expense_by_category[expense.category] += expense.amount
        revenue = sum(revenue_by_type.values(), Decimal("0"))
        cost = sum(expense_by_category.values(), Decimal("0"))
        profit = revenue - cost

        writer.writerow(["Profit & Loss Report"])
        writer.writerow([f"Period: {start.isoformat()} to {end.isoformat()}"])
        writer.writerow([])
        writer.writerow(["REVENUE"])
        writer.writerow(["Type", "Amount"])
        for kind, amount in sorted(revenue_by_type.items()):
            writer.writerow([kind, amount])
        writer.writerow(["Total Revenue", revenue])
        writer.writerow([])
        writer.writerow(["EXPENSES"])
        writer.writerow(["Category", "Amount"])
        for category, amount in sorted(expense_by_category.items()):
            writer.writerow([category, amount])
        writer.writerow(["Total Expenses", cost])
        writer.writerow([])
        writer.writerow(["SUMMARY"])
        writer.writerow(["Net Profit", profit])
        writer.writerow(["Profit Margin", f"{calculate_percentage(profit, revenue)}%"])

    async def _inventory(self, writer, farm_id: UUID) -> None:
        batches = (
            await self.session.execute(
                select(Batch).where(Batch.farm_id == farm_id).order_by(Batch.acquisition_date)
            )
        ).scalars().all()
        initial = sum(b.initial_quantity for b in batches)
        current = sum(b.current_quantity for b in batches)

        writer.writerow(["Inventory Report"])
        writer.writerow([])
        writer.writerow(["SUMMARY"])
        for kind in ("poultry", "fish"):
            total = sum(
                b.current_quantity
                for b in batches
                if b.livestock_type == kind and b.status == "active"
            )
            writer.writerow([f"Total {kind.title()}", total])
        writer.writerow(["Total Mortality", initial - current])
        writer.writerow(
            ["Overall Mortality Rate", f"{calculate_mortality_rate(initial, current):.2f}%"]
        )
        writer.writerow([])
        writer.writerow(["BATCHES"])
        writer.writerow(
            [
                "Species",
                "Type",
                "Initial Qty",
                "Current Qty",
                "Mortality",
                "Mortality Rate",
                "Status",
            ]
        )
        for b in batches:
            rate = calculate_mortality_rate(b.initial_quantity, b.current_quantity)
            writer.writerow([
                b.species,
                b.livestock_type,
                b.initial_quantity,
                b.current_quantity,
                b.initial_quantity - b.current_quantity,
                f"{rate:.2f}%",
                b.status,
            ])

    async def _sales(self, writer, farm_id: UUID, start: date, end: date) -> None:
        sales = (
            await self.session.execute(
                select(Sale)
                .where(Sale.farm_id == farm_id, Sale.date >= start, Sale.date <= end)
                .order_by(Sale.date)
            )
        ).scalars().all()
        by_type: dict[str, list[Decimal]] = defaultdict(lambda: [0, Decimal("0")])
        for sale in sales:
            by_type[sale.livestock_type][0] += sale.quantity
            by_type[sale.livestock_type][1] += sale.total_amount

        writer.writerow(["Sales Report"])
        writer.writerow([f"Period: {start.isoformat()} to {end.isoformat()}"])
        writer.writerow([])
        writer.writerow(["SUMMARY"])
        writer.writerow(["Total Sales", len(sales)])
        writer.writerow(["Total Revenue", sum((s.total_amount for s in sales), Decimal("0"))])
        writer.writerow([])
        writer.writerow(["BY TYPE"])
        writer.writerow(["Type", "Quantity", "Revenue"])
        for kind, (quantity, revenue) in sorted(by_type.items()):
            writer.writerow([kind, quantity, revenue])
        writer.writerow([])
        writer.writerow(["TRANSACTIONS"])
        writer.writerow(["Date", "Type", "Quantity", "Unit Price", "Total", "Customer"])
        for sale in sales:
            writer.writerow([
                sale.date.isoformat(),
                sale.livestock_type,
                sale.quantity,
                sale.unit_price,
                sale.total_amount,
                sale.customer_name or "",
            ])

    async def _feed(self, writer, farm_id: UUID, start: date, end: date) -> None:
        rows = (
            await self.session.execute(
                select(FeedRecord, Batch.species)
                .join(Batch, Batch.batch_id == FeedRecord.batch_id)
                .where(Batch.farm_id == farm_id, FeedRecord.date >= start, FeedRecord.date <= end)
            )
        ).all()
        summary = build_feed_summary(record for record, _ in rows)
        per_species: dict[tuple[str, str], list[Decimal]] = defaultdict(
            lambda: [Decimal("0"), Decimal("0")]
        )
        for record, species in rows:
            per_species[(species, record.feed_type)][0] += record.quantity_kg
            per_species[(species, record.feed_type)][1] += record.cost

        writer.writerow(["Feed Report"])
        writer.writerow([f"Period: {start.isoformat()} to {end.isoformat()}"])
        writer.writerow([])
        writer.writerow(["SUMMARY"])
        writer.writerow(["Total Feed (kg)", summary.total_quantity_kg])
        writer.writerow(["Total Cost", summary.total_cost])
        writer.writerow([])
        writer.writerow(["BY FEED TYPE"])
        writer.writerow(["Feed Type", "Quantity (kg)", "Cost"])
        for feed_type, totals in sorted(summary.by_type.items()):
            writer.writerow([feed_type, totals.quantity_kg, totals.cost])
        writer.writerow([])
        writer.writerow(["RECORDS"])
        writer.writerow(["Species", "Feed Type", "Quantity (kg)", "Cost"])
        for (species, feed_type), (quantity, cost) in sorted(per_species.items()):
            writer.writerow([species, feed_type, quantity, cost])

    async def _eggs(self, writer, farm_id: UUID, start: date, end: date) -> None:
        records = (
            await self.session.execute(
                select(EggRecord)
                .join(Batch, Batch.batch_id == EggRecord.batch_id)
                .where(Batch.farm_id == farm_id, EggRecord.date >= start, EggRecord.date <= end)
                .order_by(EggRecord.date)
            )
        ).scalars().all()
        flock = sum(
            (
                await self.session.execute(
                    select(Batch.current_quantity).where(
                        Batch.farm_id == farm_id,
                        Batch.livestock_type == "poultry",
                        Batch.status == "active",
                    )
                )
            ).scalars().all()
        )
        summary = build_egg_summary(records)
        days = (end - start + timedelta(days=1)).days
        average = summary.total_collected / days if days > 0 else 0

        writer.writerow(["Egg Production Report"])
        writer.writerow([f"Period: {start.isoformat()} to {end.isoformat()}"])
        writer.writerow([])
        writer.writerow(["SUMMARY"])
        writer.writerow(["Total Collected", summary.total_collected])
        writer.writerow(["Total Sold", summary.total_sold])
        writer.writerow(["Total Broken", summary.total_broken])
        writer.writerow(["Current Inventory", summary.current_inventory])
        writer.writerow(["Average Laying %", f"{calculate_laying_percentage(average, flock)}%"])
        writer.writerow([])
        writer.writerow(["DAILY RECORDS"])
        writer.writerow(["Date", "Collected", "Broken", "Sold", "Inventory"])
        running = 0
        for record in records:
            running += record.quantity_collected - record.quantity_broken - record.quantity_sold
            writer.writerow([
                record.date.isoformat(),
                record.quantity_collected,
                record.quantity_broken,
                record.quantity_sold,
                max(0, running),
            ])

    async def payment_receipt_pdf(self, user: User, payment_id: UUID) -> bytes:
        """Receipt for a wage payment, in the caller's currency format."""
        payment = await self.session.get(WagePayment, payment_id)
        if payment is None:
            raise AppError("NOT_FOUND", "Payment not found", metadata={"resource": "WagePayment"})
        farm = await require_farm_access(self.session, user, payment.farm_id)
        worker = await self.session.get(WorkerProfile, payment.worker_id)
        worker_user = await self.session.get(User, worker.user_id) if worker else None
        settings = await SettingsService(self.session).get_user_settings(user)

        description = f"Wages ({payment.payment_method.replace('_', ' ')})"
        return generate_receipt_pdf(
            ReceiptData(
                title="Payment Receipt",
                number=str(payment.payment_id)[:8].upper(),
                issued_on=payment.payment_date,
                from_lines=[farm.name, farm.location],
                to_label="Paid To:",
                to_lines=[worker_user.name if worker_user else "Unknown"],
                items=[ReceiptItem(description, 1, payment.amount, payment.amount)],
                total=payment.amount,
                notes=payment.notes,
                currency=settings,
            )
        )

    async def sale_receipt_pdf(self, user: User, sale_id: UUID) -> bytes:
        sale = await self.session.get(Sale, sale_id)
        if sale is None:
            raise AppError("SALE_NOT_FOUND", metadata={"sale_id": str(sale_id)})
        farm = await require_farm_access(self.session, user, sale.farm_id)
        settings = await SettingsService(self.session).get_user_settings(user)

        return generate_receipt_pdf(
            ReceiptData(
                title="Sales Receipt",
                number=str(sale.sale_id)[:8].upper(),
                issued_on=sale.date,
                from_lines=[farm.name, farm.location],
                to_label="Sold To:",
                to_lines=[sale.customer_name or "Walk-in customer"],
                items=[
                    ReceiptItem(
                        f"{sale.livestock_type.title()} sale",
                        sale.quantity,
                        sale.unit_price,
                        sale.total_amount,
                    )
                ],
                total=sale.total_amount,
                currency=settings,
            )
        )

    async def payroll_report_pdf(self, user: User, period_id: UUID) -> bytes:
        """Payroll summary for a period as a PDF report."""
        summary = await PayrollService(self.session).get_payroll_summary(user, period_id)
        settings = await SettingsService(self.session).get_user_settings(user)

        def money(value: Decimal) -> str:
            return format_currency(value, settings)

        totals = ReportSection(
            title="Summary",
            section_type="summary",
            data=[
                ("Farm", summary.farm_name),
                ("Workers", len(summary.workers)),
                ("Gross Wages", money(summary.total_gross)),
                ("Paid", money(summary.total_paid)),
                ("Outstanding", money(summary.total_outstanding)),
            ],
        )
        workers = ReportSection(
            title="Workers",
            section_type="table",
            columns=["Worker", "Hours", "Days", "Gross", "Paid", "Balance"],
            data=[
                [
                    row.worker_name or "Unknown",
                    f"{row.total_hours:.1f}",
                    row.days_worked,
                    money(row.gross_wages),
                    money(row.total_paid),
                    money(row.outstanding_balance),
                ]
                for row in summary.workers
            ],
        )
        period = summary.period
        return generate_report_pdf(
            "Payroll Report",
            [totals, workers],
            period=(period.start_date, period.end_date),
        )
