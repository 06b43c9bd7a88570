"""Tests for the dashboard, report exports, receipts and notifications."""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import fitz
import pytest
from sqlalchemy import select

from livestock_ops.errors import AppError
from livestock_ops.models import Batch, EggRecord, Expense, FeedInventory, FeedRecord, Sale
from livestock_ops.services.attendance_service import AttendanceService
from livestock_ops.services.audit_service import NotificationService
from livestock_ops.services.dashboard_service import DashboardService
from livestock_ops.services.export_service import ExportService
from livestock_ops.services.payroll_service import PayrollService

MARCH = (date(2024, 3, 1), date(2024, 3, 31))


def pdf_text(content: bytes) -> str:
    with fitz.open(stream=content, filetype="pdf") as doc:
        return "".join(page.get_text() for page in doc)


@pytest.fixture
async def farm_books(session, farm, layer_batch):
    """Sales and expenses in February and March 2024, plus March eggs and feed."""
    session.add_all([
        Sale(
            farm_id=farm.farm_id,
            batch_id=layer_batch.batch_id,
            livestock_type="poultry",
            quantity=30,
            unit_price=Decimal("5.00"),
            total_amount=Decimal("150.00"),
            date=date(2024, 3, 10),
            customer_name="Market",
        ),
        Sale(
            farm_id=farm.farm_id,
            livestock_type="poultry",
            quantity=20,
            unit_price=Decimal("5.00"),
            total_amount=Decimal("100.00"),
            date=date(2024, 2, 10),
        ),
        Expense(
            farm_id=farm.farm_id,
            category="feed",
            amount=Decimal("60.00"),
            date=date(2024, 3, 12),
            description="Layer mash",
        ),
        Expense(
            farm_id=farm.farm_id,
            category="feed",
            amount=Decimal("80.00"),
            date=date(2024, 2, 12),
            description="Layer mash",
        ),
        EggRecord(
            batch_id=layer_batch.batch_id,
            date=date(2024, 3, 2),
            quantity_collected=4464,
            quantity_broken=10,
            quantity_sold=100,
        ),
        FeedRecord(
            batch_id=layer_batch.batch_id,
            feed_type="layer mash",
            quantity_kg=Decimal("25.00"),
            cost=Decimal("30.00"),
            date=date(2024, 3, 3),
        ),
    ])
    await session.commit()
    return farm


class TestDashboardSummary:
    """Test the monthly dashboard aggregates."""

    async def test_month_over_month(self, session, owner_user, farm_books):
        summary = await DashboardService(session).get_dashboard_summary(
            owner_user, farm_books.farm_id, today=date(2024, 3, 20)
        )

        assert summary.monthly_revenue == Decimal("150.00")
        assert summary.monthly_expenses == Decimal("60.00")
        assert summary.monthly_profit == Decimal("90.00")
        assert summary.revenue_change == 50.0
        assert summary.expenses_change == -25.0
        assert [t["type"] for t in summary.recent_transactions] == [
            "expense",
            "sale",
            "expense",
            "sale",
        ]

    async def test_inventory_and_laying(self, session, owner_user, farm_books):
        summary = await DashboardService(session).get_dashboard_summary(
            owner_user, farm_books.farm_id, today=date(2024, 3, 20)
        )

        assert summary.inventory["poultry"] == 480
        assert summary.inventory["fish"] == 0
        assert summary.active_batches == 1
        assert summary.eggs_this_month == 4464
        # 4464 eggs / (480 birds * 31 days)
        assert summary.laying_percentage == 30.0

    async def test_alerts(self, session, owner_user, farm):
        broilers = Batch(
            farm_id=farm.farm_id,
            livestock_type="poultry",
            species="broiler",
            initial_quantity=100,
            current_quantity=80,
            acquisition_date=date(2024, 2, 1),
            status="active",
        )
        session.add_all([
            broilers,
            FeedInventory(
                farm_id=farm.farm_id,
                feed_type="starter",
                quantity_kg=Decimal("5"),
                min_threshold_kg=Decimal("10"),
            ),
        ])
        await session.commit()

        summary = await DashboardService(session).get_dashboard_summary(
            owner_user, farm.farm_id, today=date(2024, 3, 20)
        )

        assert [a.alert_type for a in summary.alerts] == ["high_mortality", "low_stock"]
        assert summary.alerts[0].batch_id == broilers.batch_id
        assert summary.alerts[0].message == "broiler batch mortality at 20.0%"
        assert summary.alerts[1].severity == "warning"

    async def test_workforce_counts(self, session, owner_user, worker_user, worker_profile):
        await AttendanceService(session).check_in(
            worker_user,
            worker_profile.farm_id,
            1.0,
            1.0,
            now=datetime(2024, 3, 20, 7, tzinfo=timezone.utc),
        )

        summary = await DashboardService(session).get_dashboard_summary(
            owner_user, today=date(2024, 3, 20)
        )

        assert summary.farm_ids == [worker_profile.farm_id]
        assert summary.active_workers == 1
        assert summary.checked_in_today == 1
        assert summary.pending_approvals == 0

    async def test_user_without_farms(self, session, outsider_user):
        summary = await DashboardService(session).get_dashboard_summary(outsider_user)

        assert summary.farm_ids == []
        assert summary.active_batches == 0
        assert set(summary.inventory.values()) == {0}

    async def test_foreign_farm(self, session, outsider_user, farm):
        with pytest.raises(AppError) as exc_info:
            await DashboardService(session).get_dashboard_summary(outsider_user, farm.farm_id)
        assert exc_info.value.name == "ACCESS_DENIED"


class TestReportExports:
    """Test the CSV reports."""

    async def export(self, session, user, report_type, farm_id):
        result = await ExportService(session).generate_export_data(
            user, report_type, farm_id, *MARCH
        )
        return result, result.content.splitlines()

    async def test_profit_loss(self, session, owner_user, farm_books):
        result, lines = await self.export(session, owner_user, "profit-loss", farm_books.farm_id)

        assert result.filename == "profit-loss-report-2024-03-01-to-2024-03-31.csv"
        assert result.mime_type == "text/csv"
        assert lines[0] == "Profit & Loss Report"
        assert "poultry,150.00" in lines
        assert "feed,60.00" in lines
        assert "Net Profit,90.00" in lines
        assert "Profit Margin,60.0%" in lines

    async def test_inventory(self, session, owner_user, farm_books):
        result, lines = await self.export(session, owner_user, "inventory", farm_books.farm_id)

        assert result.filename.startswith("inventory-report-")
        assert "Total Poultry,480" in lines
        assert "Total Mortality,20" in lines
        assert "Overall Mortality Rate,4.00%" in lines
        assert lines[-1] == "layer,poultry,500,480,20,4.00%,active"

    async def test_sales(self, session, owner_user, farm_books):
        _, lines = await self.export(session, owner_user, "sales", farm_books.farm_id)

        assert lines[0] == "Sales Report"
        assert "Total Sales,1" in lines
        assert "Total Revenue,150.00" in lines
        assert lines[-1] == "2024-03-10,poultry,30,5.00,150.00,Market"

    async def test_feed(self, session, owner_user, farm_books):
        _, lines = await self.export(session, owner_user, "feed", farm_books.farm_id)

        assert lines[0] == "Feed Report"
        assert lines[-1] == "layer,layer mash,25.00,30.00"

    async def test_eggs(self, session, owner_user, farm_books):
        result, lines = await self.export(session, owner_user, "eggs", farm_books.farm_id)

        assert result.filename == "egg-production-report-2024-03-01-to-2024-03-31.csv"
        assert "Total Collected,4464" in lines
        assert lines[-1] == "2024-03-02,4464,10,100,4354"

    async def test_unknown_type(self, session, owner_user, farm):
        with pytest.raises(AppError, match="Unknown report type: weekly"):
            await self.export(session, owner_user, "weekly", farm.farm_id)

    async def test_outsider_rejected(self, session, outsider_user, farm):
        with pytest.raises(AppError) as exc_info:
            await self.export(session, outsider_user, "sales", farm.farm_id)
        assert exc_info.value.name == "ACCESS_DENIED"


class TestReceipts:
    """Test PDF receipts."""

    async def test_payment_receipt(self, session, owner_user, farm, worker_profile):
        payroll = PayrollService(session)
        period = await payroll.create_payroll_period(
            owner_user, farm.farm_id, "weekly", date(2024, 3, 1), date(2024, 3, 7)
        )
        payment = await payroll.record_payment(
            owner_user,
            {
                "worker_id": worker_profile.worker_id,
                "payroll_period_id": period.payroll_period_id,
                "amount": "42.50",
                "payment_method": "mobile_money",
                "payment_date": date(2024, 3, 8),
            },
        )

        content = await ExportService(session).payment_receipt_pdf(owner_user, payment.payment_id)

        assert content.startswith(b"%PDF")
        text = pdf_text(content)
        assert "Payment Receipt" in text
        assert "Wanjiru Worker" in text
        assert "Wages (mobile money)" in text

    async def test_sale_receipt(self, session, owner_user, farm_books):
        sale = await session.scalar(select(Sale).where(Sale.customer_name == "Market"))

        content = await ExportService(session).sale_receipt_pdf(owner_user, sale.sale_id)

        assert content.startswith(b"%PDF")
        text = pdf_text(content)
        assert "Sales Receipt" in text
        assert "Poultry sale" in text

    async def test_walk_in_customer(self, session, owner_user, farm_books):
        sale = await session.scalar(select(Sale).where(Sale.customer_name.is_(None)))

        content = await ExportService(session).sale_receipt_pdf(owner_user, sale.sale_id)

        assert "Walk-in customer" in pdf_text(content)

    async def test_missing_records(self, session, owner_user):
        service = ExportService(session)
        with pytest.raises(AppError) as exc_info:
            await service.sale_receipt_pdf(owner_user, uuid4())
        assert exc_info.value.name == "SALE_NOT_FOUND"

        with pytest.raises(AppError, match="Payment not found"):
            await service.payment_receipt_pdf(owner_user, uuid4())


class TestNotifications:
    """Test the notification inbox."""

    async def test_list_and_mark(self, session, owner_user, worker_user, farm):
        service = NotificationService(session)
        first, second = await service.notify_farm_owners(
            farm.farm_id, "low_stock", "Low Stock", "Starter feed is low"
        ) + await service.notify_farm_owners(
            farm.farm_id, "flagged_check_in", "Flagged Check-In", "Outside the geofence"
        )
        await service.notify(worker_user.user_id, "task", "New Task", "Clean waterers")

        items, total = await service.list_notifications(owner_user.user_id)
        assert total == 2
        assert {n.notification_id for n in items} == {
            first.notification_id,
            second.notification_id,
        }

        await service.mark_read(owner_user.user_id, first.notification_id)
        unread, unread_total = await service.list_notifications(
            owner_user.user_id, unread_only=True
        )
        assert unread_total == 1
        assert unread[0].notification_id == second.notification_id

        assert await service.mark_all_read(owner_user.user_id) == 1
        assert (await service.list_notifications(owner_user.user_id, unread_only=True))[1] == 0
        # the worker's inbox is untouched
        assert (await service.list_notifications(worker_user.user_id, unread_only=True))[1] == 1

    async def test_cannot_mark_someone_elses(self, session, owner_user, worker_user):
        service = NotificationService(session)
        notification = await service.notify(worker_user.user_id, "task", "New Task", "Feed fish")

        with pytest.raises(AppError) as exc_info:
            await service.mark_read(owner_user.user_id, notification.notification_id)
        assert exc_info.value.name == "NOTIFICATION_NOT_FOUND"
