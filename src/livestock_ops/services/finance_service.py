"""Sales and expenses."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from livestock_ops.calculators.batches import (
    calculate_new_quantity,
    determine_batch_status,
    validate_expense_data,
    validate_sale_data,
)
from livestock_ops.calculators.currency import multiply, round_currency
from livestock_ops.errors import AppError
from livestock_ops.models import LIVESTOCK_TYPES, Batch, Expense, Sale, User
from livestock_ops.services.access import MANAGE_ROLES, require_farm_access
from livestock_ops.services.audit_service import AuditService
from livestock_ops.services.pagination import paginate

logger = logging.getLogger(__name__)

SALE_TYPES = (*LIVESTOCK_TYPES, "eggs")


class FinanceService:
    """Farm income and spending.

    A sale of live animals from a batch takes them off the batch; egg
    sales never touch batch stock.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.audit = AuditService(session)

    async def _get_farm_batch(self, farm_id: UUID, batch_id: UUID) -> Batch:
        batch = await self.session.get(Batch, batch_id)
        if batch is None or batch.farm_id != farm_id:
            raise AppError(
                "BATCH_NOT_FOUND",
                metadata={"batch_id": str(batch_id), "farm_id": str(farm_id)},
            )
        return batch

    async def create_sale(self, actor: User, farm_id: UUID, data: dict[str, Any]) -> Sale:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        livestock_type = data.get("livestock_type")
        if livestock_type not in SALE_TYPES:
            raise AppError("VALIDATION_ERROR", f"Invalid livestock type: {livestock_type}")

        batch = None
        if data.get("batch_id") is not None:
            batch = await self._get_farm_batch(farm_id, data["batch_id"])
        takes_stock = batch is not None and livestock_type != "eggs"

        error = validate_sale_data(data, batch.current_quantity if takes_stock else None)
        if error:
            name = "INSUFFICIENT_STOCK" if error.startswith("Insufficient") else "VALIDATION_ERROR"
            raise AppError(name, error)

        sale = Sale(
            farm_id=farm_id,
            batch_id=data.get("batch_id"),
            livestock_type=livestock_type,
            quantity=data["quantity"],
            unit_price=round_currency(data["unit_price"]),
            total_amount=round_currency(multiply(data["quantity"], data["unit_price"])),
            date=data["date"],
            customer_name=data.get("customer_name"),
        )
        if takes_stock:
            batch.current_quantity = calculate_new_quantity(batch.current_quantity, sale.quantity)
            batch.status = determine_batch_status(batch.current_quantity, sale.quantity)
        self.session.add(sale)
        await self.session.flush()

        await self.audit.record_audit(
            actor.user_id,
            "create",
            "sale",
            sale.sale_id,
            {"quantity": sale.quantity, "total_amount": sale.total_amount},
        )
        logger.info("Sale %s of %s on farm %s", sale.sale_id, sale.total_amount, farm_id)
        return sale

    async def list_sales(
        self,
        actor: User,
        farm_id: UUID,
        start: date | None = None,
        end: date | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Sale], int]:
        await require_farm_access(self.session, actor, farm_id)
        query = select(Sale).where(Sale.farm_id == farm_id)
        if start is not None:
            query = query.where(Sale.date >= start)
        if end is not None:
            query = query.where(Sale.date <= end)
        query = query.order_by(Sale.date.desc(), Sale.created_at.desc())
        return await paginate(self.session, query, page, page_size)

    async def create_expense(self, actor: User, farm_id: UUID, data: dict[str, Any]) -> Expense:
        await require_farm_access(self.session, actor, farm_id, MANAGE_ROLES)
        error = validate_expense_data(data)
        if error:
            raise AppError("VALIDATION_ERROR", error)
        if data.get("batch_id") is not None:
            await self._get_farm_batch(farm_id, data["batch_id"])

        expense = Expense(
            farm_id=farm_id,
            batch_id=data.get("batch_id"),
            category=data["category"],
            amount=round_currency(data["amount"]),
            date=data["date"],
            description=data["description"].strip(),
        )
        self.session.add(expense)
        await self.session.flush()
        await self.audit.record_audit(
            actor.user_id,
            "create",
            "expense",
            expense.expense_id,
            {"category": expense.category, "amount": expense.amount},
        )
        return expense

    async def list_expenses(
        self,
        actor: User,
        farm_id: UUID,
        category: str | None = None,
        start: date | None = None,
        end: date | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Expense], int]:
        await require_farm_access(self.session, actor, farm_id)
        query = select(Expense).where(Expense.farm_id == farm_id)
        if category is not None:
            query = query.where(Expense.category == category)
        if start is not None:
            query = query.where(Expense.date >= start)
        if end is not None:
            query = query.where(Expense.date <= end)
        query = query.order_by(Expense.date.desc(), Expense.created_at.desc())
        return await paginate(self.session, query, page, page_size)
