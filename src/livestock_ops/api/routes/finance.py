"""Sales and expense endpoints."""

from datetime import date as date_type
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseResponse,
    SaleCreate,
    SaleListResponse,
    SaleResponse,
)
from livestock_ops.services.finance_service import FinanceService

router = APIRouter(tags=["finance"])


@router.get("/farms/{farm_id}/sales", response_model=SaleListResponse)
async def list_sales(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    start: date_type | None = None,
    end: date_type | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> SaleListResponse:
    sales, total = await FinanceService(db).list_sales(
        user, farm_id, start, end, page, page_size
    )
    return SaleListResponse(
        items=[SaleResponse.model_validate(s) for s in sales],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/farms/{farm_id}/sales",
    response_model=SaleResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_sale(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: SaleCreate,
) -> SaleResponse:
    """Record a sale; animals sold from a batch leave its stock."""
    sale = await FinanceService(db).create_sale(user, farm_id, payload.model_dump())
    return SaleResponse.model_validate(sale)


@router.get("/farms/{farm_id}/expenses", response_model=ExpenseListResponse)
async def list_expenses(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    category: str | None = None,
    start: date_type | None = None,
    end: date_type | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ExpenseListResponse:
    expenses, total = await FinanceService(db).list_expenses(
        user, farm_id, category, start, end, page, page_size
    )
    return ExpenseListResponse(
        items=[ExpenseResponse.model_validate(e) for e in expenses],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/farms/{farm_id}/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_expense(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: ExpenseCreate,
) -> ExpenseResponse:
    expense = await FinanceService(db).create_expense(user, farm_id, payload.model_dump())
    return ExpenseResponse.model_validate(expense)
