"""Payroll period and wage payment endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status
from fastapi.responses import Response

from livestock_ops.api.dependencies import CurrentUser, DbSession
from livestock_ops.api.schemas import (
    ErrorResponse,
    PaymentCreate,
    PaymentResponse,
    PayrollPeriodCreate,
    PayrollPeriodResponse,
    PayrollSummaryResponse,
    WorkerPayrollResponse,
)
from livestock_ops.services.export_service import ExportService
from livestock_ops.services.payroll_service import PayrollService

router = APIRouter(tags=["payroll"])

PDF = "application/pdf"


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=PDF,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/farms/{farm_id}/payroll-periods", response_model=list[PayrollPeriodResponse])
async def payroll_history(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
) -> list[PayrollPeriodResponse]:
    periods = await PayrollService(db).get_payroll_history(user, farm_id)
    return [PayrollPeriodResponse.model_validate(p) for p in periods]


@router.post(
    "/farms/{farm_id}/payroll-periods",
    response_model=PayrollPeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_payroll_period(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: PayrollPeriodCreate,
) -> PayrollPeriodResponse:
    """Open a payroll period; periods on one farm may not overlap."""
    period = await PayrollService(db).create_payroll_period(
        user, farm_id, payload.period_type, payload.start_date, payload.end_date
    )
    return PayrollPeriodResponse.model_validate(period)


@router.get(
    "/payroll-periods/{period_id}",
    response_model=PayrollSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def payroll_summary(
    db: DbSession,
    user: CurrentUser,
    period_id: Annotated[UUID, Path()],
) -> PayrollSummaryResponse:
    """Hours, gross wages, payments and balance per worker."""
    summary = await PayrollService(db).get_payroll_summary(user, period_id)
    return PayrollSummaryResponse(
        farm_name=summary.farm_name,
        period=PayrollPeriodResponse.model_validate(summary.period),
        workers=[WorkerPayrollResponse.model_validate(w) for w in summary.workers],
        total_gross=summary.total_gross,
        total_paid=summary.total_paid,
        total_outstanding=summary.total_outstanding,
    )


@router.post(
    "/payroll-periods/{period_id}/close",
    response_model=PayrollPeriodResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def close_payroll_period(
    db: DbSession,
    user: CurrentUser,
    period_id: Annotated[UUID, Path()],
) -> PayrollPeriodResponse:
    period = await PayrollService(db).close_payroll_period(user, period_id)
    return PayrollPeriodResponse.model_validate(period)


@router.get("/payroll-periods/{period_id}/payments", response_model=list[PaymentResponse])
async def list_payments(
    db: DbSession,
    user: CurrentUser,
    period_id: Annotated[UUID, Path()],
) -> list[PaymentResponse]:
    payments = await PayrollService(db).list_payments(user, period_id)
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/payroll-periods/{period_id}/report.pdf", response_class=Response)
async def payroll_report(
    db: DbSession,
    user: CurrentUser,
    period_id: Annotated[UUID, Path()],
) -> Response:
    content = await ExportService(db).payroll_report_pdf(user, period_id)
    return pdf_response(content, f"payroll-report-{period_id}.pdf")


@router.post(
    "/farms/{farm_id}/payments",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_payment(
    db: DbSession,
    user: CurrentUser,
    farm_id: Annotated[UUID, Path()],
    payload: PaymentCreate,
) -> PaymentResponse:
    """Record a wage payment; a matching labor expense is booked."""
    data = payload.model_dump()
    data["farm_id"] = farm_id
    payment = await PayrollService(db).record_payment(user, data)
    return PaymentResponse.model_validate(payment)


@router.get(
    "/payments/{payment_id}/receipt",
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def payment_receipt(
    db: DbSession,
    user: CurrentUser,
    payment_id: Annotated[UUID, Path()],
) -> Response:
    content = await ExportService(db).payment_receipt_pdf(user, payment_id)
    return pdf_response(content, f"payment-receipt-{str(payment_id)[:8]}.pdf")
